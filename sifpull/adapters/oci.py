"""
OCI backend: converts images from OCI sources (registries, archives, the
docker daemon) into SIF files by driving an external builder binary.
"""
import os
import shutil
import subprocess
from pathlib import Path
from typing import Optional

from sifpull.adapters.transfer import check_cancel
from sifpull.internal.logging import get_logger
from sifpull.kernel.contracts import CancelToken, ImageCache, OciPullOptions
from sifpull.kernel.errors import PullCancelled
from sifpull.kernel.locator import OCI_TRANSPORTS

logger = get_logger(__name__)

DEFAULT_BUILDER = "singularity"
POLL_INTERVAL = 0.5


class OciAdapter:
    def __init__(self, builder: Optional[str] = None):
        self.builder = builder or os.environ.get("SIFPULL_OCI_BUILDER", DEFAULT_BUILDER)

    def is_supported(self, transport: str) -> bool:
        return transport in OCI_TRANSPORTS

    def command(self, executable: str, cache: ImageCache, dest: Path, source: str,
                options: OciPullOptions) -> list[str]:
        # The destination was already checked by the caller; the builder must not prompt
        cmd = [executable, "build", "--force"]
        if cache.disabled:
            cmd.append("--disable-cache")
        if options.tmp_dir:
            cmd += ["--tmpdir", options.tmp_dir]
        if options.docker_host:
            cmd += ["--docker-host", options.docker_host]
        if options.no_https:
            cmd.append("--nohttps")
        if options.no_cleanup:
            cmd.append("--no-cleanup")
        if options.oci_sif:
            cmd.append("--oci")
        cmd += [str(dest), source]
        return cmd

    def environment(self, options: OciPullOptions) -> dict:
        env = dict(os.environ)
        if options.credentials:
            prefix = Path(self.builder).name.upper()
            env[f"{prefix}_DOCKER_USERNAME"] = options.credentials.username
            env[f"{prefix}_DOCKER_PASSWORD"] = options.credentials.password
        return env

    def pull_to_file(self, cache: ImageCache, dest: Path, source: str, options: OciPullOptions,
                     cancel: CancelToken = None) -> Path:
        executable = shutil.which(self.builder)
        if not executable:
            raise RuntimeError(f"OCI builder {self.builder!r} not found in PATH")

        check_cancel(cancel)
        cmd = self.command(executable, cache, dest, source, options)
        logger.info("Starting OCI build", builder=executable, source=source, dest=str(dest))

        process = subprocess.Popen(cmd, env=self.environment(options))
        while True:
            try:
                returncode = process.wait(timeout=POLL_INTERVAL)
                break
            except subprocess.TimeoutExpired:
                if cancel is not None and cancel.is_set():
                    logger.warning("Cancelling OCI build", pid=process.pid)
                    process.terminate()
                    process.wait()
                    raise PullCancelled()

        if returncode != 0:
            raise RuntimeError(f"{Path(self.builder).name} build exited with status {returncode}")
        return dest
