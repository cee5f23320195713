import platform
from typing import List

import typer

from sifpull.adapters.backends import default_backends
from sifpull.adapters.cache_fs import get_cache_handle
from sifpull.cli import report
from sifpull.cli.credentials import credential_provider
from sifpull.internal.config import load_remote_endpoint
from sifpull.internal.constants import FATAL_EXIT_CODE
from sifpull.internal.logging import get_logger
from sifpull.kernel.contracts import PullConfig
from sifpull.kernel.pull import PullService

logger = get_logger(__name__)

# platform.machine() values mapped to the architecture names the library uses
_ARCH_ALIASES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "ppc64le": "ppc64le",
    "s390x": "s390x",
    "i386": "386",
    "i686": "386",
    "armv7l": "arm",
    "riscv64": "riscv64",
}


def default_arch() -> str:
    machine = platform.machine().lower()
    return _ARCH_ALIASES.get(machine, machine or "amd64")


def _cache_provider(disable: bool):
    return get_cache_handle(disable=disable)


def pull(
    args: List[str] = typer.Argument(..., metavar="[IMAGE_NAME] SOURCE",
                                     help="optional local image name followed by the source URI"),
    arch: str = typer.Option(default_arch(), "--arch", envvar="SIFPULL_PULL_ARCH",
                             help="architecture to pull from library"),
    library: str = typer.Option("", "--library", envvar="SIFPULL_LIBRARY",
                                help="download images from the provided library"),
    name: str = typer.Option("", "--name", envvar="SIFPULL_PULL_NAME", hidden=True,
                             help="specify a custom image name"),
    directory: str = typer.Option("", "--dir", envvar=["SIFPULL_PULLDIR", "SIFPULL_PULLFOLDER"],
                                  help="download images to the specific directory"),
    disable_cache: bool = typer.Option(False, "--disable-cache", envvar="SIFPULL_DISABLE_CACHE",
                                       help="dont use cached images/blobs and dont create them"),
    allow_unsigned: bool = typer.Option(False, "--allow-unsigned", "-U", envvar="SIFPULL_ALLOW_UNSIGNED",
                                        help="do not require a signed container (deprecated)"),
    allow_unauthenticated: bool = typer.Option(False, "--allow-unauthenticated",
                                               envvar="SIFPULL_ALLOW_UNAUTHENTICATED", hidden=True,
                                               help="do not require a signed container"),
    force: bool = typer.Option(False, "--force", "-F", envvar="SIFPULL_FORCE",
                               help="overwrite an image file if it exists"),
    oci: bool = typer.Option(False, "--oci", envvar="SIFPULL_OCI", hidden=True,
                             help="pull to an OCI-SIF (OCI sources only)"),
    no_https: bool = typer.Option(False, "--nohttps", envvar="SIFPULL_NOHTTPS",
                                  help="use http instead of https for docker://, oras:// and library://<hostname>/... URIs"),
    tmp_dir: str = typer.Option("", "--tmpdir", envvar="SIFPULL_TMPDIR",
                                help="specify a temporary directory to use for the pull"),
    docker_host: str = typer.Option("", "--docker-host", envvar="SIFPULL_DOCKER_HOST",
                                    help="specify a custom docker daemon host"),
    docker_username: str = typer.Option("", "--docker-username", envvar="SIFPULL_DOCKER_USERNAME",
                                        help="specify a username for docker authentication"),
    docker_password: str = typer.Option("", "--docker-password", envvar="SIFPULL_DOCKER_PASSWORD",
                                        help="specify a password for docker authentication"),
    docker_login: bool = typer.Option(False, "--docker-login",
                                      help="login to a docker repository interactively"),
    no_cleanup: bool = typer.Option(False, "--no-cleanup", envvar="SIFPULL_NO_CLEANUP",
                                    help="do NOT clean up bundle after failed build, can be helpful for debugging"),
):
    """
    Pull an image from a URI and save it as a local SIF file.

    Supported URIs: library://, shub://, oras://, http://, https://, and the
    OCI sources docker://, docker-archive:, docker-daemon:, oci:, oci-archive:.
    A URI without transport is treated as library://.
    """
    if len(args) > 2:
        raise typer.BadParameter(f"accepts at most 2 arguments, received {len(args)}", param_hint="IMAGE_NAME SOURCE")

    if allow_unsigned:
        report.warning(
            "--allow-unsigned is deprecated: pull no longer exits with an error code in case of "
            "unsigned image. Now the flag only suppresses the warning message."
        )

    config = PullConfig(
        source=args[-1],
        image_name=args[0] if len(args) == 2 else None,
        name=name or None,
        directory=directory or None,
        architecture=arch,
        library_uri=library,
        disable_cache=disable_cache,
        allow_unsigned=allow_unsigned or allow_unauthenticated,
        force=force,
        oci_sif=oci,
        no_https=no_https,
        tmp_dir=tmp_dir or None,
        docker_host=docker_host,
        no_cleanup=no_cleanup,
    )

    try:
        endpoint = load_remote_endpoint()
    except RuntimeError as exc:
        report.fatal(str(exc))
        raise typer.Exit(FATAL_EXIT_CODE)

    service = PullService(
        backends=default_backends(),
        cache_provider=_cache_provider,
        endpoint=endpoint,
        credentials=credential_provider(docker_username, docker_password, docker_login),
    )

    outcome = service.pull(config)

    code = report.report(outcome, allow_unsigned=config.allow_unsigned)
    if code:
        raise typer.Exit(code)
