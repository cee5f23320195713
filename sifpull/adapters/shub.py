"""
Hub backend: pulls images from a Singularity Hub compatible registry.

    shub://[registry/]user/repo[:tag][@digest]
"""
import hashlib
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from sifpull.adapters.transfer import check_cancel, download, materialize, new_session
from sifpull.internal.constants import DEFAULT_SHUB_REGISTRY, HTTP_TIMEOUT
from sifpull.internal.logging import get_logger
from sifpull.kernel.contracts import CancelToken, ImageCache, ShubPullOptions
from sifpull.kernel.locator import split

logger = get_logger(__name__)

CACHE_KIND = "shub"


@dataclass(frozen=True)
class ShubRef:
    registry: str
    path: str  # user/repo with optional :tag / @digest


def cache_key(ref: ShubRef, version: Optional[str]) -> Optional[str]:
    # the version string is free-form; only its digest is used on disk
    if not version:
        return None
    return hashlib.sha256(f"{ref.registry}/{ref.path}\n{version}".encode("utf-8")).hexdigest()


def parse_shub_ref(locator: str) -> ShubRef:
    _, ref = split(locator)
    parts = ref.strip("/").split("/")
    if len(parts) == 3:
        registry, path = parts[0], "/".join(parts[1:])
    elif len(parts) == 2:
        registry, path = DEFAULT_SHUB_REGISTRY, "/".join(parts)
    else:
        raise ValueError(f"shub URI must be shub://[registry/]user/repo[:tag][@digest]: {locator}")
    if not all(parts):
        raise ValueError(f"shub URI has an empty component: {locator}")
    return ShubRef(registry=registry, path=path)


class ShubAdapter:
    def pull_to_file(self, cache: ImageCache, dest: Path, source: str, options: ShubPullOptions,
                     cancel: CancelToken = None) -> Path:
        ref = parse_shub_ref(source)
        scheme = "http" if options.no_https else "https"
        session = new_session()

        check_cancel(cancel)
        r = session.get(f"{scheme}://{ref.registry}/api/container/{ref.path}", timeout=HTTP_TIMEOUT)
        if r.status_code == 404:
            raise RuntimeError(f"container not found on {ref.registry}: {ref.path}")
        r.raise_for_status()
        manifest = r.json()
        image_url = manifest.get("image")
        if not image_url:
            raise RuntimeError(f"no image URL in hub manifest for {ref.path}")

        version = manifest.get("version") or None
        logger.info("Resolved hub image", registry=ref.registry, path=ref.path, version=version)

        def fetch() -> Path:
            return download(session, image_url, options.tmp_dir, cancel=cancel)

        return materialize(cache, CACHE_KIND, cache_key(ref, version), dest, fetch)
