"""
Library backend: pulls SIF images from a Sylabs-compatible library service.
"""
from pathlib import Path
from typing import Callable, Optional

import requests

from sifpull.adapters import sif
from sifpull.adapters.transfer import check_cancel, download, materialize, new_session
from sifpull.internal.constants import HTTP_TIMEOUT
from sifpull.internal.logging import get_logger
from sifpull.kernel.contracts import CancelToken, ImageCache, KeyserverConfig, LibraryPullOptions
from sifpull.kernel.errors import LibraryPullUnsigned
from sifpull.kernel.library_ref import LibraryRef

logger = get_logger(__name__)

CACHE_KIND = "library"
DEFAULT_ENTITY_PATH = "library/default"

Verifier = Callable[[Path, KeyserverConfig], bool]


def api_path(ref: LibraryRef) -> str:
    """A bare container name lives in the default collection of the library entity."""
    if "/" not in ref.path:
        return f"{DEFAULT_ENTITY_PATH}/{ref.path}"
    return ref.path


class LibraryAdapter:
    """
    Pulls an image by querying its metadata, then downloading the image file
    and checking it against the advertised hash.

    Signature verification is delegated to an optional verifier. Without one,
    or when it reports failure, the pulled image is kept and
    LibraryPullUnsigned is raised.
    """

    def __init__(self, verifier: Optional[Verifier] = None):
        self.verifier = verifier

    def _image_metadata(self, session: requests.Session, base_url: str, ref: LibraryRef, arch: str) -> dict:
        url = f"{base_url}/v1/images/{api_path(ref)}:{ref.tag}"
        r = session.get(url, params={"arch": arch}, timeout=HTTP_TIMEOUT)
        if r.status_code == 404:
            raise RuntimeError(f"image does not exist in the library: {ref.path}:{ref.tag} ({arch})")
        r.raise_for_status()
        data = r.json().get("data") or {}
        if not data.get("hash"):
            raise RuntimeError(f"library returned no image hash for {ref.path}:{ref.tag}")
        return data

    def pull_to_file(self, cache: ImageCache, dest: Path, ref: LibraryRef, options: LibraryPullOptions,
                     cancel: CancelToken = None) -> Path:
        session = new_session(token=options.library.auth_token)
        base_url = options.library.base_url
        arch = options.architecture

        check_cancel(cancel)
        image = self._image_metadata(session, base_url, ref, arch)
        image_hash = image["hash"]
        expected = image_hash.split(".", 1)[1] if image_hash.startswith("sha256.") else None
        logger.info("Resolved library image", ref=str(ref), hash=image_hash, arch=arch)

        def fetch() -> Path:
            url = f"{base_url}/v1/imagefile/{api_path(ref)}:{ref.tag}"
            return download(session, url, options.tmp_dir, params={"arch": arch},
                            expected_sha256=expected, cancel=cancel)

        def validate(path: Path) -> None:
            if options.require_oci_sif and not sif.is_oci_sif(path):
                raise RuntimeError(f"image {ref} is not an OCI-SIF")

        materialize(cache, CACHE_KIND, image_hash, dest, fetch, validate)

        if self.verifier is None or not self.verifier(dest, options.keyserver):
            raise LibraryPullUnsigned(f"{ref} was not verified")
        return dest
