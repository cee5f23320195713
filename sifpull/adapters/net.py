"""
Plain HTTP(S) backend.
"""
import hashlib
from pathlib import Path
from typing import Optional

import requests

from sifpull.adapters.transfer import check_cancel, download, materialize, new_session
from sifpull.internal.constants import HTTP_TIMEOUT
from sifpull.internal.logging import get_logger
from sifpull.kernel.contracts import CancelToken, ImageCache, NetPullOptions

logger = get_logger(__name__)

CACHE_KIND = "net"


def cache_key(url: str, validator: Optional[str]) -> Optional[str]:
    # Without a validator the content may change under the same URL
    if not validator:
        return None
    return hashlib.sha256(f"{url}\n{validator}".encode("utf-8")).hexdigest()


class NetAdapter:
    def _validator(self, session: requests.Session, url: str) -> Optional[str]:
        r = session.head(url, allow_redirects=True, timeout=HTTP_TIMEOUT)
        if r.status_code >= 400:
            logger.debug("HEAD not usable for caching", url=url, status=r.status_code)
            return None
        return r.headers.get("ETag") or r.headers.get("Last-Modified")

    def pull_to_file(self, cache: ImageCache, dest: Path, source: str, options: NetPullOptions,
                     cancel: CancelToken = None) -> Path:
        session = new_session()
        check_cancel(cancel)

        key = None
        if not cache.disabled:
            key = cache_key(source, self._validator(session, source))

        def fetch() -> Path:
            return download(session, source, options.tmp_dir, cancel=cancel)

        return materialize(cache, CACHE_KIND, key, dest, fetch)
