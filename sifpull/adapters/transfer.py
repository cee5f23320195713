"""
Shared download helpers for the HTTP based backends.
"""
import hashlib
import os
import shutil
import tempfile
from pathlib import Path
from typing import Callable, Optional

import requests

from sifpull.internal.constants import CHUNK_SIZE, HTTP_TIMEOUT, USER_AGENT
from sifpull.internal.logging import get_logger
from sifpull.kernel.contracts import CancelToken, ImageCache
from sifpull.kernel.errors import PullCancelled

logger = get_logger(__name__)


def new_session(token: Optional[str] = None) -> requests.Session:
    session = requests.Session()
    session.headers["User-Agent"] = USER_AGENT
    if token:
        session.headers["Authorization"] = f"Bearer {token}"
    return session


def check_cancel(cancel: CancelToken) -> None:
    if cancel is not None and cancel.is_set():
        raise PullCancelled()


def download(session: requests.Session, url: str, tmp_dir: Optional[str], *,
             expected_sha256: Optional[str] = None, params: Optional[dict] = None,
             headers: Optional[dict] = None, cancel: CancelToken = None) -> Path:
    """
    Stream url into a new temporary file under tmp_dir and return its path.
    The file is removed again if the transfer or checksum fails.
    """
    fd, name = tempfile.mkstemp(prefix="sifpull-", suffix=".part", dir=tmp_dir)
    temp_path = Path(name)
    h = hashlib.sha256()
    try:
        with os.fdopen(fd, "wb") as f:
            with session.get(url, params=params, headers=headers, stream=True, timeout=HTTP_TIMEOUT) as r:
                r.raise_for_status()
                for chunk in r.iter_content(chunk_size=CHUNK_SIZE):
                    check_cancel(cancel)
                    f.write(chunk)
                    h.update(chunk)

        if expected_sha256 and h.hexdigest() != expected_sha256:
            raise RuntimeError(f"checksum mismatch for {url}: expected {expected_sha256}, got {h.hexdigest()}")
    except BaseException:
        temp_path.unlink(missing_ok=True)
        raise

    logger.debug("Downloaded", url=url, path=str(temp_path))
    return temp_path


def place(src: Path, dest: Path, *, move: bool = False) -> None:
    """Write src to dest through a temporary sibling, so dest is never partial."""
    dest = Path(dest)
    dest.parent.mkdir(parents=True, exist_ok=True)
    temp_path = dest.with_name(f".{dest.name}.sifpull-tmp")
    try:
        if move:
            shutil.move(str(src), temp_path)
        else:
            shutil.copyfile(src, temp_path)
        os.chmod(temp_path, 0o755)
        os.replace(temp_path, dest)
    finally:
        if temp_path.exists():
            temp_path.unlink()


def materialize(cache: ImageCache, kind: str, key: Optional[str], dest: Path,
                fetch: Callable[[], Path], validate: Optional[Callable[[Path], None]] = None) -> Path:
    """
    Put the image identified by (kind, key) at dest, from the cache when
    possible, otherwise by calling fetch(). A None key bypasses the cache.
    """
    cached = cache.lookup(kind, key) if key else None
    if cached is not None:
        logger.info("Using cached image", kind=kind, key=key)
        if validate:
            validate(cached)
        place(cached, dest)
        return dest

    downloaded = fetch()
    try:
        if validate:
            validate(downloaded)
        if key and not cache.disabled:
            place(cache.store(kind, key, downloaded), dest)
        else:
            place(downloaded, dest, move=True)
    finally:
        downloaded.unlink(missing_ok=True)
    return dest
