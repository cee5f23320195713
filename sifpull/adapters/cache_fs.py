"""
A filesystem image cache. Entries live at ``<root>/<kind>/<key>`` and are
written through a temporary name and an atomic rename, so a reader never sees
a partial entry.
"""
import os
import re
import shutil
import uuid
from pathlib import Path
from typing import Optional

from sifpull.internal import paths
from sifpull.internal.logging import get_logger

logger = get_logger(__name__)

_KEY_RE = re.compile(r"^[A-Za-z0-9._-]+$")


class FileSystemImageCache:
    def __init__(self, root: Path, disabled: bool = False):
        self._root = Path(root)
        self._disabled = disabled
        if not disabled:
            self._root.mkdir(parents=True, exist_ok=True)

    @property
    def disabled(self) -> bool:
        return self._disabled

    @property
    def root(self) -> Path:
        return self._root

    def entry_path(self, kind: str, key: str) -> Path:
        if not _KEY_RE.match(kind) or not _KEY_RE.match(key) or key.startswith("."):
            raise ValueError(f"invalid cache entry {kind}/{key}")
        return self._root / kind / key

    def lookup(self, kind: str, key: str) -> Optional[Path]:
        if self._disabled:
            return None
        path = self.entry_path(kind, key)
        if path.is_file():
            logger.debug("Cache hit", kind=kind, key=key)
            return path
        return None

    def store(self, kind: str, key: str, src: Path) -> Path:
        """Move src into the cache. Returns the entry path, or src when disabled."""
        if self._disabled:
            return src

        target = self.entry_path(kind, key)
        target.parent.mkdir(parents=True, exist_ok=True)
        temp_path = target.with_name(f".{target.name}.{uuid.uuid4().hex}.tmp")
        try:
            shutil.move(str(src), temp_path)
            os.replace(temp_path, target)
        finally:
            if temp_path.exists():
                temp_path.unlink()
        logger.info("Cached image", kind=kind, key=key, path=str(target))
        return target

    def __repr__(self) -> str:
        return f"<FileSystemImageCache root={self._root} disabled={self._disabled}>"


def get_cache_handle(disable: bool = False, root: Path | None = None) -> FileSystemImageCache:
    """Return the process-scoped cache handle for one pull."""
    return FileSystemImageCache(root=root or paths.get_cache_dir(), disabled=disable)
