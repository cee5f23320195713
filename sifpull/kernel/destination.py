"""
Destination resolution for pulled images.

The local path is fully decided, and checked, before any backend runs.
"""
import os
from pathlib import Path
from typing import Optional

from sifpull.kernel.errors import DestinationExistsError, MalformedInputError
from sifpull.kernel.library_ref import DEFAULT_TAG
from sifpull.kernel.locator import HTTP, HTTPS, UNSPECIFIED, split, with_default_transport


def _split_name_tag(segment: str) -> tuple[str, str]:
    if "@" in segment:
        name, digest = segment.split("@", 1)
        return name.split(":", 1)[0], digest.replace(":", ".")
    if ":" in segment:
        name, tags = segment.rsplit(":", 1)
        return name, tags.split(",", 1)[0]
    return segment, DEFAULT_TAG


def derive_name(locator: str) -> str:
    """
    Derive a local file name from a locator.

    Web addresses keep the last path component of the URL. Everything else
    becomes ``<name>_<tag>.sif``; a locator without transport is named as if
    it were a library locator.
    """
    transport, ref = split(locator)
    if transport == UNSPECIFIED:
        return derive_name(with_default_transport(locator))

    if transport in (HTTP, HTTPS):
        path = ref.split("?", 1)[0].split("#", 1)[0].rstrip("/")
        name = path.rsplit("/", 1)[-1]
        if not name:
            raise MalformedInputError(f"Unable to derive an image name from {locator}, use --name")
        return name

    last = ref.rstrip("/").rsplit("/", 1)[-1]
    name, tag = _split_name_tag(last)
    return f"{name}_{tag or DEFAULT_TAG}.sif"


def resolve_destination(locator: str, *, name: Optional[str] = None, image_name: Optional[str] = None,
                        directory: Optional[str] = None) -> Path:
    """
    Pick the output path: explicit name, then positional image name, then a
    name derived from the locator. A target directory is prepended last.
    """
    pull_to = name or image_name or derive_name(locator)
    if directory:
        return Path(directory) / pull_to
    return Path(pull_to)


def check_destination(path: Path, force: bool) -> None:
    # lexists so a dangling symlink still counts as an existing file
    if os.path.lexists(path) and not force:
        raise DestinationExistsError(path)
