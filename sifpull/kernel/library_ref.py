"""
Library reference parsing and normalization.

    library://[host/][entity/][collection/]container[:tag[,tag...]]

A body of three or more segments names a host in its first segment. Use an
empty authority (``library:///entity/collection/container``) to address a
three-segment path on the default library.
"""
import re
from dataclasses import dataclass

from sifpull.kernel.errors import MalformedInputError
from sifpull.kernel.locator import LIBRARY, split, with_default_transport

DEFAULT_TAG = "latest"
MAX_PATH_SEGMENTS = 3

_SEGMENT_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")
_TAG_RE = re.compile(r"^[A-Za-z0-9_.][A-Za-z0-9_.-]{0,127}$")
_HOST_RE = re.compile(r"^[A-Za-z0-9]([A-Za-z0-9.-]*[A-Za-z0-9])?(:[0-9]{1,5})?$")


@dataclass(frozen=True)
class LibraryRef:
    host: str
    path: str
    tags: tuple[str, ...] = (DEFAULT_TAG,)

    @property
    def container(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    @property
    def tag(self) -> str:
        return self.tags[0]

    def __str__(self) -> str:
        if self.host:
            authority = f"{self.host}/"
        elif self.path.count("/") + 1 >= MAX_PATH_SEGMENTS:
            authority = "/"
        else:
            authority = ""
        return f"{LIBRARY}://{authority}{self.path}:{','.join(self.tags)}"


def _malformed(reason: str, body: str) -> MalformedInputError:
    return MalformedInputError(f"Malformed library reference: {reason}: {body}")


def parse_library_ref(body: str) -> LibraryRef:
    """Parse the reference body of a library locator (everything after the transport)."""
    raw = body
    if not body:
        raise _malformed("empty reference", raw)
    if "?" in body:
        raise _malformed("query not permitted", raw)
    if "#" in body:
        raise _malformed("fragment not permitted", raw)
    if "@" in body:
        raise _malformed("user info not permitted", raw)

    no_host = body.startswith("/")
    if no_host:
        body = body[1:]

    tags: tuple[str, ...] = ()
    colon = body.rfind(":")
    if colon > body.rfind("/"):
        tags = tuple(body[colon + 1:].split(","))
        body = body[:colon]
        for tag in tags:
            if not _TAG_RE.match(tag):
                raise _malformed(f"invalid tag {tag!r}", raw)

    segments = body.split("/")
    if any(not s for s in segments):
        raise _malformed("empty path component", raw)

    host = ""
    if not no_host and len(segments) >= MAX_PATH_SEGMENTS:
        host, segments = segments[0], segments[1:]
        if not _HOST_RE.match(host):
            raise _malformed(f"invalid host {host!r}", raw)

    if len(segments) > MAX_PATH_SEGMENTS:
        raise _malformed("too many path components", raw)
    for segment in segments:
        if not _SEGMENT_RE.match(segment):
            raise _malformed(f"invalid path component {segment!r}", raw)

    return LibraryRef(host=host, path="/".join(segments), tags=tags or (DEFAULT_TAG,))


def normalize_library_ref(locator: str) -> LibraryRef:
    """
    Normalize a library locator, or a bare name which is treated as one.
    Explicit and implicit library locators go through this single routine.
    """
    transport, body = split(with_default_transport(locator))
    if transport != LIBRARY:
        raise _malformed("not a library reference", locator)
    return parse_library_ref(body)
