"""
Locator classification.

A locator is the raw source string given to `pull`. It is split into a
transport tag and the reference body that the transport's backend understands.
"""
import re

LIBRARY = "library"
SHUB = "shub"
HTTP = "http"
HTTPS = "https"
ORAS = "oras"
DOCKER = "docker"
UNSPECIFIED = ""

# Transports handled by the OCI backend
OCI_TRANSPORTS = frozenset({
    DOCKER,
    "docker-archive",
    "docker-daemon",
    "oci",
    "oci-archive",
})

# Transports accepted in the short "transport:ref" form (no "//")
KNOWN_TRANSPORTS = frozenset({LIBRARY, SHUB, HTTP, HTTPS, ORAS}) | OCI_TRANSPORTS

_SCHEME_RE = re.compile(r"^([A-Za-z][A-Za-z0-9+.-]*)://")


def split(locator: str) -> tuple[str, str]:
    """
    Split a locator into (transport, reference).

    >>> split("docker://alpine:3.18")
    ('docker', 'alpine:3.18')
    >>> split("busybox:1.36")
    ('', 'busybox:1.36')
    """
    match = _SCHEME_RE.match(locator)
    if match:
        return match.group(1), locator[match.end():]

    head, sep, rest = locator.partition(":")
    if sep and head in KNOWN_TRANSPORTS:
        return head, rest

    return UNSPECIFIED, locator


def is_library(transport: str) -> bool:
    return transport in (LIBRARY, UNSPECIFIED)


def with_default_transport(locator: str) -> str:
    """Rewrite a locator without transport as a library locator."""
    transport, _ = split(locator)
    if transport == UNSPECIFIED:
        return f"{LIBRARY}://{locator}"
    return locator
