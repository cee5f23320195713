"""
Data contracts and ports of the pull kernel.

The kernel never touches the network or the cache layout itself. It talks to
backend adapters, the image cache and the credential provider only through
the protocols defined here.
"""
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, Protocol

from sifpull.internal.config import RemoteEndpointConfig
from sifpull.kernel.errors import PullError
from sifpull.kernel.library_ref import LibraryRef


# ---------------------------------------------------------------------
# Caller configuration
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class PullConfig:
    """
    Every caller input of one pull, built once at the CLI boundary.
    The kernel reads this and nothing else from its caller.
    """
    source: str
    image_name: Optional[str] = None  # optional positional name
    name: Optional[str] = None  # --name, wins over image_name
    directory: Optional[str] = None
    architecture: str = "amd64"
    library_uri: str = ""
    disable_cache: bool = False
    allow_unsigned: bool = False
    force: bool = False
    oci_sif: bool = False
    no_https: bool = False
    tmp_dir: Optional[str] = None
    docker_host: str = ""
    no_cleanup: bool = False

    def __post_init__(self):
        if self.source is None:
            raise ValueError("source cannot be None")


@dataclass(frozen=True)
class DockerCredentials:
    username: str
    password: str = field(repr=False, default="")


@dataclass(frozen=True)
class KeyserverConfig:
    """Keyserver client settings, used only for verification policy."""
    uris: tuple[str, ...]
    operation: str = "verify"
    token: Optional[str] = field(repr=False, default=None)


@dataclass(frozen=True)
class LibraryClientConfig:
    base_url: str
    auth_token: Optional[str] = field(repr=False, default=None)


# ---------------------------------------------------------------------
# Per-transport pull options
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class LibraryPullOptions:
    architecture: str
    endpoint: RemoteEndpointConfig
    keyserver: KeyserverConfig
    library: LibraryClientConfig
    require_oci_sif: bool = False
    tmp_dir: Optional[str] = None


@dataclass(frozen=True)
class ShubPullOptions:
    tmp_dir: Optional[str] = None
    no_https: bool = False


@dataclass(frozen=True)
class OrasPullOptions:
    tmp_dir: Optional[str] = None
    credentials: Optional[DockerCredentials] = None


@dataclass(frozen=True)
class NetPullOptions:
    tmp_dir: Optional[str] = None


@dataclass(frozen=True)
class OciPullOptions:
    tmp_dir: Optional[str] = None
    credentials: Optional[DockerCredentials] = None
    docker_host: str = ""
    no_https: bool = False
    no_cleanup: bool = False
    oci_sif: bool = False


# ---------------------------------------------------------------------
# Outcome
# ---------------------------------------------------------------------

COMPLETED = "completed"
UNSIGNED = "unsigned"
ERROR = "error"


@dataclass
class PullOutcome:
    status: str  # 'completed', 'unsigned' or 'error'
    transport: str = ""
    destination: Optional[Path] = None
    error: Optional[PullError] = None

    @property
    def ok(self) -> bool:
        return self.status != ERROR


# ---------------------------------------------------------------------
# Ports
# ---------------------------------------------------------------------

class ImageCache(Protocol):
    """
    Process-scoped handle onto the local image cache.
    When disabled, lookups always miss and stores are no-ops.
    """

    @property
    def disabled(self) -> bool:
        ...

    def lookup(self, kind: str, key: str) -> Optional[Path]:
        ...

    def store(self, kind: str, key: str, src: Path) -> Path:
        ...


class CacheProvider(Protocol):
    def __call__(self, disable: bool) -> ImageCache:
        ...


CredentialProvider = Callable[[], Optional[DockerCredentials]]
CancelToken = Optional[threading.Event]


class LibraryBackend(Protocol):
    def pull_to_file(self, cache: ImageCache, dest: Path, ref: LibraryRef, options: LibraryPullOptions,
                     cancel: CancelToken = None) -> Path:
        """
        Pull a library image to dest. Raises LibraryPullUnsigned when the image
        was written but could not be verified.
        """
        ...


class ShubBackend(Protocol):
    def pull_to_file(self, cache: ImageCache, dest: Path, source: str, options: ShubPullOptions,
                     cancel: CancelToken = None) -> Path:
        ...


class OrasBackend(Protocol):
    def pull_to_file(self, cache: ImageCache, dest: Path, source: str, options: OrasPullOptions,
                     cancel: CancelToken = None) -> Path:
        ...


class NetBackend(Protocol):
    def pull_to_file(self, cache: ImageCache, dest: Path, source: str, options: NetPullOptions,
                     cancel: CancelToken = None) -> Path:
        ...


class OciBackend(Protocol):
    def is_supported(self, transport: str) -> bool:
        ...

    def pull_to_file(self, cache: ImageCache, dest: Path, source: str, options: OciPullOptions,
                     cancel: CancelToken = None) -> Path:
        ...


@dataclass
class BackendSet:
    library: LibraryBackend
    shub: ShubBackend
    oras: OrasBackend
    net: NetBackend
    oci: OciBackend
