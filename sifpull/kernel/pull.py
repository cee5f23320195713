"""
This module defines the pull service of the sifpull kernel.
It takes one PullConfig through classification, normalization, destination
resolution, cache acquisition and dispatch, and reduces whatever happens to a
single PullOutcome. It never exits the process; that is the caller's job.
"""
from typing import Optional

from sifpull.internal.config import RemoteEndpointConfig
from sifpull.internal.logging import get_logger
from sifpull.kernel.contracts import (
    COMPLETED,
    ERROR,
    UNSIGNED,
    BackendSet,
    CacheProvider,
    CancelToken,
    CredentialProvider,
    ImageCache,
    PullConfig,
    PullOutcome,
)
from sifpull.kernel.destination import check_destination, resolve_destination
from sifpull.kernel.dispatch import BackendDispatcher, DispatchContext
from sifpull.kernel.errors import (
    CacheError,
    ConfigConflictError,
    LibraryPullUnsigned,
    MalformedInputError,
    PullError,
)
from sifpull.kernel.library_ref import LibraryRef, normalize_library_ref
from sifpull.kernel.locator import is_library, split

logger = get_logger(__name__)


def _no_credentials():
    return None


class PullService:
    """
    Orchestrates a single pull, from the raw locator to exactly one backend call.
    """
    def __init__(self, backends: BackendSet, cache_provider: CacheProvider, endpoint: RemoteEndpointConfig,
                 credentials: CredentialProvider = _no_credentials,
                 dispatcher: Optional[BackendDispatcher] = None):
        self.backends = backends
        self.cache_provider = cache_provider
        self.endpoint = endpoint
        self.credentials = credentials
        self.dispatcher = dispatcher or BackendDispatcher(backends)

    def _normalize(self, config: PullConfig, transport: str) -> Optional[LibraryRef]:
        if not is_library(transport):
            return None

        ref = normalize_library_ref(config.source)
        if config.library_uri and ref.host:
            raise ConfigConflictError(
                "Conflicting arguments; do not use --library with a library URI containing host name"
            )
        return ref

    def _acquire_cache(self, disable: bool) -> ImageCache:
        try:
            cache = self.cache_provider(disable)
        except Exception as exc:
            raise CacheError(f"Failed to create an image cache handle: {exc}") from exc
        if cache is None:
            raise CacheError("Failed to create an image cache handle")
        return cache

    def pull(self, config: PullConfig, cancel: CancelToken = None) -> PullOutcome:
        transport = ""
        destination = None

        try:
            # 1. Classify
            transport, ref = split(config.source)
            if not ref:
                raise MalformedInputError(f"Bad URI {config.source}")

            # 2. Normalize
            library_ref = self._normalize(config, transport)

            # 3. Destination, decided and checked before any backend runs
            destination = resolve_destination(
                config.source,
                name=config.name,
                image_name=config.image_name,
                directory=config.directory,
            )
            check_destination(destination, config.force)

            # 4. Cache
            cache = self._acquire_cache(config.disable_cache)

            # 5. Dispatch
            ctx = DispatchContext(
                config=config,
                backends=self.backends,
                cache=cache,
                destination=destination,
                locator=config.source,
                transport=transport,
                endpoint=self.endpoint,
                credentials=self.credentials,
                library_ref=library_ref,
                cancel=cancel,
            )
            pulled = self.dispatcher.dispatch(ctx)

        except LibraryPullUnsigned as exc:
            logger.warning("Library image pulled unsigned", dest=str(destination), reason=str(exc))
            return PullOutcome(status=UNSIGNED, transport=transport, destination=destination)

        except PullError as exc:
            logger.error("Pull failed", kind=exc.kind.value, error=exc.message)
            return PullOutcome(status=ERROR, transport=transport, destination=destination, error=exc)

        logger.info("Pull completed", transport=transport, dest=str(pulled or destination))
        return PullOutcome(status=COMPLETED, transport=transport, destination=pulled or destination)
