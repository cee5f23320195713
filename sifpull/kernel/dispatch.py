"""
Backend dispatch.

Transports map to backend adapters through an ordered list of routes. Literal
matches come first and the OCI capability predicate last, so a transport that
both names a literal route and passes the OCI check always takes the literal
route. Exactly one backend is invoked per pull; nothing is retried here.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from sifpull.internal.config import RemoteEndpointConfig
from sifpull.internal.logging import get_logger
from sifpull.kernel import endpoint as ep
from sifpull.kernel.contracts import (
    BackendSet,
    CancelToken,
    CredentialProvider,
    DockerCredentials,
    ImageCache,
    LibraryPullOptions,
    NetPullOptions,
    OciPullOptions,
    OrasPullOptions,
    PullConfig,
    ShubPullOptions,
)
from sifpull.kernel.errors import (
    BackendError,
    LibraryPullUnsigned,
    PullError,
    UnsupportedTransportError,
)
from sifpull.kernel.library_ref import LibraryRef
from sifpull.kernel.locator import HTTP, HTTPS, LIBRARY, ORAS, SHUB, UNSPECIFIED, split

logger = get_logger(__name__)


@dataclass
class DispatchContext:
    """Shared inputs every route builds its options from."""
    config: PullConfig
    backends: BackendSet
    cache: ImageCache
    destination: Path
    locator: str
    transport: str
    endpoint: RemoteEndpointConfig
    credentials: CredentialProvider
    library_ref: Optional[LibraryRef] = None
    cancel: CancelToken = None


@dataclass(frozen=True)
class Route:
    name: str
    matches: Callable[[str, BackendSet], bool]
    pull: Callable[[DispatchContext], Path]
    failure: str  # prefix of the fatal message when the backend fails


def _docker_credentials(ctx: DispatchContext, failure: str) -> Optional[DockerCredentials]:
    try:
        return ctx.credentials()
    except Exception as exc:
        raise BackendError(ctx.transport, failure, exc) from exc


# ---------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------

def _pull_library(ctx: DispatchContext) -> Path:
    cfg = ctx.config
    ref = ctx.library_ref
    library_uri = ep.resolve_library_uri(cfg.library_uri, ref.host, cfg.no_https)
    library = ep.library_client_config(ctx.endpoint, library_uri)
    keyserver = ep.keyserver_client_config(ctx.endpoint)

    options = LibraryPullOptions(
        architecture=cfg.architecture,
        endpoint=ctx.endpoint,
        keyserver=keyserver,
        library=library,
        require_oci_sif=cfg.oci_sif,
        tmp_dir=cfg.tmp_dir,
    )
    logger.debug("Library pull options", library=library.base_url, arch=cfg.architecture)
    return ctx.backends.library.pull_to_file(ctx.cache, ctx.destination, ref, options, cancel=ctx.cancel)


def _pull_shub(ctx: DispatchContext) -> Path:
    options = ShubPullOptions(tmp_dir=ctx.config.tmp_dir, no_https=ctx.config.no_https)
    return ctx.backends.shub.pull_to_file(ctx.cache, ctx.destination, ctx.locator, options, cancel=ctx.cancel)


def _pull_oras(ctx: DispatchContext) -> Path:
    credentials = _docker_credentials(ctx, "Unable to make docker oci credentials")
    options = OrasPullOptions(tmp_dir=ctx.config.tmp_dir, credentials=credentials)
    return ctx.backends.oras.pull_to_file(ctx.cache, ctx.destination, ctx.locator, options, cancel=ctx.cancel)


def _pull_net(ctx: DispatchContext) -> Path:
    # "https:host/path" is accepted as a locator but is not a URL
    _, ref = split(ctx.locator)
    url = f"{ctx.transport}://{ref}"
    options = NetPullOptions(tmp_dir=ctx.config.tmp_dir)
    return ctx.backends.net.pull_to_file(ctx.cache, ctx.destination, url, options, cancel=ctx.cancel)


def _pull_oci(ctx: DispatchContext) -> Path:
    cfg = ctx.config
    credentials = _docker_credentials(ctx, "While creating Docker credentials")
    options = OciPullOptions(
        tmp_dir=cfg.tmp_dir,
        credentials=credentials,
        docker_host=cfg.docker_host,
        no_https=cfg.no_https,
        no_cleanup=cfg.no_cleanup,
        oci_sif=cfg.oci_sif,
    )
    return ctx.backends.oci.pull_to_file(ctx.cache, ctx.destination, ctx.locator, options, cancel=ctx.cancel)


def default_routes() -> tuple[Route, ...]:
    return (
        Route(LIBRARY, lambda t, _: t in (LIBRARY, UNSPECIFIED), _pull_library, "While pulling library image"),
        Route(SHUB, lambda t, _: t == SHUB, _pull_shub, "While pulling shub image"),
        Route(ORAS, lambda t, _: t == ORAS, _pull_oras, "While pulling image from oci registry"),
        Route("net", lambda t, _: t in (HTTP, HTTPS), _pull_net, "While pulling from image from http(s)"),
        Route("oci", lambda t, b: b.oci.is_supported(t), _pull_oci, "While making image from oci registry"),
    )


class BackendDispatcher:
    def __init__(self, backends: BackendSet, routes: tuple[Route, ...] | None = None):
        self.backends = backends
        self.routes = routes if routes is not None else default_routes()

    def select(self, transport: str) -> Route:
        for route in self.routes:
            if route.matches(transport, self.backends):
                return route
        raise UnsupportedTransportError(transport)

    def dispatch(self, ctx: DispatchContext) -> Path:
        route = self.select(ctx.transport)
        logger.info("Dispatching pull", route=route.name, transport=ctx.transport, dest=str(ctx.destination))
        try:
            return route.pull(ctx)
        except PullError:
            raise
        except LibraryPullUnsigned as exc:
            if route.name == LIBRARY:
                raise
            raise BackendError(ctx.transport, route.failure, exc) from exc
        except Exception as exc:
            logger.error("Backend failed", route=route.name, error=str(exc))
            raise BackendError(ctx.transport, route.failure, exc) from exc
