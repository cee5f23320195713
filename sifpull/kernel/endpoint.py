"""
Library and keyserver configuration derived from the remote endpoint.
"""
from sifpull.internal.config import RemoteEndpointConfig
from sifpull.kernel.contracts import KeyserverConfig, LibraryClientConfig
from sifpull.kernel.errors import ConfigurationError


def resolve_library_uri(library_uri: str, ref_host: str, no_https: bool) -> str:
    """
    Effective library URI: explicit override, then the host embedded in the
    reference, otherwise "" meaning the endpoint's own library.
    """
    if library_uri:
        return library_uri
    if ref_host:
        scheme = "http" if no_https else "https"
        return f"{scheme}://{ref_host}"
    return ""


def library_client_config(endpoint: RemoteEndpointConfig, uri: str = "") -> LibraryClientConfig:
    base_url = (uri or endpoint.library_uri).rstrip("/")
    if not base_url.startswith(("http://", "https://")):
        raise ConfigurationError(f"Unable to get library client configuration: invalid library URI {base_url!r}")

    # the endpoint token is only sent to the endpoint's own library
    token = endpoint.token if base_url == endpoint.library_uri.rstrip("/") else None
    return LibraryClientConfig(base_url=base_url, auth_token=token)


def keyserver_client_config(endpoint: RemoteEndpointConfig, operation: str = "verify") -> KeyserverConfig:
    if not endpoint.keyserver_uris:
        raise ConfigurationError("Unable to get keyserver client configuration: no keyserver configured")
    return KeyserverConfig(uris=tuple(endpoint.keyserver_uris), operation=operation, token=endpoint.token)
