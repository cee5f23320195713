"""
Remote endpoint configuration.

The remote endpoint names the library service and keyservers a pull talks to
when the caller gives no explicit location. It is read from
``~/.sifpull/remote.json`` when present; environment variables override
individual fields. Everything here is resolved once, at the CLI boundary,
and handed to the kernel as an immutable value.
"""
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from sifpull.internal import paths
from sifpull.internal.constants import DEFAULT_KEYSERVER_URI, DEFAULT_LIBRARY_URI
from sifpull.internal.logging import get_logger

logger = get_logger(__name__)


class RemoteEndpointConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    library_uri: str = DEFAULT_LIBRARY_URI
    keyserver_uris: tuple[str, ...] = Field(default=(DEFAULT_KEYSERVER_URI,))
    token: Optional[str] = Field(default=None, repr=False)

    @field_validator("library_uri")
    @classmethod
    def _check_library_uri(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"library URI must be http(s): {v}")
        return v.rstrip("/")

    @field_validator("keyserver_uris")
    @classmethod
    def _check_keyserver_uris(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(uri.rstrip("/") for uri in v if uri)


def load_remote_endpoint(config_path: Path | None = None) -> RemoteEndpointConfig:
    """
    Load the remote endpoint, falling back to defaults when no file exists.

    Raises RuntimeError when the file exists but is not a valid endpoint.
    """
    path = config_path or paths.get_remote_config_path()
    data = {}
    if path.exists():
        try:
            data = RemoteEndpointConfig.model_validate_json(path.read_text(encoding="utf-8")).model_dump()
        except ValidationError as exc:
            raise RuntimeError(f"Invalid remote endpoint configuration {path}: {exc}") from exc
        logger.debug("Loaded remote endpoint", path=str(path))

    if os.environ.get("SIFPULL_LIBRARY_URI"):
        data["library_uri"] = os.environ["SIFPULL_LIBRARY_URI"]
    if os.environ.get("SIFPULL_KEYSERVER_URI"):
        data["keyserver_uris"] = (os.environ["SIFPULL_KEYSERVER_URI"],)
    if os.environ.get("SIFPULL_LIBRARY_TOKEN"):
        data["token"] = os.environ["SIFPULL_LIBRARY_TOKEN"]

    try:
        return RemoteEndpointConfig(**data)
    except ValidationError as exc:
        raise RuntimeError(f"Invalid remote endpoint configuration: {exc}") from exc
