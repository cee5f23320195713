"""
Error taxonomy of the pull kernel.

Every fatal condition is a PullError carrying an ErrorKind. The one non-fatal
backend outcome, LibraryPullUnsigned, is intentionally outside that hierarchy
so it can never be mistaken for a failure.
"""
from enum import Enum


class ErrorKind(str, Enum):
    MALFORMED_INPUT = "malformed_input"
    UNSUPPORTED_TRANSPORT = "unsupported_transport"
    CONFIG_CONFLICT = "config_conflict"
    DESTINATION_EXISTS = "destination_exists"
    CONFIGURATION = "configuration"
    CACHE = "cache"
    BACKEND = "backend"


class PullError(Exception):
    kind = ErrorKind.BACKEND

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MalformedInputError(PullError):
    kind = ErrorKind.MALFORMED_INPUT


class UnsupportedTransportError(PullError):
    kind = ErrorKind.UNSUPPORTED_TRANSPORT

    def __init__(self, transport: str):
        super().__init__(f"Unsupported transport type: {transport}")
        self.transport = transport


class ConfigConflictError(PullError):
    kind = ErrorKind.CONFIG_CONFLICT


class DestinationExistsError(PullError):
    kind = ErrorKind.DESTINATION_EXISTS

    def __init__(self, path):
        super().__init__(f'Image file already exists: "{path}" - will not overwrite')
        self.path = path


class ConfigurationError(PullError):
    kind = ErrorKind.CONFIGURATION


class CacheError(PullError):
    kind = ErrorKind.CACHE


class BackendError(PullError):
    """A backend adapter failed. The original exception is chained as __cause__."""
    kind = ErrorKind.BACKEND

    def __init__(self, transport: str, prefix: str, cause: BaseException):
        super().__init__(f"{prefix}: {cause}")
        self.transport = transport
        self.__cause__ = cause


class LibraryPullUnsigned(Exception):
    """The library image was pulled and kept, but could not be verified."""

    def __init__(self, message: str = "image pulled but not verified"):
        super().__init__(message)


class PullCancelled(RuntimeError):
    """Raised by an adapter when the caller's cancel token is set."""

    def __init__(self, message: str = "pull cancelled"):
        super().__init__(message)
