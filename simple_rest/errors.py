"""Error taxonomy for simple-rest.

Every failure surfaced by the client is a RestError. Subclasses tag the
failure kind so callers can branch with ``except`` clauses instead of
inspecting message text:

    TransportError           - DNS, refused connection, I/O while reading/writing
    TrustConfigurationError  - TLS trust material could not be built
    StatusError              - the server answered with status >= 400
    SerializationError       - a payload could not be converted to JSON
    DeserializationError     - a body could not be parsed into the requested type
    ConfigError              - a configuration file is missing or invalid
"""

from __future__ import annotations

# Longest error body embedded in a StatusError message
MAX_ERROR_BODY_LENGTH = 500


class RestError(Exception):
    """Base class for simple-rest errors.

    Can be created from a message, a message and a cause, or only a cause
    (the message is then taken from the cause).
    """

    def __init__(self, message: str | None = None, cause: BaseException | None = None) -> None:
        if message is None:
            message = str(cause) if cause is not None else ""
        super().__init__(message)
        self.message = message
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause


class TransportError(RestError):
    """Raised when a request fails before a response could be read."""


class TrustConfigurationError(RestError):
    """Raised when the TLS trust policy cannot be resolved."""


class SerializationError(RestError):
    """Raised when a request payload cannot be serialized."""


class DeserializationError(RestError):
    """Raised when a response body cannot be deserialized into a target type."""


class ConfigError(RestError):
    """Raised when configuration loading fails."""


class StatusError(RestError):
    """Raised when a call completes with a status code >= 400.

    The (trimmed) error body is kept so callers do not have to re-fetch it.
    """

    def __init__(self, method: str, url: str, status_code: int, body: str = "") -> None:
        self.method = method
        self.url = url
        self.status_code = status_code
        self.body = _truncate(body.strip()) if body else ""
        message = f"{method} {url} failed with status {status_code}"
        if self.body:
            message = f"{message}: {self.body}"
        super().__init__(message)


def _truncate(text: str) -> str:
    if len(text) <= MAX_ERROR_BODY_LENGTH:
        return text
    return text[:MAX_ERROR_BODY_LENGTH] + "..."
