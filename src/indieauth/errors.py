"""Error types raised by the IndieAuth client."""

from typing import Optional

__all__ = [
    "IndieAuthError",
    "ValidationError",
    "ConfigurationError",
    "ProtocolError",
    "NetworkError",
]


class IndieAuthError(Exception):
    """Base IndieAuth error.

    Carries the HTTP status code of the response that caused it, when known.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ValidationError(IndieAuthError, ValueError):
    """A value is not an absolute http(s) URL."""

    pass


class ConfigurationError(IndieAuthError):
    """A required option is missing."""

    pass


class ProtocolError(IndieAuthError):
    """A remote party or a state token violated the protocol."""

    pass


class NetworkError(IndieAuthError):
    """Transport failure or an unusable redirect chain."""

    pass
