"""IndieAuth client - endpoint discovery, state, PKCE and code exchange."""

from .client import IndieAuthClient, TokenResult
from .config import ClientConfiguration, setup_logging
from .errors import (
    ConfigurationError,
    IndieAuthError,
    NetworkError,
    ProtocolError,
    ValidationError,
)
from .validate import validate_url

__version__ = "1.0.0"

__all__ = [
    "IndieAuthClient",
    "TokenResult",
    "ClientConfiguration",
    "setup_logging",
    "validate_url",
    "IndieAuthError",
    "ValidationError",
    "ConfigurationError",
    "ProtocolError",
    "NetworkError",
]
