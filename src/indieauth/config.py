"""Configuration management for the IndieAuth client."""

import json
import logging
from pathlib import Path
from typing import Optional, Union

from platformdirs import user_config_dir, user_log_dir

from .validate import validate_url

__all__ = [
    "ClientConfiguration",
    "setup_logging",
    "STATE_TIMEOUT_SECONDS",
    "MAX_REDIRECTS",
    "DEFAULT_TIMEOUT",
    "USER_AGENT",
]

logger = logging.getLogger(__name__)

APP_NAME = "indieauth-client"
APP_AUTHOR = "indieauth"
VERSION = "1.0.0"

USER_AGENT = f"indieauth-client/{VERSION}"

# Protocol limits
STATE_TIMEOUT_SECONDS = 10 * 60
MAX_REDIRECTS = 10
DEFAULT_TIMEOUT = 30  # seconds

URL_FIELDS = ("me", "client_id", "redirect_uri", "auth_endpoint", "token_endpoint")
OPAQUE_FIELDS = ("secret", "code_verifier", "state")


class ClientConfiguration:
    """Identity and endpoint settings for one IndieAuth client.

    URL fields are validated on every assignment, so an instance never holds
    a value that is not an absolute http(s) URL. Unset fields are None; an
    empty string is treated as unset.
    """

    def __init__(
        self,
        me: Optional[str] = None,
        client_id: Optional[str] = None,
        redirect_uri: Optional[str] = None,
        auth_endpoint: Optional[str] = None,
        token_endpoint: Optional[str] = None,
        secret: Optional[str] = None,
        code_verifier: Optional[str] = None,
        state: Optional[str] = None,
    ):
        self._me: Optional[str] = None
        self._client_id: Optional[str] = None
        self._redirect_uri: Optional[str] = None
        self._auth_endpoint: Optional[str] = None
        self._token_endpoint: Optional[str] = None
        self.secret = secret
        self.code_verifier = code_verifier
        self.state = state

        self.update(
            me=me,
            client_id=client_id,
            redirect_uri=redirect_uri,
            auth_endpoint=auth_endpoint,
            token_endpoint=token_endpoint,
        )

    @staticmethod
    def _checked(value: Optional[str]) -> Optional[str]:
        if value is None or value == "":
            return None
        validate_url(value)
        return value

    @property
    def secret(self) -> Optional[str]:
        return self._secret

    @secret.setter
    def secret(self, value: Optional[str]) -> None:
        self._secret = value or None

    @property
    def code_verifier(self) -> Optional[str]:
        return self._code_verifier

    @code_verifier.setter
    def code_verifier(self, value: Optional[str]) -> None:
        self._code_verifier = value or None

    @property
    def state(self) -> Optional[str]:
        return self._state

    @state.setter
    def state(self, value: Optional[str]) -> None:
        self._state = value or None

    @property
    def me(self) -> Optional[str]:
        return self._me

    @me.setter
    def me(self, value: Optional[str]) -> None:
        self._me = self._checked(value)

    @property
    def client_id(self) -> Optional[str]:
        return self._client_id

    @client_id.setter
    def client_id(self, value: Optional[str]) -> None:
        self._client_id = self._checked(value)

    @property
    def redirect_uri(self) -> Optional[str]:
        return self._redirect_uri

    @redirect_uri.setter
    def redirect_uri(self, value: Optional[str]) -> None:
        self._redirect_uri = self._checked(value)

    @property
    def auth_endpoint(self) -> Optional[str]:
        return self._auth_endpoint

    @auth_endpoint.setter
    def auth_endpoint(self, value: Optional[str]) -> None:
        self._auth_endpoint = self._checked(value)

    @property
    def token_endpoint(self) -> Optional[str]:
        return self._token_endpoint

    @token_endpoint.setter
    def token_endpoint(self, value: Optional[str]) -> None:
        self._token_endpoint = self._checked(value)

    def update(self, **changes: Optional[str]) -> None:
        """Apply several changes at once.

        Every URL field is validated before any field is assigned, so a
        failing update leaves the configuration untouched.

        Raises:
            ValidationError: If a URL field is invalid
            TypeError: For an unknown field name
        """
        unknown = set(changes) - set(URL_FIELDS) - set(OPAQUE_FIELDS)
        if unknown:
            raise TypeError(f"Unknown configuration fields: {', '.join(sorted(unknown))}")

        for name in URL_FIELDS:
            if name in changes:
                self._checked(changes[name])

        for name, value in changes.items():
            setattr(self, name, value)

    @classmethod
    def get_config_dir(cls) -> Path:
        """Get the configuration directory path."""
        return Path(user_config_dir(APP_NAME, APP_AUTHOR))

    @classmethod
    def get_log_dir(cls) -> Path:
        """Get the log directory path."""
        return Path(user_log_dir(APP_NAME, APP_AUTHOR))

    @classmethod
    def get_config_file(cls) -> Path:
        """Get the config file path."""
        return cls.get_config_dir() / "client.json"

    @classmethod
    def from_dict(cls, data: dict) -> "ClientConfiguration":
        """Create a configuration from a dictionary, ignoring unknown keys."""
        known = URL_FIELDS + OPAQUE_FIELDS
        return cls(**{k: v for k, v in data.items() if k in known})

    @classmethod
    def load(cls, path: Optional[Union[str, Path]] = None) -> "ClientConfiguration":
        """Load client settings from a JSON file, or return an empty configuration.

        Raises:
            ValidationError: If the file holds an invalid URL
        """
        config_file = Path(path) if path is not None else cls.get_config_file()
        if not config_file.exists():
            return cls()
        try:
            with open(config_file, "r") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to load config: {e}, using defaults")
            return cls()
        if not isinstance(data, dict):
            logger.warning(f"Ignoring config file {config_file}: expected an object")
            return cls()
        return cls.from_dict(data)

    def to_dict(self) -> dict:
        """Return the URL fields. Secret, state and verifier are left out."""
        return {name: getattr(self, name) for name in URL_FIELDS}

    def __repr__(self) -> str:
        fields = ", ".join(f"{name}={getattr(self, name)!r}" for name in URL_FIELDS)
        return f"ClientConfiguration({fields})"


def setup_logging(debug: bool = False, log_to_file: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if debug else logging.INFO
    format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_to_file:
        log_dir = ClientConfiguration.get_log_dir()
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_dir / "indieauth-client.log"))

    logging.basicConfig(level=level, format=format_str, handlers=handlers)

    # Reduce noise from libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)
