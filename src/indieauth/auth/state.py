"""Self-contained, encrypted state values for CSRF protection.

The state round-trips through the authorization endpoint. Instead of caching
it server-side, the client encrypts {date, me, clientId} with its secret and
checks the decrypted payload when the callback arrives:

1. Decrypt with the secret (failure -> "Invalid state")
2. Check all properties are present and have the right types
3. Check the state is no older than STATE_TIMEOUT_SECONDS
4. Check "me" (when the caller expects one) and "clientId" match
"""

import base64
import hashlib
import json
import logging
import time
from dataclasses import dataclass
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from ..config import STATE_TIMEOUT_SECONDS
from ..errors import ProtocolError

__all__ = ["StateToken", "generate_state", "validate_state"]

logger = logging.getLogger(__name__)

REQUIRED_PROPERTIES = ("date", "me", "clientId")


@dataclass
class StateToken:
    """Decrypted state payload."""

    date: float
    me: str
    client_id: str


def _fernet(secret: str) -> Fernet:
    # Fernet wants 32 url-safe base64 encoded bytes; any secret is accepted
    key = hashlib.sha256(secret.encode("utf-8")).digest()
    return Fernet(base64.urlsafe_b64encode(key))


def generate_state(me: str, client_id: str, secret: str) -> str:
    """Generate an encrypted state value that doesn't need to be cached.

    Args:
        me: The user's URL
        client_id: The client ID the state is bound to
        secret: Secret used for encryption

    Returns:
        Opaque URL-safe state string (different on every call)
    """
    payload = json.dumps({"date": time.time(), "me": me, "clientId": client_id})
    return _fernet(secret).encrypt(payload.encode("utf-8")).decode("ascii")


def validate_state(
    state: str,
    client_id: str,
    secret: str,
    me: Optional[str] = None,
) -> StateToken:
    """Decrypt and check a state value created by generate_state.

    Args:
        state: The state string received in the callback
        client_id: Client ID the state must be bound to
        secret: Secret used for decryption
        me: Expected user URL, checked only when given

    Returns:
        The decoded StateToken

    Raises:
        ProtocolError: If the state is invalid, expired or does not match
    """
    try:
        decrypted = _fernet(secret).decrypt(state.encode("utf-8"))
        data = json.loads(decrypted)
    except (InvalidToken, ValueError, TypeError, AttributeError) as e:
        raise ProtocolError("Invalid state") from e

    if not isinstance(data, dict) or any(key not in data for key in REQUIRED_PROPERTIES):
        raise ProtocolError("State is missing required properties")

    date = data["date"]
    if (
        isinstance(date, bool)
        or not isinstance(date, (int, float))
        or not isinstance(data["me"], str)
        or not isinstance(data["clientId"], str)
    ):
        raise ProtocolError("State has invalid property types")

    if time.time() - date > STATE_TIMEOUT_SECONDS:
        raise ProtocolError("State has expired")

    if me is not None and data["me"] != me:
        raise ProtocolError("State me does not match")

    if data["clientId"] != client_id:
        raise ProtocolError("State clientId does not match")

    return StateToken(date=date, me=data["me"], client_id=data["clientId"])
