"""PKCE (Proof Key for Code Exchange) utilities.

RFC 7636: https://www.rfc-editor.org/rfc/rfc7636

PKCE binds the authorization request to the token request so that an
intercepted authorization code is useless on its own:

1. Client keeps a code_verifier (secret) and sends code_challenge (derived)
   with the authorization request
2. Authorization endpoint stores code_challenge with the authorization code
3. Client sends code_verifier with the token request
4. Token endpoint verifies BASE64URL(SHA256(code_verifier)) == code_challenge
"""

import base64
import hashlib
import secrets

__all__ = [
    "CODE_CHALLENGE_METHOD",
    "compute_code_challenge",
    "generate_code_verifier",
    "generate_random_string",
]

CODE_CHALLENGE_METHOD = "S256"


def generate_code_verifier() -> str:
    """Generate a code_verifier.

    The verifier is a cryptographically random string using unreserved URI
    characters (A-Z, a-z, 0-9, -, _), 43 characters long.
    """
    return secrets.token_urlsafe(32)


def compute_code_challenge(code_verifier: str) -> str:
    """Compute code_challenge from code_verifier using S256 method.

    code_challenge = BASE64URL(SHA256(code_verifier))

    Args:
        code_verifier: The PKCE code verifier string

    Returns:
        Base64URL-encoded SHA256 hash without padding

    Example:
        >>> compute_code_challenge("dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk")
        'E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM'
    """
    digest = hashlib.sha256(code_verifier.encode("utf-8")).digest()
    # Base64URL encoding: replace +/ with -_, remove padding
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def generate_random_string(length: int = 100) -> str:
    """Generate a cryptographically random hex string.

    Args:
        length: Character count, rounded up to an even number
    """
    return secrets.token_hex((length + 1) // 2)
