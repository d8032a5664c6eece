"""Auth module - state tokens and PKCE."""

from .pkce import compute_code_challenge, generate_code_verifier, generate_random_string
from .state import StateToken, generate_state, validate_state

__all__ = [
    "StateToken",
    "generate_state",
    "validate_state",
    "compute_code_challenge",
    "generate_code_verifier",
    "generate_random_string",
]
