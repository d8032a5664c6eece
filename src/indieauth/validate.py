"""URL validation for identity and endpoint URLs."""

from urllib.parse import urlsplit

from .errors import ValidationError

__all__ = ["validate_url", "is_valid_url"]

ALLOWED_SCHEMES = ("http", "https")


def validate_url(url: str) -> bool:
    """Check that a value is an absolute http or https URL.

    Args:
        url: Candidate URL

    Returns:
        True if the URL is acceptable

    Raises:
        ValidationError: For anything else
    """
    if not isinstance(url, str):
        raise ValidationError("Invalid URL")
    try:
        parsed = urlsplit(url)
        # Accessing .port validates the port number
        parsed.port
    except ValueError as e:
        raise ValidationError("Invalid URL") from e

    if parsed.scheme not in ALLOWED_SCHEMES or not parsed.hostname:
        raise ValidationError("Invalid URL")
    if any(char.isspace() for char in url):
        raise ValidationError("Invalid URL")
    return True


def is_valid_url(url: str) -> bool:
    """Boolean form of validate_url."""
    try:
        return validate_url(url)
    except ValidationError:
        return False
