"""Endpoint discovery: URL canonicalization and redirect handling.

https://indieauth.spec.indieweb.org/#discovery-by-clients

Redirect rules while fetching the user's URL:
- 301/308 (permanent): the target becomes the canonical URL
- 302/307 (temporary): content comes from the target, but the URL that was
  redirected stays canonical
"""

import logging
from typing import Iterable, Mapping, Optional
from urllib.parse import urljoin, urlsplit, urlunsplit

from ..config import MAX_REDIRECTS
from ..errors import NetworkError, ValidationError
from ..validate import validate_url
from .http_client import HttpResponse
from .protocols import Transport

__all__ = [
    "AUTHORIZATION_ENDPOINT",
    "TOKEN_ENDPOINT",
    "canonicalize_url",
    "resolve_with_redirects",
    "select_endpoints",
]

logger = logging.getLogger(__name__)

AUTHORIZATION_ENDPOINT = "authorization_endpoint"
TOKEN_ENDPOINT = "token_endpoint"

PERMANENT_REDIRECTS = (301, 308)
TEMPORARY_REDIRECTS = (302, 307)
DEFAULT_PORTS = {"http": 80, "https": 443}

DISCOVERY_HEADERS = {"Accept": "text/html,application/xhtml+xml"}


def canonicalize_url(url: str) -> str:
    """Canonicalize a URL.

    Lower-cases scheme and host, drops the default port and the fragment,
    and uses "/" for an empty path.

    Raises:
        ValidationError: If the URL is not an absolute http(s) URL
    """
    validate_url(url)
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    host = parts.hostname or ""
    if ":" in host:
        host = f"[{host}]"
    netloc = host
    if parts.username is not None:
        userinfo = parts.username
        if parts.password is not None:
            userinfo += f":{parts.password}"
        netloc = f"{userinfo}@{host}"
    if parts.port is not None and parts.port != DEFAULT_PORTS[scheme]:
        netloc += f":{parts.port}"
    return urlunsplit((scheme, netloc, parts.path or "/", parts.query, ""))


def resolve_with_redirects(
    transport: Transport,
    url: str,
    max_redirects: int = MAX_REDIRECTS,
) -> HttpResponse:
    """Fetch a URL, following redirects by hand.

    Args:
        transport: Transport that does not follow redirects itself
        url: Canonical URL to fetch
        max_redirects: Maximum number of redirects to follow

    Returns:
        The final 2xx response, with `url` set to the canonical URL

    Raises:
        NetworkError: On transport failure, a non-2xx final response, a
            redirect without Location, or too many redirects
    """
    canonical = url
    current = url
    followed_temporary = False

    for _ in range(max_redirects + 1):
        try:
            response = transport.request("GET", current, headers=DISCOVERY_HEADERS)
        except NetworkError as e:
            if followed_temporary:
                raise NetworkError(
                    f"Error following redirects for {canonical}", e.status_code
                ) from e
            raise

        if response.ok:
            response.url = canonical
            return response

        is_permanent = response.status in PERMANENT_REDIRECTS
        if not is_permanent and response.status not in TEMPORARY_REDIRECTS:
            if followed_temporary:
                raise NetworkError(
                    f"Error following redirects for {canonical}", response.status
                )
            raise NetworkError(f"Error getting {current}", response.status)

        location = response.headers.get("Location")
        if not location:
            raise NetworkError(
                f"Redirect from {current} has no Location header", response.status
            )

        try:
            target = canonicalize_url(urljoin(current, location))
        except ValidationError as e:
            raise NetworkError(
                f"Redirect from {current} to an invalid URL", response.status
            ) from e
        logger.debug(f"{response.status} redirect {current} -> {target}")
        if is_permanent and not followed_temporary:
            canonical = target
        elif not is_permanent:
            followed_temporary = True
        current = target

    raise NetworkError("Too many redirects")


def select_endpoints(
    rels: Mapping[str, list[str]],
    extra_rels: Iterable[str] = (),
) -> dict[str, Optional[str]]:
    """Pick the first URL of each wanted rel.

    Returns:
        Mapping with authorization_endpoint, token_endpoint and every extra
        rel (lower-cased); a rel that was not found maps to None
    """
    wanted = [AUTHORIZATION_ENDPOINT, TOKEN_ENDPOINT] + [rel.lower() for rel in extra_rels]
    found: dict[str, Optional[str]] = {}
    for rel in wanted:
        values = rels.get(rel) or []
        found[rel] = values[0] if values else None
    return found
