"""Default HTTP transport built on requests."""

import logging
from dataclasses import dataclass, field
from typing import Mapping, Optional

import requests
from requests.structures import CaseInsensitiveDict

from ..config import DEFAULT_TIMEOUT, USER_AGENT
from ..errors import NetworkError

__all__ = ["HttpResponse", "HttpTransport"]

logger = logging.getLogger(__name__)


@dataclass
class HttpResponse:
    """A single HTTP response, redirects not followed."""

    status: int
    headers: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)
    body: str = ""
    url: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def content_type(self) -> str:
        return self.headers.get("Content-Type", "")


class HttpTransport:
    """Performs one HTTP round trip per call.

    Handles:
    - Session management
    - User-Agent header
    - Translating requests exceptions into NetworkError

    Redirects are never followed; discovery interprets them itself.
    """

    def __init__(
        self,
        timeout: int = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        """Initialize transport.

        Args:
            timeout: Request timeout in seconds
            session: Optional requests session (for dependency injection/testing)
        """
        self.timeout = timeout
        self._session = session or requests.Session()
        self._owns_session = session is None  # Track if we created the session

    def request(
        self,
        method: str,
        url: str,
        headers: Optional[Mapping[str, str]] = None,
        data: Optional[Mapping[str, str]] = None,
    ) -> HttpResponse:
        """Make a request.

        Args:
            method: HTTP method
            url: Absolute URL
            headers: Extra request headers
            data: Form fields, sent form-encoded

        Returns:
            HttpResponse for any status code

        Raises:
            NetworkError: If no response was received
        """
        request_headers = {"User-Agent": USER_AGENT}
        if headers:
            request_headers.update(headers)

        logger.debug(f"{method} {url}")
        try:
            response = self._session.request(
                method,
                url,
                headers=request_headers,
                data=data,
                timeout=self.timeout,
                allow_redirects=False,
            )
        except requests.exceptions.Timeout as e:
            raise NetworkError(f"Request to {url} timed out") from e
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"Cannot connect to {url}: {e}") from e

        return HttpResponse(
            status=response.status_code,
            headers=CaseInsensitiveDict(response.headers),
            body=response.text,
            url=url,
        )

    def close(self) -> None:
        """Close the session if we own it."""
        if self._owns_session and self._session is not None:
            self._session.close()
            self._session = None

    def __enter__(self) -> "HttpTransport":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
