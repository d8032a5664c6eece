"""Protocol types for IndieAuthClient collaborators.

Defines the interfaces the client requires for network access and link
relation parsing, so either can be replaced (or faked in tests).
"""

from typing import Mapping, Optional, Protocol, runtime_checkable

from .http_client import HttpResponse


@runtime_checkable
class Transport(Protocol):
    """Performs one HTTP round trip without following redirects."""

    def request(
        self,
        method: str,
        url: str,
        headers: Optional[Mapping[str, str]] = None,
        data: Optional[Mapping[str, str]] = None,
    ) -> HttpResponse: ...


@runtime_checkable
class RelationExtractor(Protocol):
    """Maps (final url, body, headers) to {rel: [url, ...]}."""

    def __call__(
        self, url: str, body: str, headers: Mapping[str, str]
    ) -> dict[str, list[str]]: ...
