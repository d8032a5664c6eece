"""Net module - HTTP transport, link relations and endpoint discovery."""

from .discovery import canonicalize_url, resolve_with_redirects, select_endpoints
from .http_client import HttpResponse, HttpTransport
from .protocols import RelationExtractor, Transport
from .rels import extract_relations

__all__ = [
    "HttpResponse",
    "HttpTransport",
    "Transport",
    "RelationExtractor",
    "extract_relations",
    "canonicalize_url",
    "resolve_with_redirects",
    "select_endpoints",
]
