"""Link relation parsing from HTTP headers and HTML."""

import logging
from typing import Mapping
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from requests.utils import parse_header_links

__all__ = ["extract_relations"]

logger = logging.getLogger(__name__)


def _add(rels: dict[str, list[str]], names, href: str) -> None:
    if isinstance(names, str):
        names = names.split()
    for name in names:
        values = rels.setdefault(name.lower(), [])
        if href not in values:
            values.append(href)


def extract_relations(
    url: str, body: str, headers: Mapping[str, str]
) -> dict[str, list[str]]:
    """Collect rel values advertised by a fetched page.

    HTTP Link headers come first, then <link> and <a> elements in document
    order. Relative hrefs are resolved against the document base.

    Args:
        url: Final URL of the document
        body: Response body
        headers: Response headers (case-insensitive mapping)

    Returns:
        Mapping of lower-cased rel name to the list of URLs found
    """
    rels: dict[str, list[str]] = {}

    link_header = headers.get("Link") if headers else None
    if link_header:
        for link in parse_header_links(link_header):
            if link.get("url") and link.get("rel"):
                _add(rels, link["rel"], urljoin(url, link["url"]))

    if not body:
        return rels

    soup = BeautifulSoup(body, "lxml")
    base_url = url
    base_tag = soup.find("base", href=True)
    if base_tag:
        base_url = urljoin(url, base_tag["href"])

    for tag in soup.find_all(["link", "a"], rel=True, href=True):
        _add(rels, tag["rel"], urljoin(base_url, tag["href"].strip()))

    logger.debug(f"Found rels at {url}: {sorted(rels)}")
    return rels
