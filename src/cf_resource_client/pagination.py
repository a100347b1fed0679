"""Walk paginated Cloud Controller listings into one ordered collection.

The ``next_url`` chain is authoritative: walking stops when the claimed page
count is used up or when a page has no next link, whichever comes first.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from .decoders import Decoder
from .errors import ResponseDecodeError
from .executor import RequestExecutor

logger = logging.getLogger("cf-page-walker")


@dataclass(frozen=True)
class Page:
    resources: List[Any] = field(default_factory=list)
    total_pages: int = 1
    next_url: Optional[str] = None


def _v3_next_url(pagination: Dict[str, Any]) -> Optional[str]:
    nxt = pagination.get("next")
    if isinstance(nxt, dict):
        return nxt.get("href")
    return nxt


def parse_page(payload: Any, url: Optional[str] = None) -> Page:
    """Read a v2 (``total_pages``/``next_url``) or v3 (``pagination``) page."""

    if not isinstance(payload, dict):
        raise ResponseDecodeError("Page payload is not a JSON object", url=url)

    resources = payload.get("resources", [])
    if not isinstance(resources, list):
        raise ResponseDecodeError("Page 'resources' is not a list", url=url)

    pagination = payload.get("pagination")
    if isinstance(pagination, dict):
        total_pages = pagination.get("total_pages")
        next_url = _v3_next_url(pagination)
    else:
        total_pages = payload.get("total_pages")
        next_url = payload.get("next_url")

    try:
        total_pages = 1 if total_pages is None else int(total_pages)
    except (TypeError, ValueError) as exc:
        raise ResponseDecodeError(f"Invalid total_pages: {total_pages!r}", url=url) from exc

    if next_url is not None and not isinstance(next_url, str):
        raise ResponseDecodeError(f"Invalid next_url: {next_url!r}", url=url)

    return Page(resources=resources, total_pages=total_pages, next_url=next_url or None)


class PageWalker:
    def __init__(self, executor: RequestExecutor) -> None:
        self._executor = executor

    def _fetch_page(self, endpoint: str) -> Page:
        return parse_page(self._executor.get_json(endpoint), url=endpoint)

    def iter_pages(self, start_endpoint: str) -> Iterator[Page]:
        page = self._fetch_page(start_endpoint)
        claimed = page.total_pages
        pages_remaining = claimed - 1
        walked = 1
        yield page

        while pages_remaining > 0 and page.next_url:
            logger.debug("Following next page %s (%d remaining)", page.next_url, pages_remaining)
            page = self._fetch_page(page.next_url)
            pages_remaining -= 1
            walked += 1
            yield page

        expected = max(claimed, 1)
        if walked != expected or page.next_url:
            logger.warning(
                "Listing %s claimed %d page(s) but %d were walked%s",
                start_endpoint,
                claimed,
                walked,
                " and a next page link was left unfollowed" if page.next_url else "",
            )

    def fetch_all_pages(self, start_endpoint: str, decoder: Optional[Decoder] = None) -> List[Any]:
        """Return every resource of the listing at ``start_endpoint``.

        Any failure aborts the walk; records gathered so far are dropped.
        """

        resource_list: List[Any] = []
        for page in self.iter_pages(start_endpoint):
            resource_list.extend(page.resources)

        if decoder is None:
            return resource_list
        try:
            return [decoder(record) for record in resource_list]
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise ResponseDecodeError(
                f"Could not decode a resource from {start_endpoint}: {exc!r}",
                url=start_endpoint,
            ) from exc
