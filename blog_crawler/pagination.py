"""Full-corpus enumeration through the paginated posts collection endpoint."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional, Set

import requests

from .config import CrawlConfig
from .models import ArticleReference
from .utils import parse_timestamp

logger = logging.getLogger("blog_crawler")

TOTAL_PAGES_HEADER = "X-WP-TotalPages"


class PaginatedSource:
    """Walk the JSON posts collection page by page."""

    def __init__(self, config: CrawlConfig, session: Optional[requests.Session] = None) -> None:
        self.config = config
        self.session = session or requests.Session()

    def _params(self, page: int) -> dict:
        return {
            "per_page": self.config.page_size,
            "page": page,
            "_fields": "link,date",
            "_embed": 0,
            "orderby": "date",
            "order": "desc",
        }

    @staticmethod
    def _total_pages(resp: requests.Response, current: int) -> int:
        raw = resp.headers.get(TOTAL_PAGES_HEADER)
        try:
            return int(raw) if raw is not None else current
        except ValueError:
            return current

    def fetch_page(self, page: int) -> Optional[requests.Response]:
        """GET one collection page; None when the request fails."""
        try:
            resp = self.session.get(
                self.config.collection_url,
                params=self._params(page),
                timeout=self.config.request_timeout,
            )
        except requests.RequestException as exc:
            logger.warning("Failed to fetch collection page %d: %s", page, exc)
            return None
        if not resp.ok:
            logger.warning(
                "Collection page %d returned HTTP %s; stopping", page, resp.status_code
            )
            return None
        return resp

    def enumerate_all(self, since: Optional[datetime] = None) -> List[ArticleReference]:
        """Return every article published at or after ``since``, newest first.

        Every page up to the advertised total is fetched even once the cutoff
        has been passed.
        """
        if since is not None and since.tzinfo is None:
            since = since.replace(tzinfo=timezone.utc)
        references: List[ArticleReference] = []
        page = 1
        total_pages = 1
        while True:
            resp = self.fetch_page(page)
            if resp is None:
                break
            total_pages = self._total_pages(resp, total_pages)
            try:
                items = resp.json()
            except ValueError as exc:
                logger.warning("Collection page %d is not valid JSON: %s", page, exc)
                break
            if items is None:
                items = []
            if not isinstance(items, list):
                logger.warning(
                    "Collection page %d returned %s instead of a list; stopping",
                    page,
                    type(items).__name__,
                )
                break
            for item in items:
                if not isinstance(item, dict):
                    continue
                link = item.get("link")
                if not isinstance(link, str) or not link:
                    continue
                date = item.get("date")
                if not isinstance(date, str):
                    date = ""
                published = parse_timestamp(date)
                if since is not None and published is not None and published < since:
                    continue
                references.append(ArticleReference(url=link, seed_time=date))
            logger.debug("Collection page %d/%d read", page, total_pages)
            page += 1
            if page > total_pages:
                break

        seen: Set[str] = set()
        unique: List[ArticleReference] = []
        for reference in references:
            if reference.url in seen:
                continue
            seen.add(reference.url)
            unique.append(reference)
        logger.info("Collection endpoint listed %d article(s)", len(unique))
        return unique
