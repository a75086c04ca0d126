"""Article link discovery on the blog listing page."""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Set, Tuple

from bs4 import BeautifulSoup, Tag

from .config import CrawlConfig
from .models import ArticleReference
from .utils import absolute_url, normalize_space, strip_byline_prefix

logger = logging.getLogger("blog_crawler")

SEED_AUTHOR_SELECTOR = '[rel="author"], .author a, .byline a, .byline, .post-author, .entry-author'
SEED_TIME_SELECTOR = "time[datetime], time, .date, .entry-date, .posted-on time"
MIN_TITLE_CHARS = 5

INDEX_PATH_PATTERN = re.compile(r"/blogs/?$")
TAXONOMY_PATTERN = re.compile(r"/(category|tag|author)/")
PAGINATION_PATTERN = re.compile(r"[?&](paged|page)=", re.IGNORECASE)


def is_article_href(href: str, config: CrawlConfig) -> bool:
    """Return True for links that follow the single-article URL convention."""
    if not href or config.article_path_marker not in href:
        return False
    if INDEX_PATH_PATTERN.search(href):
        return False
    if TAXONOMY_PATTERN.search(href):
        return False
    if PAGINATION_PATTERN.search(href):
        return False
    return "#" not in href


def _seed_time(element: Tag) -> str:
    return normalize_space(element.get("datetime")) or normalize_space(element.get_text())


def _nearby_seed(link: Tag, depth: int) -> Tuple[str, str]:
    """Walk up from ``link`` looking for author and time markup close to it."""
    author = ""
    published = ""
    node: Optional[Tag] = link
    for _ in range(depth):
        if node is None:
            break
        if not author:
            author_el = node.select_one(SEED_AUTHOR_SELECTOR)
            if author_el is not None:
                author = strip_byline_prefix(normalize_space(author_el.get_text()))
        if not published:
            time_el = node.select_one(SEED_TIME_SELECTOR)
            if time_el is not None:
                published = _seed_time(time_el)
        node = node.parent
    return author, published


def discover_articles(html: str, page_url: str, config: CrawlConfig) -> List[ArticleReference]:
    """Collect article references from a listing page, first occurrence wins."""
    soup = BeautifulSoup(html or "", "html.parser")
    seen: Set[str] = set()
    references: List[ArticleReference] = []

    for link in soup.find_all("a", href=True):
        href = absolute_url(link.get("href"), page_url)
        if not is_article_href(href, config) or href in seen:
            continue
        title = normalize_space(link.get_text())
        if len(title) < MIN_TITLE_CHARS:
            continue
        author, published = _nearby_seed(link, config.seed_ancestor_depth)
        references.append(
            ArticleReference(url=href, seed_title=title, seed_author=author, seed_time=published)
        )
        seen.add(href)

    logger.info("Discovered %d article link(s) on %s", len(references), page_url)
    return references[: config.max_listing_links]
