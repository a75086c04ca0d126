"""Comment count resolution for the host page and the discussion widget."""

from __future__ import annotations

import logging
import re
from typing import Iterable, Optional, Pattern

from bs4 import BeautifulSoup, Tag
from playwright.async_api import (
    Error as PlaywrightError,
    Frame,
    Page,
    TimeoutError as PlaywrightTimeoutError,
)

from .config import CrawlConfig
from .utils import normalize_space

logger = logging.getLogger("blog_crawler")

LABEL_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6", "span", "div", "p", "a", "button", "strong", "em"]
WIDGET_LABEL_TAGS = ["h1", "h2", "h3", "span", "div", "p", "a", "button", "strong", "em"]
LEGACY_HEADER_SELECTOR = "#comments h2, #comments h3, .comments h2, .comments h3"

COMMENT_LABEL_PATTERN = re.compile(r"^(\d+)\s+Comments?$", re.IGNORECASE)
WIDGET_LABEL_PATTERN = re.compile(r"^(\d+)\s+Comment(?:s|\(s\))?$", re.IGNORECASE)


def max_label_count(elements: Iterable[Tag], pattern: Pattern[str] = COMMENT_LABEL_PATTERN) -> int:
    """Largest integer among elements whose whole text matches ``pattern``."""
    best = 0
    for element in elements:
        match = pattern.match(normalize_space(element.get_text()))
        if match:
            best = max(best, int(match.group(1)))
    return best


def elements_after(container: Tag) -> Iterable[Tag]:
    """Label candidates following ``container`` in document order, excluding its descendants."""
    inside = {id(tag) for tag in container.find_all(True)}
    return [tag for tag in container.find_all_next(LABEL_TAGS) if id(tag) not in inside]


def resolve_comment_count(soup: BeautifulSoup, container: Optional[Tag]) -> int:
    """Scan the host document for an "N Comments" label.

    Labels after the article body are preferred, then the whole page, then
    the headers of older comment sections.
    """
    count = 0
    if container is not None:
        count = max_label_count(elements_after(container))
    if not count:
        count = max_label_count(soup.find_all(LABEL_TAGS))
    if not count:
        count = max_label_count(soup.select(LEGACY_HEADER_SELECTOR))
    return count


async def _await_widget_frame(page: Page, config: CrawlConfig) -> Optional[Frame]:
    """Wait for the discussion iframe to attach; None when it never shows up."""
    try:
        await page.wait_for_selector(
            f'iframe[src*="{config.widget_domain}"]',
            timeout=config.widget_selector_timeout * 1000,
        )
    except PlaywrightTimeoutError:
        logger.debug("No %s iframe on %s", config.widget_domain, page.url)

    for _ in range(config.widget_poll_attempts):
        for frame in page.frames:
            if config.widget_domain in (frame.url or ""):
                return frame
        await page.wait_for_timeout(config.widget_poll_interval * 1000)
    return None


async def probe_discussion_widget(page: Page, config: CrawlConfig) -> int:
    """Read the comment count rendered inside the embedded discussion widget.

    Returns 0 when the widget is absent, does not render in time, or shows no
    matching label.
    """
    try:
        frame = await _await_widget_frame(page, config)
        if frame is None:
            return 0
        await frame.wait_for_timeout(config.widget_render_wait * 1000)
        html = await frame.content()
    except PlaywrightError as exc:
        logger.debug("Discussion widget probe failed on %s: %s", page.url, exc)
        return 0

    soup = BeautifulSoup(html, "html.parser")
    count = max_label_count(soup.find_all(WIDGET_LABEL_TAGS), WIDGET_LABEL_PATTERN)
    logger.debug("Discussion widget on %s reports %d comment(s)", page.url, count)
    return count
