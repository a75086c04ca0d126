"""Media discovery restricted to the article body."""

from __future__ import annotations

import logging
import re
from typing import Dict, Iterable, List, Optional, Tuple
from urllib.parse import urlsplit

from bs4 import Tag

from .config import CrawlConfig
from .utils import absolute_url, host_matches, media_key

logger = logging.getLogger("blog_crawler")

LAZY_IMAGE_ATTRIBUTES: Tuple[Tuple[str, bool], ...] = (
    ("data-flickity-lazyload-src", False),
    ("data-flickity-lazyload-srcset", True),
    ("data-lazy-src", False),
    ("data-src", False),
    ("data-original", False),
    ("src", False),
    ("data-lazy-srcset", True),
    ("srcset", True),
)
IMAGE_LINK_PATTERN = re.compile(r"\.(jpg|jpeg|png|gif|webp)(\?.*)?$", re.IGNORECASE)
VIDEO_LINK_PATTERN = re.compile(r"\.(mp4|webm|ogg)(\?.*)?$", re.IGNORECASE)
WIDTH_DESCRIPTOR_PATTERN = re.compile(r"^(\d+)w$")


def pick_from_srcset(srcset: Optional[str]) -> str:
    """Return the candidate with the largest width descriptor.

    Candidates without a width count as 0; ties keep the first listed.
    """
    if not srcset:
        return ""
    best = ""
    best_width = -1
    for candidate in srcset.split(","):
        tokens = candidate.split()
        if not tokens:
            continue
        url = tokens[0]
        width = 0
        if len(tokens) > 1:
            match = WIDTH_DESCRIPTOR_PATTERN.match(tokens[-1])
            if match:
                width = int(match.group(1))
        if width > best_width:
            best, best_width = url, width
    return best


def image_source(img: Tag) -> str:
    """Resolve the most useful source of an ``<img>``, lazy-load attributes first."""
    for attribute, is_srcset in LAZY_IMAGE_ATTRIBUTES:
        raw = img.get(attribute)
        if not raw:
            continue
        value = pick_from_srcset(raw) if is_srcset else raw.strip()
        if value:
            return value
    return ""


class _MediaSet:
    """Insertion-ordered set of media keys."""

    def __init__(self, page_url: str, config: CrawlConfig) -> None:
        self.page_url = page_url
        self.config = config
        self._keys: Dict[str, None] = {}

    def is_site_upload(self, url: str) -> bool:
        parts = urlsplit(url)
        hostname = parts.hostname or ""
        return host_matches(hostname, self.config.content_host) and (
            self.config.upload_path_marker in parts.path
        )

    def add(self, raw_url: Optional[str], site_only: bool) -> None:
        resolved = absolute_url(raw_url, self.page_url)
        key = media_key(resolved)
        if not key:
            return
        if site_only and not self.is_site_upload(resolved):
            logger.debug("Ignoring off-site media %s", resolved)
            return
        self._keys.setdefault(key, None)

    def extend(self, raw_urls: Iterable[str], site_only: bool) -> None:
        for raw_url in raw_urls:
            self.add(raw_url, site_only)

    def to_list(self) -> List[str]:
        return list(self._keys)


def _is_video_embed(url: str, video_hosts: Iterable[str]) -> bool:
    hostname = urlsplit(url).hostname or ""
    return any(host_matches(hostname, host) for host in video_hosts)


def collect_media(container: Tag, page_url: str, config: CrawlConfig) -> List[str]:
    """Collect deduplicated media keys from an article body container."""
    media = _MediaSet(page_url, config)
    links = [a.get("href") or "" for a in container.select("a[href]")]

    media.extend((image_source(img) for img in container.find_all("img")), site_only=True)
    media.extend(
        (pick_from_srcset(source.get("srcset")) for source in container.select("picture source[srcset]")),
        site_only=True,
    )
    media.extend((href for href in links if IMAGE_LINK_PATTERN.search(href)), site_only=True)

    media.extend(
        (el.get("src") for el in container.select("video[src], video source[src]")),
        site_only=False,
    )
    for frame in container.select("iframe[src]"):
        resolved = absolute_url(frame.get("src"), page_url)
        if resolved and _is_video_embed(resolved, config.video_hosts):
            media.add(resolved, site_only=False)
    media.extend((href for href in links if VIDEO_LINK_PATTERN.search(href)), site_only=False)

    return media.to_list()
