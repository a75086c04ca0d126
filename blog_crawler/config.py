"""Configuration objects and constants for the crawler."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

DEFAULT_LISTING_URL = "https://mitadmissions.org/blogs/"
DEFAULT_COLLECTION_URL = "https://mitadmissions.org/wp-json/wp/v2/posts"
DEFAULT_OUTPUT_NAME = "mit_blogs.csv"
DEFAULT_VIDEO_HOSTS = ("youtube.com", "youtube-nocookie.com", "youtu.be", "vimeo.com")

MIN_CONCURRENCY = 1
MAX_CONCURRENCY = 10


@dataclass
class CrawlConfig:
    """Top-level settings that control discovery, crawling and extraction."""

    output_path: Path = field(default_factory=lambda: Path.cwd() / DEFAULT_OUTPUT_NAME)
    listing_url: str = DEFAULT_LISTING_URL
    collection_url: str = DEFAULT_COLLECTION_URL
    content_host: str = "mitadmissions.org"
    upload_path_marker: str = "/wp-content/uploads/"
    article_path_marker: str = "/blogs/entry/"
    concurrency: int = 2
    max_listing_links: int = 20
    seed_ancestor_depth: int = 6
    page_size: int = 100
    navigation_timeout: float = 30.0
    wait_after_load: float = 0.0
    request_timeout: float = 30.0
    widget_domain: str = "disqus.com"
    widget_selector_timeout: float = 5.0
    widget_poll_attempts: int = 8
    widget_poll_interval: float = 0.4
    widget_render_wait: float = 1.2
    video_hosts: Tuple[str, ...] = DEFAULT_VIDEO_HOSTS
    readability_fallback: bool = True
    headless: bool = True
    browser_channel: Optional[str] = None
