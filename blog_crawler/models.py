"""Data models used throughout the crawler pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class ArticleReference:
    """An article URL plus the weak metadata seen where it was discovered."""

    url: str
    seed_title: str = ""
    seed_author: str = ""
    seed_time: str = ""


@dataclass(frozen=True)
class ExtractedRecord:
    """Fields resolved from a single rendered article page."""

    title: str = ""
    author: str = ""
    published_at: str = ""
    body_text: str = ""
    media_urls: Tuple[str, ...] = ()
    comment_count: int = 0


@dataclass(frozen=True)
class OutputRow:
    """One exported row: the resolved record merged over its seed data."""

    title: str
    author: str
    comment_count: int
    published_at: str
    article_content: str
    media_urls: Tuple[str, ...]

    @property
    def image_count(self) -> int:
        return len(self.media_urls)
