"""Crawl a blog listing and export one normalized row per article."""

from .config import CrawlConfig
from .models import ArticleReference, ExtractedRecord, OutputRow

__all__ = ["ArticleReference", "CrawlConfig", "ExtractedRecord", "OutputRow"]
