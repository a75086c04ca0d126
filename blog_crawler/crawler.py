"""High-level orchestration: discovery, the page-visit pool and result merging."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import replace
from datetime import datetime
from functools import partial
from typing import Awaitable, Callable, List, Optional, Sequence

from playwright.async_api import Browser, async_playwright

from .comments import probe_discussion_widget
from .config import CrawlConfig
from .content import resolve_fields
from .listing import discover_articles
from .models import ArticleReference, ExtractedRecord, OutputRow
from .pagination import PaginatedSource

logger = logging.getLogger("blog_crawler")

Visitor = Callable[[ArticleReference], Awaitable[ExtractedRecord]]


def merge_record(record: ExtractedRecord, reference: ArticleReference) -> OutputRow:
    """Overlay resolved fields on the seed data; resolver values win when non-empty."""
    return OutputRow(
        title=record.title or reference.seed_title or "",
        author=record.author or reference.seed_author or "",
        comment_count=max(record.comment_count, 0),
        published_at=record.published_at or reference.seed_time or "",
        article_content=record.body_text or "",
        media_urls=tuple(record.media_urls),
    )


def degraded_row(reference: ArticleReference) -> OutputRow:
    """Row emitted when visiting an article failed: seed data only."""
    return OutputRow(
        title=reference.seed_title,
        author=reference.seed_author,
        comment_count=0,
        published_at=reference.seed_time,
        article_content="",
        media_urls=(),
    )


async def run_pool(
    items: Sequence[ArticleReference],
    concurrency: int,
    visit: Visitor,
) -> List[OutputRow]:
    """Visit every item with at most ``concurrency`` in flight.

    Workers claim the next unclaimed index and write into the matching slot,
    so the output order matches ``items`` whatever the completion order. A
    failing visit yields a degraded row for that item only.
    """
    results: List[Optional[OutputRow]] = [None] * len(items)
    next_index = 0

    async def worker(worker_id: int) -> None:
        nonlocal next_index
        while next_index < len(items):
            index = next_index
            next_index += 1
            reference = items[index]
            try:
                record = await visit(reference)
            except Exception:  # pylint: disable=broad-except
                logger.exception(
                    "Worker %d failed on %s; emitting seed data only", worker_id, reference.url
                )
                results[index] = degraded_row(reference)
            else:
                results[index] = merge_record(record, reference)

    worker_count = min(max(concurrency, 1), len(items))
    await asyncio.gather(*(worker(worker_id) for worker_id in range(worker_count)))
    return [row for row in results if row is not None]


async def visit_article(
    browser: Browser,
    reference: ArticleReference,
    config: CrawlConfig,
) -> ExtractedRecord:
    """Render one article in its own browser context and resolve its fields."""
    context = await browser.new_context()
    try:
        page = await context.new_page()
        page.set_default_timeout(config.navigation_timeout * 1000)
        logger.info("Loading %s", reference.url)
        await page.goto(reference.url, wait_until="domcontentloaded")
        if config.wait_after_load:
            await page.wait_for_timeout(config.wait_after_load * 1000)
        html = await page.content()
        record = resolve_fields(html, page.url, config)
        if record.comment_count == 0:
            widget_count = await probe_discussion_widget(page, config)
            if widget_count > 0:
                record = replace(record, comment_count=widget_count)
        return record
    finally:
        await context.close()


async def discover_from_listing(browser: Browser, config: CrawlConfig) -> List[ArticleReference]:
    """Load the listing page and collect article references from it."""
    context = await browser.new_context()
    try:
        page = await context.new_page()
        page.set_default_timeout(config.navigation_timeout * 1000)
        logger.info("Loading listing %s", config.listing_url)
        await page.goto(config.listing_url, wait_until="domcontentloaded")
        html = await page.content()
        return discover_articles(html, page.url, config)
    finally:
        await context.close()


async def run_crawler(
    config: CrawlConfig,
    urls: Optional[Sequence[str]] = None,
    crawl_all: bool = False,
    since: Optional[datetime] = None,
) -> List[OutputRow]:
    """Pick the article source for the run mode and crawl every article."""
    start = time.perf_counter()
    async with async_playwright() as playwright:
        browser = await playwright.chromium.launch(
            headless=config.headless,
            channel=config.browser_channel,
        )
        try:
            if urls:
                references = [ArticleReference(url=url) for url in urls]
            elif crawl_all:
                source = PaginatedSource(config)
                references = await asyncio.to_thread(source.enumerate_all, since)
            else:
                references = await discover_from_listing(browser, config)

            logger.info(
                "Crawling %d article(s) with concurrency %d",
                len(references),
                config.concurrency,
            )
            rows = await run_pool(
                references,
                config.concurrency,
                partial(visit_article, browser, config=config),
            )
        finally:
            await browser.close()

    logger.debug("Crawl finished in %.2fs", time.perf_counter() - start)
    return rows
