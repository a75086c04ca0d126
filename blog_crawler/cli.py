"""Command-line entry point for the blog crawler."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import List, Sequence

from .config import (
    CrawlConfig,
    DEFAULT_LISTING_URL,
    DEFAULT_OUTPUT_NAME,
    MAX_CONCURRENCY,
    MIN_CONCURRENCY,
)
from .crawler import run_crawler
from .output import write_csv
from .utils import parse_timestamp

logger = logging.getLogger("blog_crawler.cli")


def _timestamp(value: str) -> datetime:
    parsed = parse_timestamp(value)
    if parsed is None:
        raise argparse.ArgumentTypeError(f"not a timestamp: {value!r}")
    return parsed


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Crawl blog articles via Playwright and export them to CSV.",
    )
    parser.add_argument(
        "targets",
        nargs="*",
        metavar="URL",
        help="Article URLs to crawl directly (skips listing discovery)",
    )
    parser.add_argument(
        "--urls",
        action="append",
        default=[],
        help="Comma-separated article URLs to crawl directly",
    )
    parser.add_argument(
        "--all",
        dest="crawl_all",
        action="store_true",
        help="Enumerate every article through the posts collection endpoint",
    )
    parser.add_argument(
        "--since",
        type=_timestamp,
        default=None,
        help="With --all, only keep articles published at or after this ISO timestamp",
    )
    parser.add_argument(
        "--concurrency",
        default=None,
        help=f"Number of pages visited at once ({MIN_CONCURRENCY}-{MAX_CONCURRENCY}, default: 2)",
    )
    parser.add_argument(
        "--out",
        type=Path,
        default=Path(DEFAULT_OUTPUT_NAME),
        help=f"CSV file to write (default: {DEFAULT_OUTPUT_NAME} in the current directory)",
    )
    parser.add_argument(
        "--listing-url",
        default=DEFAULT_LISTING_URL,
        help="Listing page used when no URLs and no --all are given",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=30.0,
        help="Navigation timeout in seconds",
    )
    parser.add_argument(
        "--wait",
        type=float,
        default=0.0,
        help="Seconds to wait after the DOM is loaded before reading HTML",
    )
    parser.add_argument(
        "--channel",
        default=None,
        help="Browser channel to launch, e.g. msedge or chrome",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser.parse_args(argv)


def collect_urls(args: argparse.Namespace) -> List[str]:
    """Explicit article URLs from positional arguments and ``--urls``."""
    urls: List[str] = []
    for value in args.urls:
        urls.extend(part.strip() for part in value.split(",") if part.strip())
    for target in args.targets:
        if target.lower().startswith(("http://", "https://")):
            urls.append(target)
        else:
            logger.warning("Ignoring argument that is not an http(s) URL: %s", target)
    return urls


def _pool_size(value: str | None, default: int) -> int:
    """Validate a ``--concurrency`` value, keeping ``default`` when it is unusable."""
    if value is None:
        return default
    try:
        size = int(value)
    except ValueError:
        logger.warning("Ignoring --concurrency %r (not an integer); using %d", value, default)
        return default
    if not MIN_CONCURRENCY <= size <= MAX_CONCURRENCY:
        logger.warning(
            "Ignoring --concurrency %d (allowed %d-%d); using %d",
            size,
            MIN_CONCURRENCY,
            MAX_CONCURRENCY,
            default,
        )
        return default
    return size


def build_config(args: argparse.Namespace) -> CrawlConfig:
    config = CrawlConfig(
        output_path=Path(args.out).resolve(),
        listing_url=args.listing_url,
        navigation_timeout=args.timeout,
        wait_after_load=args.wait,
        browser_channel=args.channel,
    )
    config.concurrency = _pool_size(args.concurrency, config.concurrency)
    return config


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )

    config = build_config(args)
    urls = collect_urls(args)
    overall_start = time.perf_counter()
    try:
        rows = asyncio.run(
            run_crawler(config, urls=urls, crawl_all=args.crawl_all, since=args.since)
        )
        count = write_csv(rows, config.output_path)
    except Exception:  # pylint: disable=broad-except
        logger.exception("Crawl failed")
        sys.exit(1)

    logger.debug("Finished in %.2fs", time.perf_counter() - overall_start)
    logger.info("Saved %d rows to: %s", count, config.output_path)


if __name__ == "__main__":
    main()
