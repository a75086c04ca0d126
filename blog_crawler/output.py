"""CSV export of crawled rows."""

from __future__ import annotations

import csv
import logging
import re
from pathlib import Path
from typing import Iterable, List

from .models import OutputRow

logger = logging.getLogger("blog_crawler")

HEADER = [
    "Title",
    "Author",
    "Comment Count",
    "Time",
    "Article Content",
    "Images In Article",
    "Image Count",
]
LINE_BREAK = re.compile(r"\r?\n")


def single_line(value: object) -> str:
    """Cell text with line breaks flattened to spaces."""
    return LINE_BREAK.sub(" ", str(value)).strip()


def multi_line(value: object) -> str:
    """Cell text that keeps its embedded line breaks."""
    return str(value).strip()


def row_cells(row: OutputRow) -> List[str]:
    return [
        single_line(row.title),
        single_line(row.author),
        single_line(row.comment_count),
        single_line(row.published_at),
        multi_line(row.article_content),
        multi_line("\n".join(row.media_urls)),
        single_line(row.image_count),
    ]


def write_csv(rows: Iterable[OutputRow], path: Path) -> int:
    """Write rows as a fully quoted, BOM-prefixed UTF-8 CSV; returns the row count."""
    path.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with path.open("w", encoding="utf-8-sig", newline="") as handle:
        writer = csv.writer(handle, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerow(HEADER)
        for row in rows:
            writer.writerow(row_cells(row))
            count += 1
    logger.debug("Wrote %d row(s) to %s", count, path)
    return count
