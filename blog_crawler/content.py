"""Article field resolution: title, author, time, body text, media and comments."""

from __future__ import annotations

import copy
import logging
import re
from typing import AbstractSet, Callable, Iterable, List, Optional, Sequence, Tuple

from bs4 import BeautifulSoup
from bs4.element import (
    Comment,
    Declaration,
    Doctype,
    NavigableString,
    ProcessingInstruction,
    Tag,
)
from readability import Document
from readability.readability import Unparseable

from .comments import resolve_comment_count
from .config import CrawlConfig
from .media import collect_media
from .models import ExtractedRecord
from .utils import normalize_space, strip_byline_prefix

logger = logging.getLogger("blog_crawler")

Strategy = Callable[[BeautifulSoup], Optional[str]]

TITLE_SELECTORS = ("article h1", "h1.entry-title", "h1.post-title", "h1")
AUTHOR_SELECTORS = (
    '[rel="author"]',
    ".author a",
    ".byline a",
    ".byline",
    ".post-author",
    ".entry-author",
    ".entry-meta .byline .author a",
    ".entry-meta .author a",
    ".entry-header .byline .author a",
    ".post-meta .author a",
)
TIME_SELECTORS = ("time[datetime]", ".posted-on time", "time", ".date", ".entry-date")
BODY_SELECTORS = (
    "article .article__body",
    ".article__body",
    "article .entry-content",
    ".entry-content",
    "article .post-content",
    "article .content",
    "article",
    ".post-content",
)
NON_CONTENT_SELECTORS = (
    "nav",
    "aside",
    "footer",
    ".comments",
    "#comments",
    ".comment-list",
    ".page__footnotes",
    ".share-tools-mod",
    ".article__tags-mod",
    ".annotation__number",
    ".annotation",
)
CONTENT_BLOCK_TAGS = [
    "p", "h1", "h2", "h3", "h4", "h5", "h6",
    "li", "pre", "blockquote", "figure", "figcaption",
]

BLOCK_LEVEL_TAGS = frozenset(
    CONTENT_BLOCK_TAGS
    + [
        "address", "article", "aside", "dd", "details", "div", "dl", "dt",
        "footer", "form", "header", "hr", "main", "nav", "ol", "section",
        "summary", "table", "tr", "ul", "caption",
    ]
)
TABLE_CELL_TAGS = frozenset({"td", "th"})
UNRENDERED_TAGS = frozenset({"script", "style", "noscript", "template", "head"})
UNRENDERED_STRINGS = (Comment, Declaration, Doctype, ProcessingInstruction)

HTML_WHITESPACE = re.compile(r"[ \t\n\r\f]+")
REPEATED_SPACES = re.compile(r" {2,}")
ZERO_WIDTH_CHARS = re.compile(r"[\u200b\u200c\u200d\u2060]")
REPEATED_NEWLINES = re.compile(r"\n{2,}")
SOFT_LINE_BREAK = re.compile(r"(?<=\S)\n(?=\S)")
EXCESS_BLANK_LINES = re.compile(r"\n{3,}")
BYLINE_SEPARATOR = re.compile(r"(?= by )", re.IGNORECASE)


# --- rendered text -----------------------------------------------------------

def _render_into(
    node: Tag, chunks: List[str], preformatted: bool, skip: AbstractSet[int]
) -> None:
    for child in node.children:
        if isinstance(child, UNRENDERED_STRINGS):
            continue
        if isinstance(child, NavigableString):
            text = str(child)
            chunks.append(text if preformatted else HTML_WHITESPACE.sub(" ", text))
            continue
        if not isinstance(child, Tag) or child.name in UNRENDERED_TAGS:
            continue
        if child.name == "br" or id(child) in skip:
            chunks.append("\n")
            continue
        is_block = child.name in BLOCK_LEVEL_TAGS
        if is_block:
            chunks.append("\n")
        _render_into(child, chunks, preformatted or child.name == "pre", skip)
        if is_block:
            chunks.append("\n")
        elif child.name in TABLE_CELL_TAGS:
            chunks.append("\t")


def rendered_text(node: Tag, exclude: AbstractSet[int] = frozenset()) -> str:
    """Approximate the browser's ``innerText`` for a parsed element.

    Whitespace runs collapse to one space, ``<br>`` and block boundaries
    become newlines, table cells are separated by tabs and each line is
    trimmed. Descendants whose ``id()`` is in ``exclude`` render as a line
    break only.
    """
    chunks: List[str] = []
    _render_into(node, chunks, node.name == "pre", exclude)
    text = REPEATED_SPACES.sub(" ", "".join(chunks))
    lines = [line.strip(" \t") for line in text.split("\n")]
    return "\n".join(lines).strip("\n")


# --- body text ---------------------------------------------------------------

def clean_block_text(text: str, list_item: bool = False) -> str:
    """Normalize the rendered text of one content block.

    Blank-line runs become one newline and a newline wedged between two
    non-space characters becomes a space.
    """
    text = text.replace("\r\n", "\n")
    text = ZERO_WIDTH_CHARS.sub("", text)
    text = REPEATED_NEWLINES.sub("\n", text)
    text = SOFT_LINE_BREAK.sub(" ", text)
    if list_item and text:
        text = f"- {text}"
    return text


def join_blocks(blocks: Iterable[str]) -> str:
    """Join non-empty blocks with a blank line."""
    return "\n\n".join(block for block in blocks if block)


def clean_container(container: Tag) -> Tag:
    """Return a copy of ``container`` without chrome, comments or citation markup."""
    clone = copy.copy(container)
    for selector in NON_CONTENT_SELECTORS:
        for node in clone.select(selector):
            node.extract()
    for wrapper in clone.select(".annotation-mod"):
        note = wrapper.select_one(".annotation__text")
        wrapper.replace_with(NavigableString(rendered_text(note) if note else ""))
    return clone


def content_blocks(container: Tag) -> List[Tag]:
    """Content block elements in document order, nested blocks included."""
    return list(container.find_all(CONTENT_BLOCK_TAGS))


def extract_body_text(container: Tag) -> str:
    blocks = content_blocks(container)
    if blocks:
        block_ids = frozenset(id(block) for block in blocks)
        # each block renders its own text; nested blocks are emitted on their own
        return join_blocks(
            clean_block_text(
                rendered_text(block, exclude=block_ids), list_item=block.name == "li"
            )
            for block in blocks
        )
    text = ZERO_WIDTH_CHARS.sub("", rendered_text(container).replace("\r\n", "\n"))
    return EXCESS_BLANK_LINES.sub("\n\n", text)


# --- candidate chains ----------------------------------------------------------

def _selector_text(selector: str, byline: bool = False) -> Strategy:
    def strategy(soup: BeautifulSoup) -> Optional[str]:
        element = soup.select_one(selector)
        if element is None:
            return None
        text = normalize_space(element.get_text())
        return strip_byline_prefix(text) if byline else text

    return strategy


def _selector_datetime(selector: str) -> Strategy:
    def strategy(soup: BeautifulSoup) -> Optional[str]:
        element = soup.select_one(selector)
        if element is None:
            return None
        return normalize_space(element.get("datetime")) or normalize_space(element.get_text())

    return strategy


def _meta_content(**attrs: str) -> Strategy:
    def strategy(soup: BeautifulSoup) -> Optional[str]:
        tag = soup.find("meta", attrs=attrs)
        if tag and tag.get("content"):
            return normalize_space(tag["content"])
        return None

    return strategy


def _document_title(soup: BeautifulSoup) -> Optional[str]:
    if soup.title:
        return normalize_space(soup.title.get_text())
    return None


TITLE_CHAIN: Sequence[Strategy] = (
    *(_selector_text(selector) for selector in TITLE_SELECTORS),
    _meta_content(property="og:title"),
    _document_title,
)
AUTHOR_CHAIN: Sequence[Strategy] = (
    *(_selector_text(selector, byline=True) for selector in AUTHOR_SELECTORS),
    _meta_content(name="author"),
)
TIME_CHAIN: Sequence[Strategy] = (
    *(_selector_datetime(selector) for selector in TIME_SELECTORS),
    _meta_content(property="article:published_time"),
)


def first_match(soup: BeautifulSoup, strategies: Iterable[Strategy]) -> str:
    """Run strategies in order and return the first non-empty value."""
    for strategy in strategies:
        value = strategy(soup)
        if value:
            return value
    return ""


def apply_title_byline(title: str, author: str) -> Tuple[str, str]:
    """Split "<title> by <author>" titles; the title's author wins."""
    matches = list(BYLINE_SEPARATOR.finditer(title))
    if not matches:
        return title, author
    last = matches[-1]
    head = normalize_space(title[: last.start()])
    tail = normalize_space(title[last.start() + 4 :])
    return head or title, tail or author


def find_body_container(soup: BeautifulSoup) -> Optional[Tag]:
    for selector in BODY_SELECTORS:
        container = soup.select_one(selector)
        if container is not None:
            return container
    return None


def _readability_container(html: str) -> Optional[Tag]:
    """Fall back to readability's article summary when no known container exists."""
    if not html.strip():
        return None
    try:
        summary_html = Document(html).summary(html_partial=True)
    except Unparseable as exc:
        logger.debug("Readability could not summarise the page: %s", exc)
        return None
    summary = BeautifulSoup(summary_html, "html.parser").find(True)
    if summary is None or not normalize_space(summary.get_text()):
        return None
    return summary


# --- entry point -----------------------------------------------------------------

def resolve_fields(html: str, page_url: str, config: CrawlConfig) -> ExtractedRecord:
    """Resolve an article record from rendered HTML.

    Missing markup degrades the affected field to an empty value; nothing in
    here raises for a present but messy document.
    """
    soup = BeautifulSoup(html or "", "html.parser")

    title, author = apply_title_byline(
        first_match(soup, TITLE_CHAIN),
        first_match(soup, AUTHOR_CHAIN),
    )
    published_at = first_match(soup, TIME_CHAIN)

    container = find_body_container(soup)
    body_source = container
    if body_source is None and config.readability_fallback:
        body_source = _readability_container(html or "")
        if body_source is not None:
            logger.debug("Using readability summary as the body of %s", page_url)

    body_text = ""
    media_urls: List[str] = []
    if body_source is not None:
        cleaned = clean_container(body_source)
        body_text = extract_body_text(cleaned)
        media_urls = collect_media(cleaned, page_url, config)

    comment_count = resolve_comment_count(soup, container)

    logger.debug(
        "Resolved %s -> title=%r author=%r time=%r media=%d comments=%d",
        page_url,
        title,
        author,
        published_at,
        len(media_urls),
        comment_count,
    )
    return ExtractedRecord(
        title=title,
        author=author,
        published_at=published_at,
        body_text=body_text,
        media_urls=tuple(media_urls),
        comment_count=comment_count,
    )
