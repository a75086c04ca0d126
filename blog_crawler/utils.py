"""Utility helpers for text normalization, URLs and timestamps."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urljoin, urlsplit, urlunsplit

from dateutil import parser as dateparser

WHITESPACE_PATTERN = re.compile(r"\s+")
LEADING_BY_PATTERN = re.compile(r"^by\s+", re.IGNORECASE)


def normalize_space(value: Optional[str]) -> str:
    """Collapse whitespace runs to single spaces and trim."""
    return WHITESPACE_PATTERN.sub(" ", value or "").strip()


def strip_byline_prefix(value: str) -> str:
    """Drop a leading "by " from byline text."""
    return LEADING_BY_PATTERN.sub("", value)


def absolute_url(value: Optional[str], base_url: str) -> str:
    """Resolve ``value`` against ``base_url``; empty and ``data:`` URLs give ""."""
    value = (value or "").strip()
    if not value or value.lower().startswith("data:"):
        return ""
    try:
        return urljoin(base_url, value)
    except ValueError:
        return ""


def media_key(url: str) -> str:
    """Canonical identity of a media URL.

    Scheme, lowercased host (plus port) and path are kept; query string,
    fragment and credentials are dropped.
    """
    if not url:
        return ""
    try:
        parts = urlsplit(url)
        hostname = parts.hostname or ""
        port = parts.port
    except ValueError:
        return ""
    if not parts.scheme or not hostname:
        return ""
    netloc = hostname if port is None else f"{hostname}:{port}"
    path = parts.path or "/"
    return urlunsplit((parts.scheme.lower(), netloc, path, "", ""))


def host_matches(hostname: str, suffix: str) -> bool:
    """Return True when ``hostname`` is ``suffix`` or one of its subdomains."""
    hostname = hostname.lower()
    suffix = suffix.lower()
    return hostname == suffix or hostname.endswith("." + suffix)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a timestamp, ISO-8601 first; values without an offset are taken as UTC."""
    if not value or not value.strip():
        return None
    text = value.strip()
    try:
        parsed = dateparser.isoparse(text)
    except ValueError:
        try:
            parsed = dateparser.parse(text)
        except (ValueError, OverflowError):
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
