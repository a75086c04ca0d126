"""Shared fixtures and fakes for the crawler tests."""

from __future__ import annotations

from typing import List, Optional

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from blog_crawler.config import CrawlConfig

ARTICLE_URL = "https://mitadmissions.org/blogs/entry/reflections-on-admissions/"

ARTICLE_HTML = """
<html>
<head>
  <title>Fallback title | MIT Admissions</title>
  <meta name="author" content="Meta Author">
  <meta property="article:published_time" content="2024-05-01T09:00:00+00:00">
</head>
<body>
  <header><nav><a href="/blogs/">Blogs</a></nav></header>
  <article>
    <div class="entry-header">
      <h1>Reflections on Admissions by Jane Q. Doe</h1>
      <span class="byline">by Someone Else</span>
      <time datetime="2024-05-02T10:00:00">May 2, 2024</time>
    </div>
    <div class="article__body">
      <p>Hello<br>world</p>
      <p></p>
      <ul><li>First point</li><li>Second point</li></ul>
      <p>Cited <span class="annotation-mod"><span class="annotation__number">1</span><span class="annotation__text">phrase</span><span class="annotation">the note</span></span> here.</p>
      <figure>
        <img src="/wp-content/uploads/2024/05/photo.jpg?resize=300" alt="Photo">
        <figcaption>A caption</figcaption>
      </figure>
      <img src="https://secure.gravatar.com/avatar/abc.png">
      <div class="share-tools-mod"><p>Share this post</p></div>
      <nav><p>Next post</p></nav>
    </div>
  </article>
  <section id="comments"><h2>6 Comments</h2><span>2 Comments</span></section>
</body>
</html>
"""


@pytest.fixture
def config(tmp_path) -> CrawlConfig:
    """Config with instant widget polling and no readability fallback."""
    return CrawlConfig(
        output_path=tmp_path / "out.csv",
        readability_fallback=False,
        widget_selector_timeout=0.01,
        widget_poll_attempts=3,
        widget_poll_interval=0.0,
        widget_render_wait=0.0,
    )


class FakeFrame:
    """Stand-in for a Playwright frame serving fixed HTML."""

    def __init__(self, url: str, html: str = "", error: Optional[Exception] = None) -> None:
        self.url = url
        self.html = html
        self.error = error

    async def wait_for_timeout(self, timeout: float) -> None:
        return None

    async def content(self) -> str:
        if self.error is not None:
            raise self.error
        return self.html


class FakePage:
    """Stand-in for a Playwright page."""

    def __init__(
        self,
        url: str = ARTICLE_URL,
        html: str = "",
        frames: Optional[List[FakeFrame]] = None,
        has_widget: bool = False,
        goto_error: Optional[Exception] = None,
    ) -> None:
        self.url = url
        self.html = html
        self.frames = frames or []
        self.has_widget = has_widget
        self.goto_error = goto_error
        self.visited: List[str] = []
        self.timeouts: List[float] = []
        self.default_timeout: Optional[float] = None

    def set_default_timeout(self, timeout: float) -> None:
        self.default_timeout = timeout

    async def goto(self, url: str, wait_until: str = "load") -> None:
        self.visited.append(url)
        if self.goto_error is not None:
            raise self.goto_error

    async def content(self) -> str:
        return self.html

    async def wait_for_selector(self, selector: str, timeout: float = 0) -> None:
        if not self.has_widget:
            raise PlaywrightTimeoutError(f"Timeout waiting for {selector}")

    async def wait_for_timeout(self, timeout: float) -> None:
        self.timeouts.append(timeout)


class FakeContext:
    def __init__(self, page: FakePage) -> None:
        self.page = page
        self.closed = False

    async def new_page(self) -> FakePage:
        return self.page

    async def close(self) -> None:
        self.closed = True


class FakeBrowser:
    """Hands out one fresh context per ``new_context`` call."""

    def __init__(self, pages: List[FakePage]) -> None:
        self.contexts: List[FakeContext] = []
        self.closed = False
        self._queue = list(pages)

    async def new_context(self) -> FakeContext:
        context = FakeContext(self._queue.pop(0))
        self.contexts.append(context)
        return context

    async def close(self) -> None:
        self.closed = True
