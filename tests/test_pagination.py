"""Tests for the paginated collection source."""

from datetime import datetime, timezone
from typing import Dict, List

import requests
from requests.structures import CaseInsensitiveDict

from blog_crawler.pagination import PaginatedSource

BASE = "https://mitadmissions.org/blogs/entry"


class FakeResponse:
    def __init__(self, payload, status_code: int = 200, headers: Dict[str, str] = None) -> None:
        self._payload = payload
        self.status_code = status_code
        self.headers = CaseInsensitiveDict(headers or {})

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self):
        return self._payload


class FakeSession:
    """Serves canned pages and records which page numbers were requested."""

    def __init__(self, pages: Dict[int, FakeResponse]) -> None:
        self.pages = pages
        self.requested: List[int] = []

    def get(self, url, params=None, timeout=None):
        page = params["page"]
        self.requested.append(page)
        response = self.pages[page]
        if isinstance(response, Exception):
            raise response
        return response


def _items(*entries):
    return [{"link": f"{BASE}/{slug}/", "date": date} for slug, date in entries]


def _three_pages() -> Dict[int, FakeResponse]:
    headers = {"x-wp-totalpages": "3"}
    return {
        1: FakeResponse(_items(("old-a", "2023-12-01T10:00:00"), ("old-b", "2023-11-20T09:00:00")), headers=headers),
        2: FakeResponse(_items(("new-a", "2024-02-01T10:00:00"), ("new-b", "2024-01-15T08:30:00")), headers=headers),
        3: FakeResponse(_items(("new-c", "2024-01-02T00:00:00"), ("new-a", "2024-02-01T10:00:00")), headers=headers),
    }


class TestEnumerateAll:
    def test_since_filters_without_stopping_early(self, config) -> None:
        """Items before the cutoff shall be excluded while every page is still fetched."""
        session = FakeSession(_three_pages())
        source = PaginatedSource(config, session=session)

        references = source.enumerate_all(since=datetime(2024, 1, 1, tzinfo=timezone.utc))

        assert session.requested == [1, 2, 3]
        assert [ref.url for ref in references] == [
            f"{BASE}/new-a/",
            f"{BASE}/new-b/",
            f"{BASE}/new-c/",
        ]
        assert references[0].seed_time == "2024-02-01T10:00:00"

    def test_without_cutoff_everything_is_listed(self, config) -> None:
        references = PaginatedSource(config, session=FakeSession(_three_pages())).enumerate_all()

        assert len(references) == 5

    def test_cutoff_is_inclusive(self, config) -> None:
        since = datetime(2024, 1, 2)
        references = PaginatedSource(config, session=FakeSession(_three_pages())).enumerate_all(since)

        assert f"{BASE}/new-c/" in [ref.url for ref in references]

    def test_http_error_stops_traversal(self, config) -> None:
        """A failed page shall stop fetching and keep what was gathered."""
        pages = _three_pages()
        pages[2] = FakeResponse([], status_code=500)
        session = FakeSession(pages)

        references = PaginatedSource(config, session=session).enumerate_all()

        assert session.requested == [1, 2]
        assert [ref.url for ref in references] == [f"{BASE}/old-a/", f"{BASE}/old-b/"]

    def test_network_error_stops_traversal(self, config) -> None:
        pages = _three_pages()
        pages[3] = requests.ConnectionError("connection reset")
        session = FakeSession(pages)

        references = PaginatedSource(config, session=session).enumerate_all()

        assert session.requested == [1, 2, 3]
        assert len(references) == 4

    def test_missing_total_pages_header_means_one_page(self, config) -> None:
        session = FakeSession({1: FakeResponse(_items(("solo", "2024-01-01T00:00:00")))})

        references = PaginatedSource(config, session=session).enumerate_all()

        assert session.requested == [1]
        assert len(references) == 1

    def test_request_parameters(self, config) -> None:
        captured = {}

        class RecordingSession(FakeSession):
            def get(self, url, params=None, timeout=None):
                captured.update(url=url, params=params, timeout=timeout)
                return super().get(url, params=params, timeout=timeout)

        session = RecordingSession({1: FakeResponse([])})
        PaginatedSource(config, session=session).enumerate_all()

        assert captured["url"] == config.collection_url
        assert captured["params"]["per_page"] == 100
        assert captured["params"]["_fields"] == "link,date"
        assert captured["params"]["order"] == "desc"
        assert captured["timeout"] == config.request_timeout

    def test_non_list_body_stops_traversal(self, config) -> None:
        """An error object served with status 200 shall stop fetching, not crash."""
        pages = _three_pages()
        pages[2] = FakeResponse({"code": "oops"}, headers={"x-wp-totalpages": "3"})
        session = FakeSession(pages)

        references = PaginatedSource(config, session=session).enumerate_all()

        assert session.requested == [1, 2]
        assert [ref.url for ref in references] == [f"{BASE}/old-a/", f"{BASE}/old-b/"]

    def test_malformed_items_are_skipped(self, config) -> None:
        payload = ["not-an-object", {"date": "2024-01-01T00:00:00"}, {"link": 42}] + _items(
            ("kept", None)
        )
        session = FakeSession({1: FakeResponse(payload)})

        references = PaginatedSource(config, session=session).enumerate_all()

        assert [ref.url for ref in references] == [f"{BASE}/kept/"]
        assert references[0].seed_time == ""

    def test_offset_without_colon_is_filtered(self, config) -> None:
        """Dates with a compact ``+0000`` offset or long fractions shall be compared."""
        payload = [
            {"link": f"{BASE}/before/", "date": "2023-12-31T23:59:59+0000"},
            {"link": f"{BASE}/after/", "date": "2024-01-01T00:00:00.123456789Z"},
        ]
        session = FakeSession({1: FakeResponse(payload)})

        references = PaginatedSource(config, session=session).enumerate_all(
            since=datetime(2024, 1, 1, tzinfo=timezone.utc)
        )

        assert [ref.url for ref in references] == [f"{BASE}/after/"]
