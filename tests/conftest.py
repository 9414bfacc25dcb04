from contextlib import contextmanager

import pytest

from pagechain.domain import (
    CrawlProfile,
    CrawlRequest,
    ExtractMode,
    FetchedPage,
    PaginationRule,
    SelectorRule,
    SelectorType,
    StopRules,
)
from pagechain.exceptions import FetchStatusError
from pagechain.services.crawl_orchestrator import CrawlOrchestrator
from pagechain.services.fetcher_factory import DisabledHeadlessFetcher, FetcherFactory


class FakeSite:
    """In-memory site served through the fetcher/session interface.

    Pages map a URL to HTML or to a full FetchedPage; queued errors for a URL
    are raised (in order) before the page is served.
    """

    def __init__(self):
        self.pages = {}
        self.errors = {}
        self.calls = []
        self.opened = 0
        self.closed = 0
        self.wait_for = None

    def add(self, url, html):
        self.pages[url] = html

    def fail(self, url, *errors):
        self.errors.setdefault(url, []).extend(errors)

    @contextmanager
    def open_session(self, wait_for=None):
        self.opened += 1
        self.wait_for = wait_for
        try:
            yield self
        finally:
            self.closed += 1

    def fetch(self, url, timeout_ms=None, stop_event=None):
        self.calls.append(url)
        queued = self.errors.get(url)
        if queued:
            raise queued.pop(0)
        if url not in self.pages:
            raise FetchStatusError(url, 404)
        page = self.pages[url]
        if isinstance(page, FetchedPage):
            return page
        return FetchedPage(url=url, status_code=200, html=page, content_type="text/html")


@pytest.fixture
def site():
    return FakeSite()


@pytest.fixture
def make_profile():
    def _make(
        *,
        domain="example.com",
        content_selector=".article",
        selector_type="css",
        extract_mode="html",
        required=True,
        next_selector="a.next",
        max_pages=10,
        max_consecutive_errors=3,
        stop_when_url_visited=True,
        fetch_mode="http",
    ):
        return CrawlProfile(
            name="test-profile",
            domain=domain,
            content_rule=SelectorRule(
                selector_type=SelectorType(selector_type),
                selector=content_selector,
                extract_mode=ExtractMode(extract_mode),
                required=required,
            ),
            pagination_rule=PaginationRule(selector_type=SelectorType(selector_type), selector=next_selector),
            stop_rules=StopRules(
                stop_when_url_visited=stop_when_url_visited,
                max_pages=max_pages,
                max_consecutive_errors=max_consecutive_errors,
            ),
            fetch_mode=fetch_mode,
        )

    return _make


@pytest.fixture
def make_request(make_profile):
    def _make(start_url="https://example.com/p1", **profile_kwargs):
        return CrawlRequest(start_url=start_url, profile=make_profile(**profile_kwargs))

    return _make


@pytest.fixture
def make_orchestrator(site):
    def _make(**kwargs):
        factory = FetcherFactory(http_fetcher=site, headless_fetcher=DisabledHeadlessFetcher())
        kwargs.setdefault("delay_seconds", 0)
        return CrawlOrchestrator(fetcher_factory=factory, **kwargs)

    return _make


def page_html(content, next_href=None):
    link = f'<a class="next" href="{next_href}">Next</a>' if next_href is not None else ""
    return f'<html><body><div class="article">{content}</div>{link}</body></html>'


@pytest.fixture
def page():
    return page_html
