from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional

from pagechain.domain.fetched_page import FetchedPage
from pagechain.domain.rules import SelectorType
from pagechain.exceptions import (
    CapabilityUnavailableError,
    FetchBlockedError,
    FetchCancelledError,
    FetchNetworkError,
    FetchStatusError,
    FetchTimeoutError,
)

logger = logging.getLogger(__name__)

CAPABILITY = "headless_chromium"


@dataclass(frozen=True)
class PlaywrightHeadlessOptions:
    timeout_ms: int = 15_000
    wait_until: str = "networkidle"  # domcontentloaded | load | networkidle
    content_ready_timeout_ms: int = 15_000


def _is_stopped(stop_event) -> bool:
    return stop_event is not None and getattr(stop_event, "is_set", lambda: False)()


def _close_quietly(resource, name: str) -> None:
    try:
        resource.close()
    except Exception:
        logger.debug("Error closing Playwright %s", name, exc_info=True)


class _PlaywrightFetchSession:
    """One browser page reused for every fetch of a crawl run."""

    def __init__(self, api, page, options: PlaywrightHeadlessOptions, wait_for=None):
        self._api = api
        self._page = page
        self._options = options
        self._wait_for = wait_for

    def _wait_for_content(self, url: str) -> None:
        rule = self._wait_for
        selector = rule.selector
        if SelectorType.parse(rule.selector_type) is SelectorType.XPATH:
            selector = f"xpath={selector}"
        try:
            self._page.wait_for_selector(
                selector,
                state="attached",
                timeout=self._options.content_ready_timeout_ms,
            )
        except self._api.TimeoutError:
            # Extraction decides whether the missing content is fatal.
            logger.warning("Content selector %r did not appear on %s", rule.selector, url)

    def _fetch_error(self, url: str, error: Exception, action: str, timeout_ms: int):
        if isinstance(error, self._api.TimeoutError):
            return FetchTimeoutError(url, f"{action} timed out after {timeout_ms}ms", error)
        if "ERR_BLOCKED" in str(error):
            return FetchBlockedError(url, str(error), error)
        return FetchNetworkError(url, str(error), error)

    def fetch(self, url: str, timeout_ms: Optional[int] = None, stop_event=None) -> FetchedPage:
        if _is_stopped(stop_event):
            raise FetchCancelledError(url, "cancelled before navigation")

        timeout_ms = timeout_ms if timeout_ms is not None else self._options.timeout_ms
        stylesheets = set()
        scripts = set()

        def on_request_finished(request):
            resource_type = request.resource_type
            if resource_type == "stylesheet":
                stylesheets.add(request.url)
            elif resource_type == "script":
                scripts.add(request.url)

        self._page.on("requestfinished", on_request_finished)
        try:
            try:
                resp = self._page.goto(url, wait_until=self._options.wait_until, timeout=timeout_ms)
            except self._api.Error as e:
                raise self._fetch_error(url, e, "navigation", timeout_ms) from e

            status = 0
            content_type = None
            if resp is not None:
                status = int(resp.status)
                if not resp.ok:
                    raise FetchStatusError(url, status)
                content_type = resp.headers.get("content-type")

            # Client-side redirects can destroy the page context after goto().
            try:
                if self._wait_for is not None:
                    self._wait_for_content(url)
                html = self._page.content()
            except self._api.Error as e:
                raise self._fetch_error(url, e, "reading the rendered page", timeout_ms) from e
        finally:
            self._page.remove_listener("requestfinished", on_request_finished)

        return FetchedPage(
            url=url,
            status_code=status,
            html=html,
            content_type=content_type,
            stylesheet_urls=frozenset(stylesheets),
            script_urls=frozenset(scripts),
        )


class PlaywrightHeadlessFetcher:
    """Headless browser fetcher backed by Playwright.

    Renders JavaScript-heavy pages and returns the final DOM HTML via
    page.content(), plus the stylesheet and script URLs seen on the network.

    Notes:
    - One browser, context and page are launched per crawl run and closed
      when the run's session exits.
    - Playwright is imported lazily so non-headless installs still work.
    - The sync API must not be driven from a thread running an asyncio loop;
      crawl runs execute in worker threads.
    """

    def __init__(self, *, user_agent: str, options: Optional[PlaywrightHeadlessOptions] = None, playwright_api=None):
        self._user_agent = user_agent
        self._options = options or PlaywrightHeadlessOptions()
        self._playwright_api = playwright_api

    def _load_api(self):
        if self._playwright_api is not None:
            return self._playwright_api
        try:
            from playwright import sync_api  # type: ignore
        except ImportError as e:
            raise CapabilityUnavailableError(
                CAPABILITY,
                "Headless fetch requested but Playwright is not installed. "
                "Install 'playwright' and run 'python -m playwright install chromium'.",
            ) from e
        return sync_api

    @contextmanager
    def open_session(self, wait_for=None) -> Iterator[_PlaywrightFetchSession]:
        api = self._load_api()
        with api.sync_playwright() as p:
            try:
                browser = p.chromium.launch(headless=True)
            except api.Error as e:
                raise CapabilityUnavailableError(
                    CAPABILITY,
                    f"Chromium could not be launched: {e}. Run 'python -m playwright install chromium'.",
                ) from e
            try:
                context = browser.new_context(user_agent=self._user_agent)
                try:
                    page = context.new_page()
                    yield _PlaywrightFetchSession(api, page, self._options, wait_for=wait_for)
                finally:
                    _close_quietly(context, "context")
            finally:
                _close_quietly(browser, "browser")
