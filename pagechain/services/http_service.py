import requests
from typing import Callable, Optional

from pagechain.domain.fetched_page import FetchedPage
from pagechain.exceptions import (
    FetchCancelledError,
    FetchNetworkError,
    FetchStatusError,
    FetchTimeoutError,
)


def _is_stopped(stop_event) -> bool:
    return stop_event is not None and getattr(stop_event, "is_set", lambda: False)()


class HttpService:
    """
    HTTP client wrapper for fetching web pages.

    Requires http_client callable for dependency injection; a bound
    `requests.Session.get` in production, a Mock in tests.
    """

    def __init__(self, user_agent: str, http_client: Callable, timeout_ms: int = 15_000):
        self.user_agent = user_agent
        self.timeout_ms = timeout_ms
        self.http_client = http_client

    def fetch(self, url: str, timeout_ms: Optional[int] = None, stop_event=None) -> FetchedPage:
        """Fetch URL and return its body; raise a `FetchError` subclass on failure."""
        if _is_stopped(stop_event):
            raise FetchCancelledError(url, "cancelled before request")

        headers = {"User-Agent": self.user_agent}
        timeout = (timeout_ms if timeout_ms is not None else self.timeout_ms) / 1000
        try:
            resp = self.http_client(url, headers=headers, timeout=timeout)
        except requests.exceptions.Timeout as e:
            raise FetchTimeoutError(url, f"timed out after {timeout}s", e) from e
        except requests.exceptions.RequestException as e:
            raise FetchNetworkError(url, str(e), e) from e

        status = int(resp.status_code)
        if status < 200 or status >= 300:
            raise FetchStatusError(url, status)

        # Extract Content-Type if response has headers; let real exceptions bubble up.
        ct = None
        if hasattr(resp, 'headers'):
            ct = resp.headers.get('Content-Type')

        return FetchedPage(url=url, status_code=status, html=resp.text, content_type=ct)
