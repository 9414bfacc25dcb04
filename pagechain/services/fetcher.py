from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, ContextManager, Iterator, Optional, Protocol

import requests

from pagechain.domain.fetched_page import FetchedPage
from pagechain.services.http_service import HttpService


class FetchSession(Protocol):
    """A fetch capability bound to one crawl run."""

    def fetch(self, url: str, timeout_ms: int, stop_event=None) -> FetchedPage: ...


class Fetcher(Protocol):
    """Opens fetch sessions.

    A session is owned by exactly one crawl run and released when the context
    exits, whatever the exit path. Implementations differ in fidelity: a
    plain HTTP client or a headless browser rendering the page.
    """

    def open_session(self, wait_for=None) -> ContextManager[FetchSession]: ...


class HttpServiceFetcher:
    def __init__(
        self,
        user_agent: str,
        timeout_ms: int = 15_000,
        session_factory: Optional[Callable[[], requests.Session]] = None,
    ):
        self.user_agent = user_agent
        self.timeout_ms = timeout_ms
        self._session_factory = session_factory or requests.Session

    @contextmanager
    def open_session(self, wait_for=None) -> Iterator[HttpService]:
        # Static fetches have nothing to wait for; `wait_for` is ignored.
        http_session = self._session_factory()
        try:
            yield HttpService(self.user_agent, http_client=http_session.get, timeout_ms=self.timeout_ms)
        finally:
            http_session.close()
