from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass

from pagechain.exceptions import CapabilityUnavailableError
from pagechain.services.fetcher import Fetcher


class DisabledHeadlessFetcher:
    @contextmanager
    def open_session(self, wait_for=None):
        raise CapabilityUnavailableError(
            "headless_chromium",
            "fetch_mode=headless_chromium requested but headless fetching is not configured",
        )
        yield  # pragma: no cover


@dataclass(frozen=True)
class FetcherFactory:
    http_fetcher: Fetcher
    headless_fetcher: Fetcher

    def get(self, fetch_mode: str) -> Fetcher:
        if fetch_mode is None or (isinstance(fetch_mode, str) and fetch_mode.strip() == ""):
            raise ValueError("fetch_mode is required")
        mode = fetch_mode.strip().lower()
        if mode == "http":
            return self.http_fetcher
        if mode == "headless_chromium":
            return self.headless_fetcher
        raise ValueError(f"Unknown fetch_mode: {fetch_mode!r}")
