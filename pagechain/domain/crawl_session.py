import threading
from typing import List, Optional, Set

from pagechain.domain.crawl_result import CrawlState, PageResult
from pagechain.domain.profile import CrawlRequest


class CrawlSession:
    """
    Runtime state of a single crawl run.

    Created when a run starts and mutated only by the orchestrator driving
    that run. It is never shared between runs; at termination its pages are
    handed off to the final result.
    """

    def __init__(self, request: CrawlRequest, stop_event: Optional[threading.Event] = None):
        self.request = request
        self.stop_event = stop_event if stop_event is not None else threading.Event()

        self.state = CrawlState.IDLE
        self.current_url: Optional[str] = request.start_url.strip()
        self.visited_urls: Set[str] = set()
        self.consecutive_errors: int = 0
        self._pages: List[PageResult] = []

    @property
    def pages(self) -> tuple:
        return tuple(self._pages)

    @property
    def pages_processed(self) -> int:
        return len(self._pages)

    @property
    def last_visited_url(self) -> Optional[str]:
        return self._pages[-1].url if self._pages else None

    def add_page(self, page: PageResult) -> None:
        self._pages.append(page)

    def mark_visited(self, url: str) -> None:
        self.visited_urls.add(url)

    def is_visited(self, url: str) -> bool:
        return url in self.visited_urls

    def is_stopped(self) -> bool:
        """Check if cancellation was requested."""
        return self.stop_event.is_set()
