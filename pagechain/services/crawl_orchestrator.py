import logging
import threading
from typing import Optional

from pagechain.domain.crawl_result import (
    CrawlFailure,
    CrawlOutcome,
    CrawlResult,
    CrawlState,
    ErrorKind,
    PageResult,
    ProgressEvent,
    StopReason,
)
from pagechain.domain.crawl_session import CrawlSession
from pagechain.domain.profile import CrawlRequest
from pagechain.exceptions import CapabilityUnavailableError, ExtractError, FetchCancelledError, FetchError
from pagechain.services.asset_collector import AssetCollector
from pagechain.services.fetcher_factory import FetcherFactory
from pagechain.services.progress import NullProgressSink, ProgressSink
from pagechain.services.selector_evaluator import SelectorEvaluator
from pagechain.services.stop_rules import StopRuleEvaluator

logger = logging.getLogger(__name__)


class CrawlOrchestrator:
    """Drives one paginated crawl run from its start URL to a terminal state.

    Each iteration runs the pre-fetch stop checks, fetches the current URL,
    extracts the content field, collects assets, publishes progress and then
    resolves the next link. Every terminal condition, graceful or not, goes
    through `_complete` or `_fail`, which always attach the pages extracted so
    far.

    The orchestrator holds no per-run state, so one instance can serve
    concurrent runs as long as each run gets its own progress sink.
    """

    def __init__(
        self,
        *,
        fetcher_factory: FetcherFactory,
        timeout_ms: int = 15_000,
        delay_seconds: float = 0.25,
        retry_failed_fetch: bool = False,
        selector_evaluator: Optional[SelectorEvaluator] = None,
        asset_collector: Optional[AssetCollector] = None,
    ):
        self.fetcher_factory = fetcher_factory
        self.timeout_ms = int(timeout_ms)
        self.delay_seconds = float(delay_seconds)
        self.retry_failed_fetch = bool(retry_failed_fetch)
        self.selector_evaluator = selector_evaluator or SelectorEvaluator()
        self.asset_collector = asset_collector or AssetCollector()

    def run(
        self,
        request: CrawlRequest,
        stop_event: Optional[threading.Event] = None,
        progress_sink: Optional[ProgressSink] = None,
    ) -> CrawlOutcome:
        if request is None:
            raise ValueError("request is required for crawl")
        session = CrawlSession(request, stop_event=stop_event)
        sink = progress_sink or NullProgressSink()
        stop_rules = StopRuleEvaluator(request.stop_rules, request.domain)

        try:
            fetcher = self.fetcher_factory.get(request.profile.fetch_mode)
        except ValueError as e:
            return self._fail(session, ErrorKind.CONFIGURATION, str(e))

        # Avoid acquiring a fetch session (possibly a browser) for a start URL
        # that can never be fetched.
        reason = stop_rules.check_before_fetch(session, session.current_url)
        if reason is not None:
            return self._complete(session, reason)

        wait_for = request.content_rule if request.profile.wait_for_content else None
        logger.info("Starting crawl of %s (domain=%s, mode=%s)", request.start_url, request.domain, request.profile.fetch_mode)
        try:
            with fetcher.open_session(wait_for=wait_for) as fetch_session:
                return self._loop(session, fetch_session, stop_rules, sink)
        except CapabilityUnavailableError as e:
            logger.error("Fetch capability unavailable: %s", e)
            return self._fail(session, ErrorKind.CAPABILITY_UNAVAILABLE, str(e))
        except Exception as e:
            logger.exception("Unexpected error while crawling %s", session.current_url)
            return self._fail(session, ErrorKind.UNEXPECTED, f"Unexpected error: {e}")

    def _loop(self, session: CrawlSession, fetch_session, stop_rules: StopRuleEvaluator, sink: ProgressSink) -> CrawlOutcome:
        request = session.request
        while True:
            url = session.current_url
            if session.is_stopped():
                logger.info("Crawl cancelled before fetching %s", url)
                return self._fail(session, ErrorKind.CANCELLED, "Crawl cancelled")

            reason = stop_rules.check_before_fetch(session, url)
            if reason is not None:
                return self._complete(session, reason)

            session.state = CrawlState.FETCHING
            try:
                fetched = fetch_session.fetch(url, self.timeout_ms, stop_event=session.stop_event)
            except FetchCancelledError:
                logger.info("Fetch cancelled for %s", url)
                return self._fail(session, ErrorKind.CANCELLED, "Crawl cancelled")
            except FetchError as e:
                outcome = self._on_fetch_error(session, stop_rules, e)
                if outcome is not None:
                    return outcome
                self._pause(session)
                continue
            logger.info("Fetched %s -> status %s", url, fetched.status_code)

            session.mark_visited(url)
            session.state = CrawlState.EXTRACTING
            try:
                content = self.selector_evaluator.evaluate_rule(fetched.html, request.content_rule)
            except ExtractError as e:
                if request.content_rule.required:
                    logger.warning("Required content selector failed on %s: %s", url, e)
                    return self._fail(
                        session,
                        ErrorKind.CONTENT_SELECTOR_NO_MATCH,
                        f"Content selector failed on {url}: {e}",
                    )
                logger.info("Optional content selector failed on %s: %s", url, e)
                content = ""

            assets = self.asset_collector.collect(fetched.html, url).merge(
                fetched.stylesheet_urls, fetched.script_urls
            )
            session.add_page(
                PageResult(
                    url=url,
                    extracted_content=content,
                    stylesheet_urls=assets.stylesheet_urls,
                    script_urls=assets.script_urls,
                )
            )
            stop_rules.record_success(session)
            self._publish(sink, session, f"Processed page {session.pages_processed}: {url}")

            session.state = CrawlState.DECIDING_NEXT
            try:
                next_value = self.selector_evaluator.evaluate_pagination(fetched.html, request.pagination_rule)
            except ExtractError as e:
                logger.info("No next link on %s: %s", url, e)
                next_value = None
            next_url = stop_rules.resolve_next(url, next_value)
            if next_url is None:
                return self._complete(session, StopReason.NO_NEXT_BUTTON)

            session.current_url = next_url
            self._pause(session)

    def _on_fetch_error(self, session: CrawlSession, stop_rules: StopRuleEvaluator, error: FetchError) -> Optional[CrawlOutcome]:
        """Count a failed fetch; return the terminal outcome, or None to retry the URL."""
        logger.warning("Fetch failed for %s: %s", session.current_url, error)
        if stop_rules.record_error(session):
            logger.warning(
                "Consecutive error threshold (%s) reached at %s",
                stop_rules.stop_rules.max_consecutive_errors,
                session.current_url,
            )
            return self._complete(session, StopReason.ERROR_THRESHOLD_REACHED)
        if self.retry_failed_fetch:
            logger.info("Retrying %s (%s consecutive errors)", session.current_url, session.consecutive_errors)
            return None
        return self._fail(session, ErrorKind(error.kind), str(error))

    def _pause(self, session: CrawlSession) -> None:
        if self.delay_seconds > 0:
            # Returns early when the run is cancelled.
            session.stop_event.wait(self.delay_seconds)

    def _publish(self, sink: ProgressSink, session: CrawlSession, note: str) -> None:
        event = ProgressEvent(
            sequence=session.pages_processed,
            pages_processed=session.pages_processed,
            pages=session.pages,
            last_visited_url=session.last_visited_url,
            note=note,
        )
        try:
            sink.publish(event)
        except Exception as e:
            # Each event carries the full snapshot, so the next one supersedes it.
            logger.warning("Failed to publish progress for %s: %s", session.last_visited_url, e)

    def _complete(self, session: CrawlSession, reason: StopReason) -> CrawlResult:
        session.state = CrawlState.COMPLETED
        logger.info("Crawl completed: %s after %s pages", reason.value, session.pages_processed)
        return CrawlResult(
            pages_processed=session.pages_processed,
            stop_reason=reason,
            pages=session.pages,
        )

    def _fail(self, session: CrawlSession, kind: ErrorKind, message: str) -> CrawlFailure:
        reached = session.state
        session.state = CrawlState.FAILED
        logger.warning("Crawl failed in state %s (%s): %s", reached.value, kind.value, message)
        return CrawlFailure(
            state=reached,
            pages_processed=session.pages_processed,
            error_kind=kind,
            message=message,
            pages=session.pages,
        )
