import logging
from typing import Optional

from pagechain.domain.crawl_result import StopReason
from pagechain.domain.crawl_session import CrawlSession
from pagechain.domain.rules import StopRules
from pagechain.services.domain_guard import host_matches, resolve_url

logger = logging.getLogger(__name__)


class StopRuleEvaluator:
    """Decides whether a crawl run must terminate, and why.

    Pre-fetch checks run in a fixed order: visited, page budget, domain. A URL
    that loops back to an already visited page is therefore reported as
    already visited even when it is also out of domain.
    """

    def __init__(self, stop_rules: StopRules, domain: str):
        self.stop_rules = stop_rules
        self.domain = domain

    def check_before_fetch(self, session: CrawlSession, url: str) -> Optional[StopReason]:
        if self.stop_rules.stop_when_url_visited and session.is_visited(url):
            logger.info("Stopping: %s already visited", url)
            return StopReason.ALREADY_VISITED
        if session.pages_processed >= self.stop_rules.max_pages:
            logger.info("Stopping: max pages (%s) reached", self.stop_rules.max_pages)
            return StopReason.MAX_PAGES_REACHED
        if not host_matches(url, self.domain):
            logger.info("Stopping: %s is outside domain %s", url, self.domain)
            return StopReason.OUT_OF_DOMAIN_BLOCKED
        return None

    def resolve_next(self, current_url: str, next_value: Optional[str]) -> Optional[str]:
        """Absolute next URL, or None when the crawl has no next page."""
        return resolve_url(current_url, next_value)

    def record_error(self, session: CrawlSession) -> bool:
        """Count a failed step; True once the consecutive error threshold is reached."""
        session.consecutive_errors += 1
        return session.consecutive_errors >= self.stop_rules.max_consecutive_errors

    def record_success(self, session: CrawlSession) -> None:
        session.consecutive_errors = 0
