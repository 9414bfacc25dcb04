from __future__ import annotations

from dataclasses import dataclass, field

from pagechain.domain.rules import PaginationRule, SelectorRule, StopRules
from pagechain.exceptions import ProfileValidationError

FETCH_MODES = ("http", "headless_chromium")


@dataclass(frozen=True)
class CrawlProfile:
    """Named configuration binding a domain to its extraction and stop rules."""

    name: str
    domain: str
    content_rule: SelectorRule
    pagination_rule: PaginationRule
    stop_rules: StopRules = field(default_factory=StopRules)
    fetch_mode: str = "http"
    # Rendered fetches wait for the content selector before reading the DOM.
    wait_for_content: bool = True

    def __post_init__(self):
        if not isinstance(self.domain, str) or not self.domain.strip():
            raise ProfileValidationError(f"Profile '{self.name}' requires a domain")
        if self.fetch_mode not in FETCH_MODES:
            raise ProfileValidationError(f"Unknown fetch_mode: {self.fetch_mode!r}")


@dataclass(frozen=True)
class CrawlRequest:
    """Input of one crawl run: a start address plus the profile to apply."""

    start_url: str
    profile: CrawlProfile

    def __post_init__(self):
        if not isinstance(self.start_url, str) or not self.start_url.strip():
            raise ProfileValidationError("start_url is required")

    @property
    def domain(self) -> str:
        return self.profile.domain

    @property
    def content_rule(self) -> SelectorRule:
        return self.profile.content_rule

    @property
    def pagination_rule(self) -> PaginationRule:
        return self.profile.pagination_rule

    @property
    def stop_rules(self) -> StopRules:
        return self.profile.stop_rules
