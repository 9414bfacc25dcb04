"""Crawl result data model."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union


class StopReason(str, Enum):
    """Machine-readable reason a crawl run terminated gracefully."""

    NO_NEXT_BUTTON = "no-next-button"
    ALREADY_VISITED = "already-visited-url"
    MAX_PAGES_REACHED = "max-pages-reached"
    ERROR_THRESHOLD_REACHED = "error-threshold-reached"
    OUT_OF_DOMAIN_BLOCKED = "out-of-domain-blocked"


class CrawlState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    EXTRACTING = "extracting"
    DECIDING_NEXT = "deciding_next"
    COMPLETED = "completed"
    FAILED = "failed"


class ErrorKind(str, Enum):
    CONFIGURATION = "configuration"
    CAPABILITY_UNAVAILABLE = "capability-unavailable"
    TIMEOUT = "timeout"
    NETWORK = "network"
    HTTP_STATUS = "http-status"
    BLOCKED = "blocked"
    CONTENT_SELECTOR_NO_MATCH = "content-selector-no-match"
    CANCELLED = "cancelled"
    UNEXPECTED = "unexpected"


_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class PageResult:
    url: str
    extracted_content: str
    stylesheet_urls: frozenset = field(default_factory=frozenset)
    script_urls: frozenset = field(default_factory=frozenset)

    def preview(self, limit: int = 280) -> str:
        normalized = _WHITESPACE.sub(" ", self.extracted_content).strip()
        if len(normalized) > limit:
            return normalized[:limit] + "…"
        return normalized

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "content": self.extracted_content,
            "stylesheets": sorted(self.stylesheet_urls),
            "scripts": sorted(self.script_urls),
        }


@dataclass(frozen=True)
class CrawlResult:
    """Terminal artifact of a gracefully stopped run."""

    pages_processed: int
    stop_reason: StopReason
    pages: tuple = ()

    @property
    def ok(self) -> bool:
        return True

    def to_dict(self) -> dict:
        return {
            "pagesProcessed": self.pages_processed,
            "stopReason": self.stop_reason.value,
            "pages": [p.to_dict() for p in self.pages],
        }


@dataclass(frozen=True)
class CrawlFailure:
    """Terminal artifact of a run that could not complete.

    Carries whatever pages were extracted before the failure.
    """

    state: CrawlState
    pages_processed: int
    error_kind: ErrorKind
    message: str
    pages: tuple = ()

    @property
    def ok(self) -> bool:
        return False

    def to_dict(self) -> dict:
        return {
            "state": self.state.value,
            "pagesProcessed": self.pages_processed,
            "errorKind": self.error_kind.value,
            "message": self.message,
            "pages": [p.to_dict() for p in self.pages],
        }


CrawlOutcome = Union[CrawlResult, CrawlFailure]


@dataclass(frozen=True)
class ProgressEvent:
    """Interim snapshot pushed to the job tracker after each processed page."""

    sequence: int
    pages_processed: int
    pages: tuple
    last_visited_url: Optional[str]
    note: str = ""

    def snapshot(self) -> dict:
        return {
            "pagesProcessed": self.pages_processed,
            "stopReason": None,
            "pages": [p.to_dict() for p in self.pages],
        }
