"""Domain objects for PageChain - explicit re-exports to satisfy linters."""
from .rules import SelectorType as SelectorType
from .rules import ExtractMode as ExtractMode
from .rules import SelectorRule as SelectorRule
from .rules import PaginationRule as PaginationRule
from .rules import StopRules as StopRules
from .profile import CrawlProfile as CrawlProfile
from .profile import CrawlRequest as CrawlRequest
from .crawl_result import CrawlFailure as CrawlFailure
from .crawl_result import CrawlResult as CrawlResult
from .crawl_result import CrawlState as CrawlState
from .crawl_result import ErrorKind as ErrorKind
from .crawl_result import PageResult as PageResult
from .crawl_result import ProgressEvent as ProgressEvent
from .crawl_result import StopReason as StopReason
from .crawl_session import CrawlSession as CrawlSession
from .fetched_page import FetchedPage as FetchedPage

__all__ = [
    "SelectorType",
    "ExtractMode",
    "SelectorRule",
    "PaginationRule",
    "StopRules",
    "CrawlProfile",
    "CrawlRequest",
    "CrawlFailure",
    "CrawlResult",
    "CrawlState",
    "ErrorKind",
    "PageResult",
    "ProgressEvent",
    "StopReason",
    "CrawlSession",
    "FetchedPage",
]
