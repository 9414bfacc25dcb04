"""Custom exceptions for PageChain services."""
from typing import Optional


class ProfileNotFoundError(Exception):
    """Raised when a requested profile cannot be found on disk."""

    def __init__(self, profile_name: str, reason: str = "not found"):
        self.profile_name = profile_name
        self.reason = reason
        super().__init__(f"Profile '{profile_name}' {reason}")


class ProfileValidationError(ValueError):
    """Raised when a profile or crawl request is missing or has invalid rules."""


class FetchError(Exception):
    """Base class for page retrieval failures."""

    kind = "network"

    def __init__(self, url: str, message: str, original: Optional[Exception] = None):
        self.url = url
        self.original = original
        super().__init__(f"Fetch failed for {url}: {message}")


class FetchTimeoutError(FetchError):
    kind = "timeout"


class FetchNetworkError(FetchError):
    kind = "network"


class FetchBlockedError(FetchError):
    """The request was blocked by the browser (CORS, client blocking, ...)."""

    kind = "blocked"


class FetchCancelledError(FetchError):
    kind = "cancelled"


class FetchStatusError(FetchError):
    kind = "http-status"

    def __init__(self, url: str, status_code: int):
        self.status_code = status_code
        super().__init__(url, f"non-success status {status_code}")


class CapabilityUnavailableError(Exception):
    """Raised when a fetch backend cannot run in the current process."""

    def __init__(self, capability: str, message: str):
        self.capability = capability
        super().__init__(message)


class ExtractError(Exception):
    """Base class for selector evaluation failures."""

    kind = "eval"


class NoMatchError(ExtractError):
    kind = "no-match"


class NotAnElementError(ExtractError):
    kind = "not-an-element"


class SelectorEvalError(ExtractError):
    kind = "eval"
