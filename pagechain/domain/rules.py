from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pagechain.exceptions import ProfileValidationError


class SelectorType(str, Enum):
    CSS = "css"
    XPATH = "xpath"

    @classmethod
    def parse(cls, value) -> "SelectorType":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ProfileValidationError(f"Unknown selector type: {value!r}") from None


class ExtractMode(str, Enum):
    TEXT = "text"
    HTML = "html"
    ATTRIBUTE = "attribute"

    @classmethod
    def parse(cls, value) -> "ExtractMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ProfileValidationError(f"Unknown extract mode: {value!r}") from None


DEFAULT_ATTRIBUTE = "href"


@dataclass(frozen=True)
class SelectorRule:
    """How to pull the primary content field out of a page."""

    selector_type: SelectorType
    selector: str
    extract_mode: ExtractMode = ExtractMode.HTML
    attribute_name: Optional[str] = None
    required: bool = True

    def __post_init__(self):
        if not isinstance(self.selector, str) or not self.selector.strip():
            raise ProfileValidationError("Content selector rule requires a selector")

    @property
    def effective_attribute(self) -> str:
        """Attribute read in attribute mode; falls back to href."""
        name = (self.attribute_name or "").strip()
        return name or DEFAULT_ATTRIBUTE


@dataclass(frozen=True)
class PaginationRule:
    """Where the next page link lives. Always read from a node attribute."""

    selector_type: SelectorType
    selector: str
    attribute_name: str = DEFAULT_ATTRIBUTE

    def __post_init__(self):
        if not isinstance(self.selector, str) or not self.selector.strip():
            raise ProfileValidationError("Pagination rule requires a selector")
        if not isinstance(self.attribute_name, str) or not self.attribute_name.strip():
            raise ProfileValidationError("Pagination rule requires an attribute name")


@dataclass(frozen=True)
class StopRules:
    stop_when_no_next_button: bool = True
    stop_when_url_visited: bool = True
    max_pages: int = 100
    max_consecutive_errors: int = 3

    def __post_init__(self):
        for name in ("max_pages", "max_consecutive_errors"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ProfileValidationError(f"{name} must be an integer >= 1, got {value!r}")
