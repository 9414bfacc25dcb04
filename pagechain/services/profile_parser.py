from typing import Any, Mapping, Optional

from pagechain.domain.profile import CrawlProfile, CrawlRequest
from pagechain.domain.rules import ExtractMode, PaginationRule, SelectorRule, SelectorType, StopRules
from pagechain.exceptions import ProfileValidationError


def _section(data: Mapping, key: str) -> Mapping:
    value = data.get(key)
    if value is None:
        raise ProfileValidationError(f"Profile is missing the '{key}' section")
    if not isinstance(value, Mapping):
        raise ProfileValidationError(f"Profile section '{key}' must be a mapping")
    return value


def _int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise ProfileValidationError(f"{name} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ProfileValidationError(f"{name} must be an integer, got {value!r}") from None


_TRUE_VALUES = ("true", "yes", "on", "1")
_FALSE_VALUES = ("false", "no", "off", "0")


def _bool(value: Any, name: str, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_VALUES:
            return True
        if text in _FALSE_VALUES:
            return False
    raise ProfileValidationError(f"{name} must be a boolean, got {value!r}")


class ProfileParser:
    """Parse a YAML/JSON dict into a CrawlProfile.

    Responsibility: schema/validation for profile files and API payloads.
    It does NOT perform filesystem IO.

    Expected shape::

        name: example-blog
        domain: example.com
        fetch: {mode: http}
        content: {selector_type: css, selector: .article, extract_mode: html}
        pagination: {selector_type: css, selector: a.next, attribute_name: href}
        stop_rules: {max_pages: 50}
    """

    def __init__(self, *, max_pages_default: int = 100, max_consecutive_errors_default: int = 3):
        self.max_pages_default = max_pages_default
        self.max_consecutive_errors_default = max_consecutive_errors_default

    def parse(self, data: Mapping, *, name: Optional[str] = None) -> CrawlProfile:
        if not isinstance(data, Mapping):
            raise ProfileValidationError("Profile must be a mapping")

        profile_name = str(data.get("name") or name or "").strip()
        if not profile_name:
            raise ProfileValidationError("Profile requires a name")

        content = _section(data, "content")
        pagination = _section(data, "pagination")
        stop = data.get("stop_rules") or {}
        if not isinstance(stop, Mapping):
            raise ProfileValidationError("Profile section 'stop_rules' must be a mapping")
        fetch = data.get("fetch") or {}
        if not isinstance(fetch, Mapping):
            raise ProfileValidationError("Profile section 'fetch' must be a mapping")

        content_rule = SelectorRule(
            selector_type=SelectorType.parse(content.get("selector_type", "css")),
            selector=content.get("selector") or "",
            extract_mode=ExtractMode.parse(content.get("extract_mode", "html")),
            attribute_name=content.get("attribute_name"),
            required=_bool(content.get("required"), "content.required", True),
        )
        pagination_rule = PaginationRule(
            selector_type=SelectorType.parse(pagination.get("selector_type", "css")),
            selector=pagination.get("selector") or "",
            attribute_name=pagination.get("attribute_name") or "href",
        )
        stop_rules = StopRules(
            stop_when_no_next_button=_bool(
                stop.get("stop_when_no_next_button"), "stop_rules.stop_when_no_next_button", True
            ),
            stop_when_url_visited=_bool(stop.get("stop_when_url_visited"), "stop_rules.stop_when_url_visited", True),
            max_pages=_int(stop.get("max_pages", self.max_pages_default), "max_pages"),
            max_consecutive_errors=_int(
                stop.get("max_consecutive_errors", self.max_consecutive_errors_default),
                "max_consecutive_errors",
            ),
        )
        return CrawlProfile(
            name=profile_name,
            domain=str(data.get("domain") or "").strip(),
            content_rule=content_rule,
            pagination_rule=pagination_rule,
            stop_rules=stop_rules,
            fetch_mode=str(fetch.get("mode") or "http").strip().lower(),
            wait_for_content=_bool(fetch.get("wait_for_content"), "fetch.wait_for_content", True),
        )

    def parse_request(self, start_url: str, data: Mapping, *, name: Optional[str] = None) -> CrawlRequest:
        return CrawlRequest(start_url=(start_url or "").strip(), profile=self.parse(data, name=name))
