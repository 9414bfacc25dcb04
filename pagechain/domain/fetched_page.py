from typing import FrozenSet, NamedTuple, Optional


class FetchedPage(NamedTuple):
    """Response from a page fetch operation."""
    url: str
    status_code: int
    html: str
    content_type: Optional[str] = None
    # Assets observed on the network while rendering; empty for static fetches.
    stylesheet_urls: FrozenSet[str] = frozenset()
    script_urls: FrozenSet[str] = frozenset()
