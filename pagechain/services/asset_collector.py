import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from bs4 import BeautifulSoup

from pagechain.services.domain_guard import resolve_url
from pagechain.services.selector_evaluator import default_soup_factory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PageAssets:
    stylesheet_urls: frozenset = field(default_factory=frozenset)
    script_urls: frozenset = field(default_factory=frozenset)

    def merge(self, stylesheet_urls: Iterable[str] = (), script_urls: Iterable[str] = ()) -> "PageAssets":
        """Union with extra URLs, e.g. requests observed while rendering."""
        return PageAssets(
            stylesheet_urls=self.stylesheet_urls | frozenset(u for u in stylesheet_urls if u),
            script_urls=self.script_urls | frozenset(u for u in script_urls if u),
        )


def _is_stylesheet(link) -> bool:
    rel = link.get("rel") or ""
    return "stylesheet" in rel.lower().split()


class AssetCollector:
    """Collects stylesheet and script URLs referenced by a page."""

    def __init__(self, soup_factory: Optional[Callable[[str], BeautifulSoup]] = None):
        self._soup_factory = soup_factory or default_soup_factory

    def collect(self, html: str, base_url: str) -> PageAssets:
        if not html:
            return PageAssets()
        try:
            soup = self._soup_factory(html)
        except Exception:
            logger.exception("Error parsing HTML for assets of %s", base_url)
            return PageAssets()

        stylesheets = set()
        for link in soup.find_all("link", href=True):
            if not _is_stylesheet(link):
                continue
            resolved = resolve_url(base_url, link.get("href"))
            if resolved:
                stylesheets.add(resolved)

        scripts = set()
        for script in soup.find_all("script", src=True):
            resolved = resolve_url(base_url, script.get("src"))
            if resolved:
                scripts.add(resolved)

        return PageAssets(stylesheet_urls=frozenset(stylesheets), script_urls=frozenset(scripts))


def collect_assets(html: str, base_url: str) -> PageAssets:
    return AssetCollector().collect(html, base_url)
