import html as html_lib
from typing import Callable, Optional

from bs4 import BeautifulSoup
from lxml import etree
from lxml import html as lxml_html
from soupsieve import SelectorSyntaxError

from pagechain.domain.rules import DEFAULT_ATTRIBUTE, ExtractMode, PaginationRule, SelectorRule, SelectorType
from pagechain.exceptions import NoMatchError, NotAnElementError, SelectorEvalError


def default_soup_factory(markup: str) -> BeautifulSoup:
    # Keep attributes such as class/rel as plain strings, like getAttribute().
    return BeautifulSoup(markup, "html.parser", multi_valued_attributes=None)


def _parse_document(markup: str):
    try:
        return lxml_html.document_fromstring(markup)
    except ValueError:
        # Unicode input carrying an XML encoding declaration.
        return lxml_html.document_fromstring(markup.encode("utf-8"))
    except etree.ParserError:
        return lxml_html.document_fromstring("<html><body></body></html>")


class _CssNode:
    def __init__(self, tag):
        self._tag = tag

    def inner_html(self) -> str:
        return self._tag.decode_contents()

    def text(self) -> str:
        return self._tag.get_text()

    def attribute(self, name: str) -> Optional[str]:
        return self._tag.get(name)


class _XPathNode:
    def __init__(self, element):
        self._element = element

    def inner_html(self) -> str:
        parts = [html_lib.escape(self._element.text, quote=False)] if self._element.text else []
        for child in self._element:
            # tostring() keeps the child's tail text.
            parts.append(lxml_html.tostring(child, encoding="unicode"))
        return "".join(parts)

    def text(self) -> str:
        return self._element.text_content()

    def attribute(self, name: str) -> Optional[str]:
        return self._element.get(name)


class SelectorEvaluator:
    """Evaluates CSS or XPath rules against a static HTML document.

    CSS selectors run through BeautifulSoup (soupsieve); XPath expressions run
    through lxml. In both cases the first matching node in document order wins.
    """

    def __init__(self, soup_factory: Optional[Callable[[str], BeautifulSoup]] = None):
        self._soup_factory = soup_factory or default_soup_factory

    def _first_css(self, markup: str, selector: str) -> _CssNode:
        soup = self._soup_factory(markup)
        try:
            tag = soup.select_one(selector)
        except (SelectorSyntaxError, NotImplementedError) as e:
            # soupsieve raises NotImplementedError for pseudo-elements and at-rules.
            raise SelectorEvalError(f"Invalid CSS selector {selector!r}: {e}") from e
        if tag is None:
            raise NoMatchError(f"No node matched selector {selector!r}")
        return _CssNode(tag)

    def _first_xpath(self, markup: str, selector: str) -> _XPathNode:
        tree = _parse_document(markup).getroottree()
        try:
            result = tree.xpath(selector)
        except etree.XPathError as e:
            raise SelectorEvalError(f"Invalid XPath expression {selector!r}: {e}") from e
        if not isinstance(result, list):
            raise SelectorEvalError(f"XPath expression {selector!r} did not select nodes")
        if not result:
            raise NoMatchError(f"No node matched selector {selector!r}")
        node = result[0]
        # Text, attribute and comment nodes are not elements.
        if not isinstance(node, etree._Element) or not isinstance(node.tag, str):
            raise NotAnElementError(f"Matched node for {selector!r} is not an HTML element")
        return _XPathNode(node)

    def _first_node(self, markup: str, selector_type: SelectorType, selector: str):
        selector_type = SelectorType.parse(selector_type)
        if not isinstance(selector, str) or not selector.strip():
            raise SelectorEvalError("Selector is empty")
        markup = markup or ""
        if selector_type is SelectorType.CSS:
            return self._first_css(markup, selector)
        return self._first_xpath(markup, selector)

    def extract_field(
        self,
        html: str,
        selector_type: SelectorType,
        selector: str,
        extract_mode: ExtractMode,
        attribute_name: Optional[str] = None,
    ) -> str:
        """Extract one value from `html`.

        Raises `NoMatchError`, `NotAnElementError` or `SelectorEvalError`.
        A missing attribute in attribute mode is not an error and yields "".
        """
        node = self._first_node(html, selector_type, selector)
        mode = ExtractMode.parse(extract_mode)
        if mode is ExtractMode.HTML:
            return node.inner_html().strip()
        if mode is ExtractMode.TEXT:
            return node.text().strip()
        attr = (attribute_name or "").strip().lower() or DEFAULT_ATTRIBUTE
        value = node.attribute(attr)
        return value.strip() if value is not None else ""

    def extract_next_url(self, html: str, selector_type: SelectorType, selector: str, attribute_name: str) -> str:
        return self.extract_field(html, selector_type, selector, ExtractMode.ATTRIBUTE, attribute_name)

    def evaluate_rule(self, html: str, rule: SelectorRule) -> str:
        return self.extract_field(
            html,
            rule.selector_type,
            rule.selector,
            rule.extract_mode,
            rule.effective_attribute,
        )

    def evaluate_pagination(self, html: str, rule: PaginationRule) -> str:
        return self.extract_next_url(html, rule.selector_type, rule.selector, rule.attribute_name)


_default_evaluator = SelectorEvaluator()


def extract_field(html, selector_type, selector, extract_mode, attribute_name=None) -> str:
    return _default_evaluator.extract_field(html, selector_type, selector, extract_mode, attribute_name)


def extract_next_url(html, selector_type, selector, attribute_name) -> str:
    return _default_evaluator.extract_next_url(html, selector_type, selector, attribute_name)
