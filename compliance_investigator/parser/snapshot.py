import re
from typing import Optional

from bs4 import BeautifulSoup, Tag

from compliance_investigator.parser.field_locator import (
    NEXT_SIBLING,
    PARENT_NEXT_SIBLING,
    ExactTextStrategy,
    LookupStrategy,
)
from compliance_investigator.parser.record_parser import collapse_whitespace

# Tags whose text a browser never renders.
NON_RENDERED = {'head', 'title', 'script', 'style', 'noscript', 'template'}

_HIDDEN_STYLE = re.compile(r'display\s*:\s*none|visibility\s*:\s*hidden', re.I)


def is_hidden(tag: Tag) -> bool:
    """True if the tag or any ancestor is hidden by attribute, inline style or a non-rendered container."""
    node = tag
    while isinstance(node, Tag):
        if node.name in NON_RENDERED or node.has_attr('hidden'):
            return True
        if _HIDDEN_STYLE.search(node.get('style') or ''):
            return True
        node = node.parent
    return False


def is_rendered(tag: Tag) -> bool:
    return not any(t.name in NON_RENDERED for t in [tag, *tag.parents])


class SnapshotElement:
    def __init__(self, tag: Tag):
        self.tag = tag

    def is_visible(self) -> bool:
        return not is_hidden(self.tag)

    def adjacent_text(self, position: str) -> Optional[str]:
        if position == NEXT_SIBLING:
            anchor = self.tag
        elif position == PARENT_NEXT_SIBLING:
            anchor = self.tag.parent
        else:
            raise ValueError(f"Unknown adjacent position: {position}")
        sibling = anchor.find_next_sibling() if isinstance(anchor, Tag) else None
        return sibling.get_text() if sibling else None


class SnapshotPageContext:
    """
    Page context over saved page HTML (for example the output of
    `page.content()`), so extraction can be replayed without a browser.
    """

    def __init__(self, html: str, url: str = ''):
        self.soup = BeautifulSoup(html or '', 'html.parser')
        self.url = url

    def is_active(self) -> bool:
        return True

    def current_url(self) -> str:
        return self.url

    def find(self, strategy: LookupStrategy, label: str) -> Optional[SnapshotElement]:
        for tag in self.soup.find_all(True):
            if is_rendered(tag) and strategy.matches(tag, label):
                return SnapshotElement(tag)
        return None

    def first_text(self, selector: str) -> str:
        tag = self.soup.select_one(selector)
        return tag.get_text() if tag else ''

    def region_text(self, heading: str) -> Optional[str]:
        element = self.find(ExactTextStrategy(), heading)
        if element is None or not element.is_visible():
            return None
        container = element.tag.parent.parent if element.tag.parent else None
        if not isinstance(container, Tag):
            container = element.tag
        return collapse_whitespace(container.get_text())
