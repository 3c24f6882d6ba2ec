"""
Label-driven lookup of scalar profile fields ("Date of Birth", "Risk Level", ...)
on a customer page whose markup is not known in advance.

Every lookup strategy knows how to express itself both as a Playwright selector
(for a live page) and as a BeautifulSoup tag predicate (for a saved snapshot),
so the same ordered chain runs against either page context.
"""

import logging
import re
from typing import Iterable, List, Optional, Sequence

from bs4 import Tag

logger = logging.getLogger(__name__)

NEXT_SIBLING = 'next_sibling'
PARENT_NEXT_SIBLING = 'parent_next_sibling'
ADJACENT_POSITIONS = (NEXT_SIBLING, PARENT_NEXT_SIBLING)


def own_text(tag: Tag) -> str:
    """Text held directly by the tag, ignoring its child elements."""
    return re.sub(r'\s+', ' ', ''.join(tag.find_all(string=True, recursive=False))).strip()


class LookupStrategy:
    name = 'base'

    def selector(self, label: str) -> str:
        raise NotImplementedError

    def matches(self, tag: Tag, label: str) -> bool:
        raise NotImplementedError


class ExactTextStrategy(LookupStrategy):
    name = 'exact_text'

    def selector(self, label):
        return f'text="{label}"'

    def matches(self, tag, label):
        return own_text(tag) == label


class TextPatternStrategy(LookupStrategy):
    name = 'text_pattern'

    def selector(self, label):
        return f'text=/{re.escape(label)}/i'

    def matches(self, tag, label):
        return re.search(re.escape(label), own_text(tag), re.I) is not None


class AttributeStrategy(LookupStrategy):
    name = 'attribute'

    def selector(self, label):
        return f'[data-testid*="{label.lower()}"]'

    def matches(self, tag, label):
        test_id = tag.get('data-testid')
        return isinstance(test_id, str) and label.lower() in test_id


class LabelElementStrategy(LookupStrategy):
    name = 'label_element'

    def selector(self, label):
        return f'label:has-text("{label}")'

    def matches(self, tag, label):
        return tag.name == 'label' and label.lower() in re.sub(r'\s+', ' ', tag.get_text()).lower()


DEFAULT_STRATEGIES: Sequence[LookupStrategy] = (
    ExactTextStrategy(),
    TextPatternStrategy(),
    AttributeStrategy(),
    LabelElementStrategy(),
)


class FieldLocator:
    """
    Finds the value displayed next to a field label.

    Labels are tried in the order given, and for each label the strategies in
    chain order. The first strategy that yields a visible element is asked for
    the element's next sibling, then its parent's next sibling; the first
    non-empty text found ends the search. A miss returns ''.
    """

    def __init__(self, page, strategies: Optional[Iterable[LookupStrategy]] = None):
        self.page = page
        self.strategies: List[LookupStrategy] = list(strategies or DEFAULT_STRATEGIES)

    def locate(self, labels: Iterable[str]) -> str:
        for label in labels:
            for strategy in self.strategies:
                try:
                    value = self._probe(strategy, label)
                except Exception:
                    logger.debug("Lookup %s failed for label %r", strategy.name, label, exc_info=True)
                    continue
                if value:
                    logger.debug("Located %r via %s: %r", label, strategy.name, value)
                    return value
        return ''

    def _probe(self, strategy: LookupStrategy, label: str) -> str:
        element = self.page.find(strategy, label)
        if element is None or not element.is_visible():
            return ''
        for position in ADJACENT_POSITIONS:
            value = (element.adjacent_text(position) or '').strip()
            if value:
                return value
        return ''
