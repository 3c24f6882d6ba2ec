import logging
from typing import Optional

from playwright.sync_api import Locator, Page

from compliance_investigator.parser.field_locator import (
    NEXT_SIBLING,
    PARENT_NEXT_SIBLING,
    ExactTextStrategy,
    LookupStrategy,
)
from compliance_investigator.parser.record_parser import collapse_whitespace

logger = logging.getLogger(__name__)

_ADJACENT_XPATH = {
    NEXT_SIBLING: 'xpath=following-sibling::*[1]',
    PARENT_NEXT_SIBLING: 'xpath=../following-sibling::*[1]',
}


def _text_if_present(locator: Locator) -> Optional[str]:
    # count() returns immediately; text_content() would wait for a missing element.
    if locator.count() == 0:
        return None
    return locator.first.text_content()


class PlaywrightElement:
    def __init__(self, locator: Locator):
        self.locator = locator

    def is_visible(self) -> bool:
        try:
            return self.locator.is_visible()
        except Exception:
            return False

    def adjacent_text(self, position: str) -> Optional[str]:
        try:
            xpath = _ADJACENT_XPATH[position]
        except KeyError:
            raise ValueError(f"Unknown adjacent position: {position}")
        return _text_if_present(self.locator.locator(xpath))


class PlaywrightPageContext:
    """Page context over the live portal page held by a PortalSession."""

    def __init__(self, page: Optional[Page]):
        self.page = page

    def is_active(self) -> bool:
        return self.page is not None and not self.page.is_closed()

    def current_url(self) -> str:
        return self.page.url if self.page is not None else ''

    def find(self, strategy: LookupStrategy, label: str) -> Optional[PlaywrightElement]:
        locator = self.page.locator(strategy.selector(label)).first
        if locator.count() == 0:
            return None
        return PlaywrightElement(locator)

    def first_text(self, selector: str) -> str:
        return _text_if_present(self.page.locator(selector)) or ''

    def region_text(self, heading: str) -> Optional[str]:
        heading_el = self.page.locator(ExactTextStrategy().selector(heading)).first
        if not PlaywrightElement(heading_el).is_visible():
            logger.info("Section heading %r not visible", heading)
            return None
        text = _text_if_present(heading_el.locator('xpath=../..'))
        logger.debug("Section %r text: %d chars, preview %r", heading, len(text or ''), (text or '')[:150])
        return collapse_whitespace(text)
