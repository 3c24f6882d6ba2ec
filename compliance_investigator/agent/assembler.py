import logging
from typing import Callable, List, Optional, Sequence, Tuple

from compliance_investigator.config import ExtractionSettings
from compliance_investigator.errors import PatternMismatch, SessionError
from compliance_investigator.models import CustomerRecord, PersonalInfo, RiskLevel
from compliance_investigator.parser.field_locator import FieldLocator
from compliance_investigator.parser.record_parser import parse_investigations, parse_transactions

logger = logging.getLogger(__name__)


def normalize_risk_level(text: str, keywords: Sequence[Tuple[str, Sequence[str]]]) -> str:
    """
    Map located risk text onto a canonical level by keyword, e.g.
    'Current Levelmedium RiskLast assessment...' -> 'Medium'. Text with no
    known keyword is passed through trimmed; no text at all is 'Unknown'.
    """
    text = (text or '').strip()
    if not text:
        return RiskLevel.UNKNOWN.value
    lowered = text.lower()
    for level, words in keywords:
        if any(word in lowered for word in words):
            return level
    return text


class CustomerRecordAssembler:
    """
    Builds a CustomerRecord from the customer profile page.

    Only an unusable page raises (SessionError). Any field or section that
    cannot be read ends up empty in the record instead.
    """

    def __init__(self, settings: Optional[ExtractionSettings] = None):
        self.settings = settings or ExtractionSettings()

    def assemble(self, page) -> CustomerRecord:
        if page is None or not page.is_active():
            raise SessionError("No active browser session to extract customer data from")

        logger.info("Extracting customer data from %s", page.current_url())
        locator = FieldLocator(page)

        personal = PersonalInfo(
            name=self._read('name', lambda: page.first_text(self.settings.name_selector)),
            date_of_birth=self._field(locator, 'date_of_birth'),
            address=self._field(locator, 'address'),
            customer_id=self._field(locator, 'customer_id') or None,
            email=self._field(locator, 'email') or None,
            phone=self._field(locator, 'phone') or None,
        )
        logger.debug("Personal info extracted for %r", personal.name)

        risk_level = normalize_risk_level(
            self._field(locator, 'risk_level'),
            self.settings.risk_keywords,
        )
        logger.debug("Risk level extracted: %s", risk_level)

        transactions = self._section(
            page,
            self.settings.transactions_heading,
            lambda text: parse_transactions(text, self.settings.flag_rules),
        )
        investigations = self._section(
            page,
            self.settings.investigations_heading,
            lambda text: parse_investigations(text, self.settings.investigator),
        )

        record = CustomerRecord(
            personal=personal,
            risk_level=risk_level,
            transactions=tuple(transactions),
            investigations=tuple(investigations),
        )
        logger.info(
            "Customer data extraction completed: name=%r transactions=%d investigations=%d",
            personal.name, len(record.transactions), len(record.investigations),
        )
        return record

    def _field(self, locator: FieldLocator, field: str) -> str:
        return self._read(field, lambda: locator.locate(self.settings.field_labels.get(field, ())))

    def _read(self, field: str, read: Callable[[], str]) -> str:
        try:
            return (read() or '').strip()
        except Exception as e:
            logger.warning("Could not read field %s: %s", field, e)
            return ''

    def _section(self, page, heading: str, parse: Callable[[str], List]) -> List:
        try:
            return self._parse_section(page, heading, parse)
        except PatternMismatch as e:
            logger.info("%s (%d chars of section text)", e, len(e.text))
        except Exception as e:
            logger.warning("Failed to extract section %r: %s", heading, e)
        return []

    def _parse_section(self, page, heading: str, parse: Callable[[str], List]) -> List:
        text = page.region_text(heading)
        if text is None:
            return []
        entities = parse(text)
        if not entities:
            raise PatternMismatch(heading, text)
        logger.info("Section %r: %d entities parsed", heading, len(entities))
        return entities
