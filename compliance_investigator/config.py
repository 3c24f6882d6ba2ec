import os
from dataclasses import dataclass, field
from typing import Dict, Tuple

from dotenv import load_dotenv

from compliance_investigator.errors import ConfigError

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() not in ('false', '0', 'no', 'off')


COMPLIANCE_URL = os.getenv('COMPLIANCE_URL', 'https://compliance-j9ehback.manus.space/login')
COMPLIANCE_USERNAME = os.getenv('COMPLIANCE_USERNAME', 'admin')
COMPLIANCE_PASSWORD = os.getenv('COMPLIANCE_PASSWORD', 'password123')

HEADLESS = _env_bool('HEADLESS', True)
BROWSER_TIMEOUT = int(os.getenv('BROWSER_TIMEOUT', '30000'))

OPENAI_API_KEY = os.getenv('OPENAI_API_KEY', '')
OPENAI_MODEL = os.getenv('OPENAI_MODEL', 'gpt-4o-mini')

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
LOG_FILE = os.getenv('LOG_FILE') or None

OUTPUT_DIR = os.getenv('OUTPUT_DIR', './reports')
SCREENSHOT_DIR = os.getenv('SCREENSHOT_DIR', './screenshots')

FLAG_AMOUNT_THRESHOLD = float(os.getenv('FLAG_AMOUNT_THRESHOLD', '10000'))
HIGH_RISK_KEYWORDS = tuple(
    k.strip().lower() for k in os.getenv('HIGH_RISK_KEYWORDS', 'crypto').split(',') if k.strip()
)

# Portal selectors (update as needed)
CUSTOMER_NAME_SELECTOR = 'h1, h2, .customer-name, [data-testid*="name"]'
TRANSACTIONS_HEADING = 'Recent Transactions'
INVESTIGATIONS_HEADING = 'Past Investigations'

# Candidate labels per field, most specific first.
FIELD_LABELS: Dict[str, Tuple[str, ...]] = {
    'date_of_birth': ('Date of Birth', 'DOB', 'Birth Date', 'dob'),
    'address': ('Address', 'Location', 'Residence'),
    'email': ('Email', 'E-mail'),
    'phone': ('Phone', 'Telephone', 'Mobile'),
    'customer_id': ('Customer ID', 'ID', 'Account Number'),
    'risk_level': ('Risk Level', 'Risk', 'Risk Score', 'Risk Rating'),
}

# Checked in order; the first tier with a keyword present in the text wins.
RISK_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ('High', ('critical', 'high')),
    ('Medium', ('moderate', 'medium')),
    ('Low', ('minimal', 'low')),
)


@dataclass(frozen=True)
class FlagRules:
    """When a scraped transaction gets flagged for review."""
    amount_threshold: float = 10000.0
    high_risk_keywords: Tuple[str, ...] = ('crypto',)


@dataclass(frozen=True)
class ExtractionSettings:
    name_selector: str = CUSTOMER_NAME_SELECTOR
    transactions_heading: str = TRANSACTIONS_HEADING
    investigations_heading: str = INVESTIGATIONS_HEADING
    field_labels: Dict[str, Tuple[str, ...]] = field(default_factory=lambda: dict(FIELD_LABELS))
    risk_keywords: Tuple[Tuple[str, Tuple[str, ...]], ...] = RISK_KEYWORDS
    flag_rules: FlagRules = field(default_factory=FlagRules)
    investigator: str = 'Compliance Officer'


def extraction_settings() -> ExtractionSettings:
    """Settings for the record assembler, with flag rules taken from the environment."""
    return ExtractionSettings(
        flag_rules=FlagRules(
            amount_threshold=FLAG_AMOUNT_THRESHOLD,
            high_risk_keywords=HIGH_RISK_KEYWORDS,
        )
    )


def require_openai_key() -> str:
    if not OPENAI_API_KEY:
        raise ConfigError(
            'Missing required environment variable: OPENAI_API_KEY. Set it in the environment or a .env file.'
        )
    return OPENAI_API_KEY
