"""
Parsers for the flattened text of the portal's transaction and investigation
cards.

The portal renders each card as a list of inline elements with no separators,
so once the text is read the record boundaries are gone, e.g.::

    2024-01-15Best BuyElectronics$4500.002024-01-18Crypto ExchangeTransfer$12000.00
    Unusual transaction volumeINV-2023-0012023-11-15closed

Both parsers are pure functions of that text: whatever does not match is
discarded, and they never raise on unparseable content.
"""

import re
from typing import List, Optional

from compliance_investigator.config import FlagRules
from compliance_investigator.models import Investigation, Transaction

DATE = r'\d{4}-\d{2}-\d{2}'
CURRENCY_SYMBOLS = '$€£'

TRANSACTION_PATTERN = re.compile(
    rf'({DATE})'
    rf'([^{CURRENCY_SYMBOLS}\d]+?)'
    rf'([{CURRENCY_SYMBOLS}][\d,]+\.\d{{2}})'
    rf'(?={DATE}|\D|$)'
)
INVESTIGATION_PATTERN = re.compile(
    rf'(INV-\d{{4}}-\d{{3}})\s*({DATE})\s*((?i:open|closed))'
)

CAPITAL_BOUNDARY = re.compile(r'(?=[A-Z])')
PHRASE_BOUNDARY = re.compile(r'(?=[A-Z][a-z])|alerts|checks')
BOILERPLATE = re.compile(r'^(Past Investigations|History of compliance|checks and|alerts)', re.I)

DEFAULT_CATEGORY = 'Transfer'
DEFAULT_SUMMARY = 'Compliance Investigation'


def collapse_whitespace(text: Optional[str]) -> str:
    return re.sub(r'\s+', ' ', text or '').strip()


def amount_value(amount: str) -> Optional[float]:
    """Numeric value of a currency string such as '$12,000.00'."""
    try:
        return float(re.sub(rf'[{CURRENCY_SYMBOLS},\s]', '', amount))
    except ValueError:
        return None


def flag_reason(counterparty: str, amount: str, rules: FlagRules) -> Optional[str]:
    lowered = counterparty.lower()
    for keyword in rules.high_risk_keywords:
        if keyword.lower() in lowered:
            return f"Counterparty matches high-risk keyword '{keyword}'"
    value = amount_value(amount)
    if value is not None and value > rules.amount_threshold:
        return f"Amount exceeds {rules.amount_threshold:,.0f} threshold"
    return None


def split_merchant_and_category(text: str):
    text = text.strip()
    parts = [p for p in CAPITAL_BOUNDARY.split(text) if p.strip()]
    if len(parts) < 2:
        return text, DEFAULT_CATEGORY
    merchant = ''.join(parts[:-1]).strip()
    return merchant or text, parts[-1].strip() or DEFAULT_CATEGORY


def parse_transactions(container_text: str, rules: Optional[FlagRules] = None) -> List[Transaction]:
    rules = rules or FlagRules()
    transactions = []
    for match in TRANSACTION_PATTERN.finditer(container_text or ''):
        date, middle, amount = match.groups()
        # A sign directly before the currency symbol belongs to the amount.
        if middle.rstrip().endswith('-'):
            middle, amount = middle.rstrip()[:-1], '-' + amount
        merchant, category = split_merchant_and_category(middle)
        counterparty = merchant or 'Unknown'
        reason = flag_reason(counterparty, amount, rules)
        transactions.append(Transaction(
            id=f'TXN-{len(transactions) + 1}',
            date=date,
            amount=amount,
            counterparty=counterparty,
            type=category,
            flagged=reason is not None,
            flag_reason=reason,
        ))
    return transactions


def summary_before(text: str) -> str:
    """
    Best-effort title for an investigation from the text that precedes its id.
    Falls back to DEFAULT_SUMMARY; titles written without capitals or with
    several capitalised words may come out truncated.
    """
    fragments = PHRASE_BOUNDARY.split(text)
    title = fragments[-1].strip() if fragments else ''
    return BOILERPLATE.sub('', title).strip() or DEFAULT_SUMMARY


def parse_investigations(container_text: str, investigator: str = 'Compliance Officer') -> List[Investigation]:
    container_text = container_text or ''
    investigations = []
    previous_end = 0
    for match in INVESTIGATION_PATTERN.finditer(container_text):
        inv_id, date, status = match.groups()
        investigations.append(Investigation(
            id=inv_id,
            date=date,
            status=status.capitalize(),
            summary=summary_before(container_text[previous_end:match.start()]),
            investigator=investigator,
        ))
        previous_end = match.end()
    return investigations
