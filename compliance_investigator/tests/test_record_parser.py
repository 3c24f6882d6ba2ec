import pytest
from compliance_investigator.config import FlagRules
from compliance_investigator.parser.record_parser import (
    DEFAULT_SUMMARY,
    amount_value,
    parse_investigations,
    parse_transactions,
)

TRANSACTIONS_TEXT = (
    'Recent TransactionsLast 30 days'
    '2024-01-15Best BuyElectronics$4500.00'
    '2024-01-18Crypto ExchangeTransfer$2500.00'
    '2024-01-22Offshore HoldingsWire$15,000.00'
)

INVESTIGATIONS_TEXT = (
    'Past InvestigationsHistory of compliance checks and alerts'
    'Unusual transaction volumeINV-2023-0012023-11-15closed'
    'Suspicious wire transfersINV-2024-0072024-02-03OPEN'
)


def test_parse_transactions_extracts_records_in_order():
    transactions = parse_transactions(TRANSACTIONS_TEXT)
    assert [t.id for t in transactions] == ['TXN-1', 'TXN-2', 'TXN-3']
    assert [t.date for t in transactions] == ['2024-01-15', '2024-01-18', '2024-01-22']
    assert [t.amount for t in transactions] == ['$4500.00', '$2500.00', '$15,000.00']
    first = transactions[0]
    assert first.counterparty == 'Best Buy'
    assert first.type == 'Electronics'
    assert first.status == 'Completed'
    assert not first.flagged
    assert first.flag_reason is None


def test_parse_transactions_flags_high_risk_counterparty_regardless_of_amount():
    crypto = parse_transactions(TRANSACTIONS_TEXT)[1]
    assert crypto.counterparty == 'Crypto Exchange'
    assert crypto.flagged
    assert 'crypto' in crypto.flag_reason

    lowercase = parse_transactions('2024-03-01small cryptoTransfer$1.00')[0]
    assert lowercase.flagged


def test_parse_transactions_flags_amount_over_threshold():
    wire = parse_transactions(TRANSACTIONS_TEXT)[2]
    assert wire.counterparty == 'Offshore Holdings'
    assert wire.type == 'Wire'
    assert wire.flagged
    assert 'threshold' in wire.flag_reason


def test_amount_exactly_at_threshold_is_not_flagged():
    transactions = parse_transactions('2024-01-01Acme CorpPayroll$10,000.00')
    assert len(transactions) == 1
    assert not transactions[0].flagged


def test_parse_transactions_repeated_pattern_yields_sequential_ids():
    text = ''.join(f'2024-02-{day:02d}Corner ShopGroceries${day}.50' for day in range(1, 11))
    transactions = parse_transactions(text)
    assert len(transactions) == 10
    assert [t.id for t in transactions] == [f'TXN-{n}' for n in range(1, 11)]
    assert [t.amount for t in transactions] == [f'${day}.50' for day in range(1, 11)]


def test_parse_transactions_on_whitespace_collapsed_text():
    text = 'Recent Transactions 2024-01-15 Best Buy Electronics $4500.00 2024-01-18 Crypto Exchange Transfer $2500.00'
    transactions = parse_transactions(text)
    assert [(t.counterparty, t.type) for t in transactions] == [
        ('Best Buy', 'Electronics'),
        ('Crypto Exchange', 'Transfer'),
    ]


def test_parse_transactions_defaults_category_when_no_split():
    transaction = parse_transactions('2024-02-01payroll$100.00')[0]
    assert transaction.counterparty == 'payroll'
    assert transaction.type == 'Transfer'


def test_parse_transactions_drops_truncated_trailing_record():
    assert len(parse_transactions(TRANSACTIONS_TEXT + '2024-01-25Late Entry$12')) == 3
    assert len(parse_transactions(TRANSACTIONS_TEXT + '2024-01-25Late Entry')) == 3


@pytest.mark.parametrize('text', ['', None, 'Recent TransactionsNo transactions in this period'])
def test_parse_transactions_without_matches_returns_empty(text):
    assert parse_transactions(text) == []


def test_parse_transactions_with_custom_rules():
    rules = FlagRules(amount_threshold=1000, high_risk_keywords=('casino',))
    transactions = parse_transactions('2024-01-01Grand Casino LtdLeisure$50.002024-01-02Best BuyElectronics$4500.00', rules)
    assert [t.flagged for t in transactions] == [True, True]
    assert 'casino' in transactions[0].flag_reason


def test_high_risk_keywords_match_regardless_of_case():
    rules = FlagRules(high_risk_keywords=('Crypto',))
    transactions = parse_transactions('2024-01-01crypto exchangeTransfer$5.002024-01-02Best BuyElectronics$5.00', rules)
    assert [t.flagged for t in transactions] == [True, False]


def test_negative_amount_keeps_sign_out_of_category():
    transactions = parse_transactions('2024-03-01StoreRefund-$50.002024-03-02Best BuyElectronics $20.00')
    assert [(t.counterparty, t.type, t.amount) for t in transactions] == [
        ('Store', 'Refund', '-$50.00'),
        ('Best Buy', 'Electronics', '$20.00'),
    ]
    assert amount_value(transactions[0].amount) == -50.0
    assert not transactions[0].flagged


def test_amount_value_strips_symbols_and_separators():
    assert amount_value('$12,000.50') == 12000.5
    assert amount_value('£1,000.00') == 1000.0
    assert amount_value('n/a') is None


def test_parse_investigations_single_blob():
    investigations = parse_investigations('Unusual transaction volumeINV-2023-0012023-11-15closed')
    assert len(investigations) == 1
    inv = investigations[0]
    assert inv.id == 'INV-2023-001'
    assert inv.date == '2023-11-15'
    assert inv.status == 'Closed'
    assert inv.summary == 'Unusual transaction volume'
    assert inv.investigator == 'Compliance Officer'


def test_parse_investigations_strips_section_boilerplate():
    investigations = parse_investigations(INVESTIGATIONS_TEXT)
    assert [i.id for i in investigations] == ['INV-2023-001', 'INV-2024-007']
    assert [i.summary for i in investigations] == ['Unusual transaction volume', 'Suspicious wire transfers']
    assert [i.status for i in investigations] == ['Closed', 'Open']


def test_parse_investigations_summary_falls_back_to_generic_label():
    inv = parse_investigations('INV-2023-0012023-11-15closed')[0]
    assert inv.summary == DEFAULT_SUMMARY


def test_parse_investigations_requires_exact_id_format():
    assert parse_investigations('Bad idINV-23-0012023-11-15closed') == []
    assert parse_investigations('Lowercaseinv-2023-0012023-11-15closed') == []


def test_parse_investigations_tolerates_whitespace_between_fields():
    inv = parse_investigations('Sanctions screening INV-2022-042 2022-06-30 Open')[0]
    assert (inv.id, inv.date, inv.status) == ('INV-2022-042', '2022-06-30', 'Open')
    assert inv.summary == 'Sanctions screening'


def test_parse_investigations_uses_given_investigator():
    inv = parse_investigations('INV-2023-0012023-11-15open', investigator='A. Analyst')[0]
    assert inv.investigator == 'A. Analyst'
