from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from compliance_investigator.agent.researcher import (
    FALLBACK_ACTIONS,
    ResearchAgent,
    parse_research_sections,
    parse_risk_assessment,
    total_amount,
)
from compliance_investigator.errors import ResearchError
from compliance_investigator.models import CustomerRecord, PersonalInfo
from compliance_investigator.parser.record_parser import parse_investigations, parse_transactions

RESEARCH_REPLY = '''1. BACKGROUND CHECK
Jane Doe is a self-employed consultant based in Leeds.

2. COUNTERPARTY ANALYSIS
Crypto Exchange is an unregulated platform.

3. PUBLIC RECORDS
No legal proceedings found.

4. NEWS AND MEDIA
No adverse media.

5. ADDITIONAL FINDINGS
None.
'''

RISK_REPLY = '''Overall Risk Score: High

Key Risk Factors:
- Transfers to an unregulated crypto exchange
- Large wire to an offshore entity

Mitigating Factors:
- Long-standing customer relationship

Compliance Flags:
1. Possible structuring under BSA
'''

SUMMARY_REPLY = 'Jane Doe presents elevated risk driven by crypto and offshore activity.'

ACTIONS_REPLY = '''1. File a suspicious activity report
2. Apply enhanced due diligence
3. Review crypto exposure with the customer
'''


def reply(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def make_record():
    return CustomerRecord(
        personal=PersonalInfo(name='Jane Doe', date_of_birth='1985-03-12', address='42 Harbour Street, Leeds'),
        risk_level='Medium',
        transactions=tuple(parse_transactions(
            '2024-01-15Best BuyElectronics$4500.002024-01-18Crypto ExchangeTransfer$2500.00'
            '2024-01-22Offshore HoldingsWire$15,000.00'
        )),
        investigations=tuple(parse_investigations(
            'Unusual transaction volumeINV-2023-0012023-11-15closed'
            'Dormant account reactivationINV-2023-0082023-12-01closed'
            'Suspicious wire transfersINV-2024-0072024-02-03open'
            'Address mismatchINV-2024-0112024-03-09open'
        )),
    )


def make_agent(*contents):
    client = MagicMock()
    client.chat.completions.create.side_effect = [reply(c) for c in contents]
    return ResearchAgent(client, model='gpt-test'), client


def test_research_builds_full_report():
    agent, client = make_agent(RESEARCH_REPLY, RISK_REPLY, SUMMARY_REPLY, ACTIONS_REPLY)
    report = agent.research(make_record())

    assert client.chat.completions.create.call_count == 4
    assert client.chat.completions.create.call_args_list[0].kwargs['model'] == 'gpt-test'

    assert report.customer_name == 'Jane Doe'
    assert report.executive_summary == SUMMARY_REPLY
    overview = report.internal_data_overview
    assert overview.risk_level == 'Medium'
    assert overview.transactions_summary.total == 3
    assert overview.transactions_summary.flagged == 2
    assert overview.transactions_summary.total_amount == '$22,000.00'
    assert overview.investigation_history.total == 4
    assert [i.id for i in overview.investigation_history.recent] == ['INV-2023-001', 'INV-2023-008', 'INV-2024-007']

    findings = report.external_research_findings
    assert findings.background_check == 'Jane Doe is a self-employed consultant based in Leeds.'
    assert findings.counterparty_analysis == 'Crypto Exchange is an unregulated platform.'
    assert findings.news_and_media == 'No adverse media.'

    assessment = report.risk_assessment
    assert assessment.overall_risk_score == 'High'
    assert assessment.risk_factors == ['Transfers to an unregulated crypto exchange', 'Large wire to an offshore entity']
    assert assessment.mitigating_factors == ['Long-standing customer relationship']
    assert assessment.compliance_flags == ['Possible structuring under BSA']
    assert report.recommended_actions == [
        'File a suspicious activity report',
        'Apply enhanced due diligence',
        'Review crypto exposure with the customer',
    ]


def test_research_prompt_includes_flagged_transactions():
    agent, client = make_agent(RESEARCH_REPLY, RISK_REPLY, SUMMARY_REPLY, ACTIONS_REPLY)
    agent.research(make_record())
    prompt = client.chat.completions.create.call_args_list[0].kwargs['messages'][1]['content']
    assert 'Flagged Transactions: 2' in prompt
    assert 'Crypto Exchange' in prompt


def test_fallback_actions_when_reply_has_no_list():
    agent, _ = make_agent(RESEARCH_REPLY, RISK_REPLY, SUMMARY_REPLY, 'Nothing specific to recommend.')
    assert agent.research(make_record()).recommended_actions == FALLBACK_ACTIONS


def test_api_failure_raises_research_error():
    client = MagicMock()
    client.chat.completions.create.side_effect = RuntimeError('rate limited')
    with pytest.raises(ResearchError, match='rate limited'):
        ResearchAgent(client).research(make_record())


def test_unstructured_research_reply_goes_to_additional_findings():
    findings = parse_research_sections('The customer has no public footprint.')
    assert findings.background_check == ''
    assert findings.additional_findings == 'The customer has no public footprint.'


def test_risk_assessment_defaults_to_medium():
    assessment = parse_risk_assessment('No structured output.')
    assert assessment.overall_risk_score == 'Medium'
    assert assessment.risk_factors == []


def test_total_amount_ignores_unparseable_amounts():
    assert total_amount([]) == '$0.00'


def test_ping_reports_failure():
    client = MagicMock()
    client.chat.completions.create.side_effect = RuntimeError('invalid api key')
    assert ResearchAgent(client).ping() is False
    client.chat.completions.create.side_effect = None
    client.chat.completions.create.return_value = reply('OK')
    assert ResearchAgent(client).ping() is True
