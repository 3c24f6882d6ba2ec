"""Markdown rendering and persistence of compliance reports."""

import logging
import os
import secrets
from datetime import datetime, timezone
from typing import List, Optional

from compliance_investigator.models import ComplianceReport
from compliance_investigator.utils.file_ops import save_json, save_text, slugify

logger = logging.getLogger(__name__)

RISK_SCORES = {
    'low': '3/10',
    'medium': '6/10',
    'high': '9/10',
    'critical': '10/10',
    'unknown': '5/10',
}

SEPARATOR = ['', '---', '']


def _parse_timestamp(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return datetime.now(timezone.utc)


def new_case_id(when: datetime) -> str:
    return f"GL-{when:%Y%m%d}-{secrets.token_hex(3).upper()}"


def risk_score(overall: str) -> str:
    return RISK_SCORES.get(overall.lower(), '5/10')


def priority(overall: str) -> str:
    overall = overall.lower()
    if overall in ('high', 'critical'):
        return 'HIGH'
    if overall == 'medium':
        return 'MEDIUM'
    return 'LOW'


def _numbered(items: List[str], empty: str) -> List[str]:
    if not items:
        return [f"1. {empty}"]
    return [f"{i}. {item}" for i, item in enumerate(items, 1)]


def render_markdown(report: ComplianceReport, case_id: Optional[str] = None) -> str:
    overview = report.internal_data_overview
    profile = overview.customer_profile
    summary = overview.transactions_summary
    history = overview.investigation_history
    findings = report.external_research_findings
    assessment = report.risk_assessment
    generated = _parse_timestamp(report.generated_at)
    case_id = case_id or new_case_id(generated)

    lines = [
        '# Compliance Investigation Report',
        '',
        f"**Subject:** {report.customer_name}",
        f"**Date of Investigation:** {generated:%B} {generated.day}, {generated:%Y}",
        '**Investigator:** Greenlite AI Agent',
        f"**Case ID:** {case_id}",
        f"**Risk Level:** {overview.risk_level.upper()}",
    ]
    lines += SEPARATOR

    lines += ['## Executive Summary', '', report.executive_summary]
    lines += SEPARATOR

    lines += [
        '## Subject Profile',
        '',
        f"**Name:** {profile.name}",
        f"**Date of Birth:** {profile.date_of_birth}",
        f"**Address:** {profile.address}",
    ]
    if profile.customer_id:
        lines.append(f"**Customer ID:** {profile.customer_id}")
    if profile.email:
        lines.append(f"**Email:** {profile.email}")
    if profile.phone:
        lines.append(f"**Phone:** {profile.phone}")
    lines.append(f"**Current Risk Classification:** {overview.risk_level}")
    lines += SEPARATOR

    lines += ['## Transaction Analysis', '', '### Flagged Transactions', '']
    if summary.flagged > 0:
        lines += [
            f"- **Total Flagged:** {summary.flagged} out of {summary.total} transactions",
            f"- **Total Amount:** {summary.total_amount}",
            f"- **Pattern Analysis:** {assessment.risk_factors[0] if assessment.risk_factors else 'See risk factors below'}",
            '',
        ]
    else:
        lines += [
            'No flagged transactions in the current review period.',
            '',
            f"**Total Transactions:** {summary.total}",
            f"**Total Amount:** {summary.total_amount}",
            '',
        ]
    lines += SEPARATOR[1:]

    lines += [
        '## External Research Findings',
        '',
        '### Subject Background',
        '',
        findings.background_check or 'No additional background information available.',
        '',
        '### Counterparty Analysis',
        '',
        findings.counterparty_analysis or 'Counterparty analysis in progress.',
        '',
        '### Public Records',
        '',
        findings.public_records or 'No public records found.',
        '',
        '### Adverse Media Check',
        '',
        findings.news_and_media or 'No adverse media found during investigation period.',
    ]
    if findings.additional_findings:
        lines += ['', '### Additional Findings', '', findings.additional_findings]
    lines += SEPARATOR

    lines += ['## Past Investigation History', '']
    if history.total and history.recent:
        for inv in history.recent:
            lines += [f"**{inv.summary}** | {inv.id} | {inv.status}", '', f"**Date:** {inv.date}", '']
    else:
        lines += ['No prior investigations on record.', '']
    lines += SEPARATOR[1:]

    flags = assessment.compliance_flags
    lines += ['## Risk Assessment', '', '### Risk Factors Identified']
    lines += _numbered(assessment.risk_factors, 'No significant risk factors identified at this time')
    lines += ['', '### Mitigating Factors']
    lines += _numbered(assessment.mitigating_factors, 'Standard customer profile with no mitigating circumstances noted')
    lines += [
        '',
        f"### Overall Risk Score: {risk_score(assessment.overall_risk_score)}",
        '',
        f"**Justification:** Risk classification based on {len(assessment.risk_factors)} identified risk factors "
        f"and {len(assessment.mitigating_factors)} mitigating factors. "
        + (f"{len(flags)} compliance flags require attention." if flags else 'No compliance flags at this time.'),
    ]
    lines += SEPARATOR

    lines += ['## Recommended Actions', '', f"**Priority:** {priority(assessment.overall_risk_score)}", '']
    lines.append('1. **Immediate Actions:**')
    lines += [f"   - {a}" for a in report.recommended_actions[:2]]
    lines += ['', '2. **Further Investigation Required:**']
    further = report.recommended_actions[2:]
    if further:
        lines += [f"   - {a}" for a in further]
    else:
        lines += ['   - Continue standard monitoring procedures',
                  '   - Review account activity in next quarterly assessment']
    lines += [
        '',
        '3. **Monitoring Recommendations:**',
        '   - Ongoing transaction monitoring for unusual patterns',
        '   - Quarterly risk reassessment',
        '   - Alert on transactions exceeding normal thresholds',
    ]
    lines += SEPARATOR

    lines += [
        '## Supporting Documentation',
        '',
        '- Internal Case File: ComplianceOS Database',
        '- External Sources Referenced: Web search, public records databases',
        '- Screenshots/Evidence: Available in case file system',
    ]
    lines += SEPARATOR

    lines += ['## Regulatory Considerations', '']
    if flags:
        lines += ['The following regulatory frameworks apply to this case:', '']
        lines += [f"- {flag}" for flag in flags]
    else:
        lines.append('This case is subject to standard AML/KYC/BSA compliance requirements. '
                     'No additional regulatory considerations identified at this time.')
    lines += SEPARATOR

    factor_count = len(assessment.risk_factors)
    confidence = 'HIGH' if factor_count > 2 else 'MEDIUM' if factor_count > 0 else 'LOW'
    lines += [
        f"**Report Generated:** {generated:%Y-%m-%d %H:%M:%S %Z}".rstrip(),
        '**Data Sources:** ComplianceOS Internal Database, Web Search, Public Records',
        f"**Confidence Level:** {confidence} based on data quality",
    ]
    lines += SEPARATOR
    lines.append('*This report is confidential and intended for compliance review purposes only.*')
    return '\n'.join(lines)


def save_report(report: ComplianceReport, output_dir: str, case_id: Optional[str] = None) -> str:
    """Write the report as markdown plus a JSON copy; returns the markdown path."""
    timestamp = datetime.now(timezone.utc).strftime('%Y-%m-%dT%H-%M-%S-%f')
    base = os.path.join(output_dir, f"compliance_report_{slugify(report.customer_name)}_{timestamp}")
    path = base + '.md'
    save_text(render_markdown(report, case_id=case_id), path)
    save_json(report.model_dump(mode='json'), base + '.json')
    logger.info("Report saved to %s", path)
    return path
