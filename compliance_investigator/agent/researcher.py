"""
LLM research phase: turns a scraped CustomerRecord into a ComplianceReport.

Usage:
    researcher = ResearchAgent.from_api_key(api_key, model="gpt-4o-mini")
    report = researcher.research(record)
"""

import logging
import re
from datetime import datetime, timezone
from typing import Dict, List, Sequence

from openai import OpenAI

from compliance_investigator.errors import ResearchError
from compliance_investigator.models import (
    ComplianceReport,
    CustomerRecord,
    ExternalResearchFindings,
    InternalDataOverview,
    InvestigationHistory,
    RiskAssessment,
    Transaction,
    TransactionsSummary,
)
from compliance_investigator.parser.record_parser import amount_value

logger = logging.getLogger(__name__)

RESEARCH_SYSTEM_PROMPT = (
    "You are an expert compliance analyst with deep knowledge of financial regulations, AML procedures, "
    "and risk assessment. You conduct thorough, professional investigations and provide actionable intelligence."
)
RISK_SYSTEM_PROMPT = (
    "You are an expert risk analyst specializing in compliance and AML. "
    "You provide clear, actionable risk assessments."
)
SUMMARY_SYSTEM_PROMPT = "You are a senior compliance officer writing executive summaries for management."
ACTIONS_SYSTEM_PROMPT = "You are a compliance expert providing actionable recommendations."

# Headers the model is asked to use, mapped onto ExternalResearchFindings fields.
RESEARCH_SECTIONS = {
    'BACKGROUND CHECK': 'background_check',
    'COUNTERPARTY ANALYSIS': 'counterparty_analysis',
    'PUBLIC RECORDS': 'public_records',
    'NEWS AND MEDIA': 'news_and_media',
    'ADDITIONAL FINDINGS': 'additional_findings',
}

FALLBACK_ACTIONS = [
    'Continue monitoring customer activity',
    'Review flagged transactions',
    'Update risk assessment quarterly',
]

RECENT_INVESTIGATIONS = 3


def total_amount(transactions: Sequence[Transaction]) -> str:
    total = sum(amount_value(t.amount) or 0.0 for t in transactions)
    return f"${total:,.2f}"


def analysis_context(record: CustomerRecord) -> str:
    flagged = record.flagged_transactions
    counterparties = list(dict.fromkeys(t.counterparty for t in record.transactions))
    lines = [
        "Customer Profile:",
        f"- Name: {record.personal.name}",
        f"- Date of Birth: {record.personal.date_of_birth}",
        f"- Address: {record.personal.address}",
        f"- Risk Level: {record.risk_level}",
        "",
        "Transaction Summary:",
        f"- Total Transactions: {len(record.transactions)}",
        f"- Flagged Transactions: {len(flagged)}",
        f"- Unique Counterparties: {len(counterparties)}",
        "",
        "Flagged Transactions:",
    ]
    for t in flagged:
        lines.append(
            f"  - Date: {t.date} | Amount: {t.amount} | Counterparty: {t.counterparty} "
            f"| Reason: {t.flag_reason or 'Not specified'}"
        )
    lines += ["", "Recent Investigations:"]
    for inv in record.investigations:
        lines.append(f"  - Date: {inv.date} | Status: {inv.status} | Summary: {inv.summary}")
    lines += ["", "Key Counterparties:", ", ".join(counterparties[:10])]
    return "\n".join(lines)


def parse_research_sections(content: str) -> ExternalResearchFindings:
    sections: Dict[str, List[str]] = {}
    current = None
    for line in content.split('\n'):
        heading = line.strip().lstrip('#*0123456789. ').upper()
        header = next((key for title, key in RESEARCH_SECTIONS.items() if heading.startswith(title)), None)
        if header:
            current = header
            sections[current] = []
        elif current and line.strip():
            sections[current].append(line)
    findings = {key: '\n'.join(lines).strip() for key, lines in sections.items()}
    if not findings.get('background_check') and not findings.get('counterparty_analysis'):
        findings['additional_findings'] = content
    return ExternalResearchFindings(**findings)


RISK_LIST_HEADERS = (
    ('mitigating', re.compile(r'mitigating factors?', re.I)),
    ('risk', re.compile(r'risk factors?', re.I)),
    ('compliance', re.compile(r'compliance flags?', re.I)),
)


def parse_risk_assessment(content: str) -> RiskAssessment:
    score = 'Medium'
    lists: Dict[str, List[str]] = {'risk': [], 'mitigating': [], 'compliance': []}
    current = None
    for line in content.split('\n'):
        line = line.strip()
        if re.search(r'risk score|overall risk', line, re.I):
            level = re.search(r'(Low|Medium|High|Critical)', line, re.I)
            if level:
                score = level.group(1).capitalize()
            continue
        header = next((name for name, pattern in RISK_LIST_HEADERS if pattern.search(line)), None)
        if header:
            current = header
            continue
        item = re.match(r'^(?:[-*•]|\d+\.)\s+(.+)', line)
        if item and current:
            lists[current].append(item.group(1).strip())
    return RiskAssessment(
        overall_risk_score=score,
        risk_factors=lists['risk'],
        mitigating_factors=lists['mitigating'],
        compliance_flags=lists['compliance'],
    )


def parse_numbered_list(content: str) -> List[str]:
    return [m.group(1).strip() for m in re.finditer(r'^\s*\d+\.\s+(.+)$', content, re.M)]


class ResearchAgent:
    def __init__(self, client: OpenAI, model: str = 'gpt-4o-mini'):
        self.client = client
        self.model = model

    @classmethod
    def from_api_key(cls, api_key: str, model: str = 'gpt-4o-mini') -> 'ResearchAgent':
        return cls(OpenAI(api_key=api_key), model=model)

    def _complete(self, system: str, prompt: str, temperature: float, max_tokens: int) -> str:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
        )
        if not response.choices:
            return ''
        return response.choices[0].message.content or ''

    def research(self, record: CustomerRecord) -> ComplianceReport:
        name = record.personal.name
        logger.info("Generating compliance report for %r (risk=%s, transactions=%d)",
                    name, record.risk_level, len(record.transactions))
        try:
            findings = self.external_research(record)
            assessment = self.risk_assessment(record, findings)
            summary = self.executive_summary(record, assessment)
            actions = self.recommended_actions(assessment)
        except Exception as e:
            logger.error("Research for %r failed: %s", name, e)
            raise ResearchError(f"Report generation failed: {e}") from e

        report = ComplianceReport(
            executive_summary=summary,
            internal_data_overview=InternalDataOverview(
                customer_profile=record.personal,
                risk_level=record.risk_level,
                transactions_summary=TransactionsSummary(
                    total=len(record.transactions),
                    flagged=len(record.flagged_transactions),
                    total_amount=total_amount(record.transactions),
                ),
                investigation_history=InvestigationHistory(
                    total=len(record.investigations),
                    recent=list(record.investigations[:RECENT_INVESTIGATIONS]),
                ),
            ),
            external_research_findings=findings,
            risk_assessment=assessment,
            recommended_actions=actions,
            generated_at=datetime.now(timezone.utc).isoformat(),
            customer_name=name,
        )
        logger.info("Compliance report generated for %r (overall risk %s)", name, assessment.overall_risk_score)
        return report

    def external_research(self, record: CustomerRecord) -> ExternalResearchFindings:
        logger.info("Conducting external research...")
        prompt = (
            "You are a compliance analyst conducting a thorough investigation. Based on the following internal "
            "customer data, conduct external research to uncover any relevant information that may impact the "
            "compliance assessment.\n\n"
            f"{analysis_context(record)}\n\n"
            "Please provide comprehensive research findings in the following areas:\n\n"
            "1. BACKGROUND CHECK: Research the customer's public profile, business affiliations, and any relevant "
            "news or media mentions. Look for any red flags or notable associations.\n\n"
            "2. COUNTERPARTY ANALYSIS: Investigate the key counterparties involved in flagged transactions. Are any "
            "of them known for suspicious activities, sanctioned entities, or high-risk jurisdictions?\n\n"
            "3. PUBLIC RECORDS: Search for any legal proceedings, regulatory actions, or compliance violations "
            "associated with this customer.\n\n"
            "4. NEWS AND MEDIA: Look for recent news articles, press releases, or media coverage that might be "
            "relevant to the customer's risk profile.\n\n"
            "5. ADDITIONAL FINDINGS: Any other relevant information discovered during the research.\n\n"
            "Format your response as a professional compliance research report. Be thorough but concise. "
            "Focus on facts and actionable intelligence."
        )
        content = self._complete(RESEARCH_SYSTEM_PROMPT, prompt, temperature=0.3, max_tokens=2000)
        return parse_research_sections(content)

    def risk_assessment(self, record: CustomerRecord, findings: ExternalResearchFindings) -> RiskAssessment:
        logger.info("Generating risk assessment...")
        prompt = (
            "Based on the following customer data and external research findings, provide a comprehensive risk "
            "assessment.\n\n"
            "INTERNAL DATA:\n"
            f"- Risk Level: {record.risk_level}\n"
            f"- Flagged Transactions: {len(record.flagged_transactions)} out of {len(record.transactions)}\n"
            f"- Past Investigations: {len(record.investigations)}\n\n"
            "EXTERNAL RESEARCH:\n"
            f"Background: {findings.background_check}\n"
            f"Counterparties: {findings.counterparty_analysis}\n"
            f"Public Records: {findings.public_records}\n"
            f"News: {findings.news_and_media}\n\n"
            "Provide:\n"
            "1. Overall Risk Score (Low/Medium/High/Critical)\n"
            "2. Key Risk Factors (list 3-5 specific concerns)\n"
            "3. Mitigating Factors (any factors that reduce risk)\n"
            "4. Compliance Flags (specific regulatory or compliance issues)\n\n"
            "Be specific and actionable. Focus on facts."
        )
        content = self._complete(RISK_SYSTEM_PROMPT, prompt, temperature=0.2, max_tokens=1000)
        return parse_risk_assessment(content)

    def executive_summary(self, record: CustomerRecord, assessment: RiskAssessment) -> str:
        logger.info("Generating executive summary...")
        prompt = (
            "Generate a concise executive summary (3-4 paragraphs) for a compliance report on "
            f"{record.personal.name}.\n\n"
            "Key Information:\n"
            f"- Risk Level: {record.risk_level}\n"
            f"- Overall Risk Score: {assessment.overall_risk_score}\n"
            f"- Flagged Transactions: {len(record.flagged_transactions)}\n"
            f"- Key Risk Factors: {'; '.join(assessment.risk_factors)}\n\n"
            "The summary should:\n"
            "1. Provide a high-level overview of the customer and their risk profile\n"
            "2. Highlight the most critical findings\n"
            "3. State the recommended risk level\n"
            "4. Be suitable for senior management review\n\n"
            "Write in a professional, objective tone. No emojis or casual language."
        )
        return self._complete(SUMMARY_SYSTEM_PROMPT, prompt, temperature=0.3, max_tokens=500).strip()

    def recommended_actions(self, assessment: RiskAssessment) -> List[str]:
        logger.info("Generating recommended actions...")
        prompt = (
            "Based on the risk assessment, provide 3-5 specific, actionable recommendations for the compliance "
            "team.\n\n"
            f"Risk Score: {assessment.overall_risk_score}\n"
            f"Risk Factors: {'; '.join(assessment.risk_factors)}\n"
            f"Compliance Flags: {'; '.join(assessment.compliance_flags)}\n\n"
            "Each recommendation should be:\n"
            "- Specific and actionable\n"
            "- Prioritized by importance\n"
            "- Practical to implement\n\n"
            "Format as a numbered list."
        )
        content = self._complete(ACTIONS_SYSTEM_PROMPT, prompt, temperature=0.3, max_tokens=500)
        return parse_numbered_list(content) or list(FALLBACK_ACTIONS)

    def ping(self) -> bool:
        """Cheap request to confirm the API key and model are usable."""
        try:
            self._complete("You are a connectivity check.", "Reply with OK.", temperature=0.0, max_tokens=5)
            return True
        except Exception as e:
            logger.error("OpenAI connection test failed: %s", e)
            return False
