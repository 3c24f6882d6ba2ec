"""
Decides whether an investigation goes on to the (paid, slow) research phase.

    SEARCHING -> FOUND      customer search matched and the record has a name
    SEARCHING -> NOT_FOUND  anything else

A NOT_FOUND investigation is closed with a terminal report built locally; the
research agent is never called for it.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from compliance_investigator.models import (
    ComplianceReport,
    CustomerRecord,
    ExternalResearchFindings,
    InternalDataOverview,
    PersonalInfo,
    RiskAssessment,
    RiskLevel,
)

logger = logging.getLogger(__name__)

NOT_AVAILABLE = 'N/A'

NOT_FOUND_ACTIONS = [
    'Verify customer name spelling and try again',
    'Check if customer exists in ComplianceOS database',
    'Contact system administrator if customer should exist',
]


class InvestigationState(str, Enum):
    SEARCHING = 'SEARCHING'
    FOUND = 'FOUND'
    NOT_FOUND = 'NOT_FOUND'


@dataclass(frozen=True)
class Decision:
    state: InvestigationState
    record: Optional[CustomerRecord] = None
    reason: str = ''


def decide(found: bool, record: Optional[CustomerRecord], reason: str = 'Customer not found') -> Decision:
    if found and record is not None and record.personal.name.strip():
        return Decision(InvestigationState.FOUND, record=record)
    return Decision(InvestigationState.NOT_FOUND, record=not_found_record(), reason=reason)


def not_found_record() -> CustomerRecord:
    """Placeholder record carried by a NOT_FOUND decision."""
    return CustomerRecord(
        personal=PersonalInfo(
            name=NOT_AVAILABLE,
            date_of_birth=NOT_AVAILABLE,
            address=NOT_AVAILABLE,
            customer_id=NOT_AVAILABLE,
            email=NOT_AVAILABLE,
            phone=NOT_AVAILABLE,
        ),
        risk_level=RiskLevel.UNKNOWN.value,
    )


def not_found_report(customer_name: str, reason: str, generated_at: Optional[str] = None) -> ComplianceReport:
    record = not_found_record()
    return ComplianceReport(
        executive_summary=f'Investigation for {customer_name} could not be completed. {reason}',
        internal_data_overview=InternalDataOverview(
            customer_profile=record.personal,
            risk_level=record.risk_level,
        ),
        external_research_findings=ExternalResearchFindings(
            background_check='Customer not found in ComplianceOS database.',
            counterparty_analysis=NOT_AVAILABLE,
            public_records=NOT_AVAILABLE,
            news_and_media=NOT_AVAILABLE,
            additional_findings='No data available for analysis.',
        ),
        risk_assessment=RiskAssessment(
            overall_risk_score=RiskLevel.UNKNOWN.value,
            risk_factors=['Customer not found in system'],
        ),
        recommended_actions=list(NOT_FOUND_ACTIONS),
        generated_at=generated_at or datetime.now(timezone.utc).isoformat(),
        customer_name=customer_name,
    )


class InvestigationStateMachine:
    def __init__(self, researcher):
        self.researcher = researcher
        self.state = InvestigationState.SEARCHING

    def decide(self, found: bool, record: Optional[CustomerRecord], reason: str = 'Customer not found') -> Decision:
        decision = decide(found, record, reason)
        logger.info("Investigation state: %s -> %s", self.state.value, decision.state.value)
        self.state = decision.state
        return decision

    def resolve(self, customer_name: str, decision: Decision) -> ComplianceReport:
        if decision.state is InvestigationState.FOUND:
            return self.researcher.research(decision.record)
        logger.warning("Customer %r not found, skipping research: %s", customer_name, decision.reason)
        return not_found_report(customer_name, decision.reason)
