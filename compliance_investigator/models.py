"""
Data model for one compliance investigation: the customer record scraped from
the portal and the report derived from it.
"""

from enum import Enum
from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class RiskLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    UNKNOWN = "Unknown"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class PersonalInfo(_Frozen):
    name: str
    date_of_birth: str = ""
    address: str = ""
    customer_id: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class Transaction(_Frozen):
    id: str
    date: str
    amount: str
    counterparty: str
    type: str
    status: str = "Completed"
    flagged: bool = False
    flag_reason: Optional[str] = None


class Investigation(_Frozen):
    id: str = Field(pattern=r"^INV-\d{4}-\d{3}$")
    date: str
    status: Literal["Open", "Closed"]
    summary: str
    investigator: str = "Compliance Officer"


class CustomerRecord(_Frozen):
    """
    Everything extracted for one customer. Built once by the assembler and
    only read afterwards.
    """

    personal: PersonalInfo
    risk_level: str = RiskLevel.UNKNOWN.value
    transactions: Tuple[Transaction, ...] = ()
    investigations: Tuple[Investigation, ...] = ()

    @property
    def flagged_transactions(self) -> List[Transaction]:
        return [t for t in self.transactions if t.flagged]


class TransactionsSummary(BaseModel):
    total: int = 0
    flagged: int = 0
    total_amount: str = "$0.00"


class InvestigationHistory(BaseModel):
    total: int = 0
    recent: List[Investigation] = Field(default_factory=list)


class InternalDataOverview(BaseModel):
    customer_profile: PersonalInfo
    risk_level: str
    transactions_summary: TransactionsSummary = Field(default_factory=TransactionsSummary)
    investigation_history: InvestigationHistory = Field(default_factory=InvestigationHistory)


class ExternalResearchFindings(BaseModel):
    background_check: str = ""
    counterparty_analysis: str = ""
    public_records: str = ""
    news_and_media: str = ""
    additional_findings: str = ""


class RiskAssessment(BaseModel):
    overall_risk_score: str = "Medium"
    risk_factors: List[str] = Field(default_factory=list)
    mitigating_factors: List[str] = Field(default_factory=list)
    compliance_flags: List[str] = Field(default_factory=list)


class ComplianceReport(BaseModel):
    executive_summary: str
    internal_data_overview: InternalDataOverview
    external_research_findings: ExternalResearchFindings
    risk_assessment: RiskAssessment
    recommended_actions: List[str]
    generated_at: str
    customer_name: str
