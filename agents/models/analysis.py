# =============================================================================
# agents/models/analysis.py - AI Analysis Result Schemas
# =============================================================================
# Pydantic models for the JSON the analyst asks OpenAI to return.
#
# The model's output is validated but forgiving: every field has a default,
# and numeric scores are coerced and clamped so a slightly off-range reply
# (e.g. match_score 104, win_probability "0.7") still validates.
# =============================================================================

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from lib.utils import clamp, parse_number


def _score(value: Any) -> int:
    return int(clamp(parse_number(value), 0, 100))


def _probability(value: Any) -> float:
    number = parse_number(value)
    # Some replies give win probability as a percentage
    if number > 1:
        number = number / 100
    return round(clamp(number, 0.0, 1.0), 4)


class _Lenient(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# =============================================================================
# Document Analysis
# =============================================================================

class ContactInfo(_Lenient):
    contracting_officer: str | None = None
    email: str | None = None
    phone: str | None = None


class Requirements(_Lenient):
    technical: list[str] = Field(default_factory=list)
    experience: list[str] = Field(default_factory=list)
    certifications: list[str] = Field(default_factory=list)
    security_clearance: str | None = None
    performance_period: str | None = None
    place_of_performance: str | None = None


class DocumentAnalysis(_Lenient):
    """Key facts extracted from a solicitation document."""

    title: str = ""
    agency: str = ""
    office: str | None = None
    solicitation_number: str | None = None
    submission_deadline: str | None = None
    contract_value_min: float | None = None
    contract_value_max: float | None = None
    naics_codes: list[str] = Field(default_factory=list)
    description: str = ""
    requirements: Requirements = Field(default_factory=Requirements)
    # Criterion name -> weight (percent), e.g. {"technical_approach": 40}
    evaluation_criteria: dict[str, Any] = Field(default_factory=dict)
    set_aside_type: str | None = None
    keywords: list[str] = Field(default_factory=list)
    opportunity_type: str | None = None
    contact_info: ContactInfo | None = None

    @field_validator("naics_codes", mode="before")
    @classmethod
    def _stringify_codes(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [str(v) for v in value]
        return value

    @field_validator("contract_value_min", "contract_value_max", mode="before")
    @classmethod
    def _parse_money(cls, value: Any) -> Any:
        if value is None or value == "":
            return None
        return parse_number(value)


# =============================================================================
# Opportunity Matching
# =============================================================================

class MatchReasoning(_Lenient):
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    naics_match: bool = False
    size_qualification: bool = False
    past_performance_relevance: int = 0
    geographic_advantage: bool = False

    @field_validator("past_performance_relevance", mode="before")
    @classmethod
    def _relevance(cls, value: Any) -> int:
        return _score(value)


class OpportunityMatch(_Lenient):
    """How one opportunity fits the company, per the model."""

    opportunity_id: str
    match_score: int = 0
    win_probability: float = 0.0
    reasoning: MatchReasoning = Field(default_factory=MatchReasoning)

    @field_validator("opportunity_id", mode="before")
    @classmethod
    def _id_to_str(cls, value: Any) -> str:
        return str(value)

    @field_validator("match_score", mode="before")
    @classmethod
    def _match(cls, value: Any) -> int:
        return _score(value)

    @field_validator("win_probability", mode="before")
    @classmethod
    def _win(cls, value: Any) -> float:
        return _probability(value)


# =============================================================================
# Application Quality
# =============================================================================

class QualityScore(_Lenient):
    overall_score: int = 0
    completeness_score: int = 0
    technical_score: int = 0
    compliance_score: int = 0
    competitiveness_score: int = 0
    strengths: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    missing_requirements: list[str] = Field(default_factory=list)
    improvement_suggestions: list[str] = Field(default_factory=list)
    win_probability: float | None = None

    @field_validator(
        "overall_score",
        "completeness_score",
        "technical_score",
        "compliance_score",
        "competitiveness_score",
        mode="before",
    )
    @classmethod
    def _scores(cls, value: Any) -> int:
        return _score(value)

    @field_validator("win_probability", mode="before")
    @classmethod
    def _win(cls, value: Any) -> float | None:
        return None if value is None else _probability(value)


# =============================================================================
# Proposal Content
# =============================================================================

class ProposalSection(str, Enum):
    TECHNICAL_APPROACH = "technical_approach"
    PAST_PERFORMANCE = "past_performance"
    COMPANY_OVERVIEW = "company_overview"
    PRICING_STRATEGY = "pricing_strategy"


# =============================================================================
# Compliance Documents
# =============================================================================

class ComplianceDocumentType(str, Enum):
    CHECKLIST_DOCUMENT = "checklist_document"
    FINANCIAL_DOCUMENT = "financial_document"
    CERTIFICATION_DOCUMENT = "certification_document"


class ComplianceStatus(str, Enum):
    COMPLIANT = "compliant"
    PARTIALLY_COMPLIANT = "partially_compliant"
    NON_COMPLIANT = "non_compliant"
    UNKNOWN = "unknown"


class ExtractedData(_Lenient):
    licenses: list[str] = Field(default_factory=list)
    certifications: list[str] = Field(default_factory=list)
    insurance: list[str] = Field(default_factory=list)
    financial_info: list[str] = Field(default_factory=list)


class ComplianceAnalysis(_Lenient):
    """
    Review of an uploaded compliance document.

    Stored on checklist_files.ai_analysis together with the metadata the
    queue worker adds (analysis_timestamp, file_type, checklist_item,
    analysis_type).
    """

    summary: str = ""
    key_findings: list[str] = Field(default_factory=list)
    compliance_status: ComplianceStatus = ComplianceStatus.UNKNOWN
    missing_requirements: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    confidence_score: float = 0.0
    extracted_data: ExtractedData = Field(default_factory=ExtractedData)
    raw_analysis: str | None = None

    @field_validator("compliance_status", mode="before")
    @classmethod
    def _status(cls, value: Any) -> Any:
        try:
            return ComplianceStatus(value)
        except ValueError:
            return ComplianceStatus.UNKNOWN

    @field_validator("confidence_score", mode="before")
    @classmethod
    def _confidence(cls, value: Any) -> float:
        return _probability(value)
