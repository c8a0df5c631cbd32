# =============================================================================
# agents/models/ - AI Result Schemas
# =============================================================================
# Pydantic models for the structured JSON the analyst gets back from OpenAI:
# - analysis.py: document analysis, opportunity matches, quality scores,
#   compliance document reviews
#
# Validating every reply through these models keeps malformed model output
# from leaking into the database or API responses.
# =============================================================================

from agents.models.analysis import (
    ComplianceAnalysis,
    ComplianceDocumentType,
    ComplianceStatus,
    ContactInfo,
    DocumentAnalysis,
    ExtractedData,
    MatchReasoning,
    OpportunityMatch,
    ProposalSection,
    QualityScore,
    Requirements,
)

__all__ = [
    "ComplianceAnalysis",
    "ComplianceDocumentType",
    "ComplianceStatus",
    "ContactInfo",
    "DocumentAnalysis",
    "ExtractedData",
    "MatchReasoning",
    "OpportunityMatch",
    "ProposalSection",
    "QualityScore",
    "Requirements",
]
