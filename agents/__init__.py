# =============================================================================
# agents/ - AI Layer
# =============================================================================
# OpenAI-backed analysis for government contracting:
# - analyst.py: OpenAIService (document analysis, matching, quality scoring,
#   proposal drafting, chat, compliance document review)
# - parsing.py: JSON extraction from model replies, AIServiceError
#
# Models:
# - models/analysis.py: schemas for every structured reply
#
# Prompts:
# - prompts/analyst_system.py: system prompts and prompt builders
# =============================================================================

from agents.analyst import OpenAIService, get_openai_service
from agents.parsing import AIServiceError, extract_json, extract_key_findings
from agents.models.analysis import (
    ComplianceAnalysis,
    DocumentAnalysis,
    OpportunityMatch,
    ProposalSection,
    QualityScore,
)

__all__ = [
    # Service
    "OpenAIService",
    "get_openai_service",
    # Parsing
    "AIServiceError",
    "extract_json",
    "extract_key_findings",
    # Models
    "ComplianceAnalysis",
    "DocumentAnalysis",
    "OpportunityMatch",
    "ProposalSection",
    "QualityScore",
]
