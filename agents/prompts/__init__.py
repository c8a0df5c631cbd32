# =============================================================================
# agents/prompts/ - System Prompts for the Proposal Analyst
# =============================================================================
# - analyst_system.py: system prompts and prompt builders for document
#   analysis, opportunity matching, quality scoring, proposal drafting,
#   compliance document review and the assistant chat
#
# Dynamic context is wrapped in XML tags for clear structure.
# =============================================================================

from agents.prompts.analyst_system import (
    ANALYST_SYSTEM_PROMPT,
    COMPLIANCE_SYSTEM_PROMPT,
    build_chat_prompt,
    build_compliance_prompt,
    build_document_prompt,
    build_match_prompt,
    build_proposal_prompt,
    build_quality_prompt,
)

__all__ = [
    "ANALYST_SYSTEM_PROMPT",
    "COMPLIANCE_SYSTEM_PROMPT",
    "build_chat_prompt",
    "build_compliance_prompt",
    "build_document_prompt",
    "build_match_prompt",
    "build_proposal_prompt",
    "build_quality_prompt",
]
