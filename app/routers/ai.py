# =============================================================================
# app/routers/ai.py - AI Analysis Endpoints
# =============================================================================
# Two tiers of analysis:
# - POST /ai/analyze                rule-based (core/analysis.py), always works
# - everything else                 OpenAI via agents.OpenAIService
#
# /ai/analyze-application falls back to the rule-based review when the
# model call fails; the other OpenAI endpoints surface the failure as 502.
# =============================================================================

import logging
from typing import Any, Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from agents import AIServiceError, OpenAIService, ProposalSection, get_openai_service
from app.dependencies import CurrentCompany, CurrentProfile
from app.exceptions import ApplicationNotFoundError, BadRequestError
from core.analysis import (
    analyze_company,
    analyze_opportunity_fit,
    basic_application_quality,
    generate_proposal_outline,
)
from core.models.application import ApplicationContent
from core.services.application_service import ApplicationService
from core.services.opportunity_service import OpportunityService
from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.utils import utc_now_iso

logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# Request Models
# =============================================================================

class AnalyzeRequest(BaseModel):
    type: Literal["opportunity", "proposal", "company"]
    data: dict[str, Any] = Field(default_factory=dict)


class DocumentRequest(BaseModel):
    document_text: str = Field(..., min_length=1)
    document_url: str | None = None


class AnalyzeApplicationRequest(BaseModel):
    opportunity_id: str | None = None
    application_data: ApplicationContent


class MatchRequest(BaseModel):
    opportunity_ids: list[str] = Field(..., min_length=1, max_length=50)


class ScoreQualityRequest(BaseModel):
    application_id: str = Field(..., min_length=1)


class ProposalContentRequest(BaseModel):
    opportunity_id: str = Field(..., min_length=1)
    section: ProposalSection


class ChatTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=4000)
    history: list[ChatTurn] = Field(default_factory=list, max_length=20)
    action: Literal["analyze_opportunity", "proposal_help", "market_intelligence"] | None = None


# =============================================================================
# Rule-Based Analysis
# =============================================================================

def _record_analysis(profile: dict[str, Any], analysis_type: str, data: dict, result: dict) -> None:
    """Keep a history row in ai_analyses; a failed write does not fail the request."""
    try:
        SupabaseClient.insert(
            "ai_analyses",
            {
                "user_id": profile["id"],
                "company_id": profile.get("company_id"),
                "analysis_type": analysis_type,
                "input_data": data,
                "analysis_result": result,
                "created_at": utc_now_iso(),
            },
        )
    except SupabaseClientError as e:
        logger.warning(f"Could not store {analysis_type} analysis: {e.message}")


@router.post("/analyze")
async def analyze(body: AnalyzeRequest, profile: CurrentProfile):
    """
    Rule-based analysis.

    - opportunity: fit of `data` (an opportunity) against the caller's company
    - proposal: templated proposal outline from `data`
    - company: SWOT of the caller's company, overridden by `data` fields
    """
    company = None
    if profile.get("company_id"):
        company = SupabaseClient.fetch_company(profile["company_id"])

    if body.type == "opportunity":
        analysis = analyze_opportunity_fit(body.data, company)
    elif body.type == "proposal":
        analysis = generate_proposal_outline(body.data)
    else:
        analysis = analyze_company({**(company or {}), **body.data})

    _record_analysis(profile, body.type, body.data, analysis)
    return {"analysis": analysis}


# =============================================================================
# OpenAI Analysis
# =============================================================================

@router.post("/analyze-document")
def analyze_document(
    body: DocumentRequest,
    profile: CurrentProfile,
    ai: OpenAIService = Depends(get_openai_service),
):
    """Extract structured facts from solicitation text."""
    result = ai.analyze_document(body.document_text)
    logger.info(f"User {profile['id']} analyzed document {body.document_url or '(inline)'}")
    return result


@router.post("/analyze-application")
def analyze_application(
    body: AnalyzeApplicationRequest,
    company: CurrentCompany,
    ai: OpenAIService = Depends(get_openai_service),
):
    """
    Review draft proposal content before submission.

    Returns `source: "ai"` for a model review, `source: "heuristic"` when
    the model was unavailable and the length-based review was used instead.
    """
    opportunity: dict[str, Any] = {}
    if body.opportunity_id:
        opportunity = OpportunityService.get_opportunity(body.opportunity_id, company)

    application = body.application_data.model_dump()
    try:
        score = ai.score_application_quality(application, opportunity)
    except AIServiceError as e:
        logger.warning(f"AI application review failed, using heuristic review: {e.message}")
        return {"success": True, "source": "heuristic", "analysis": basic_application_quality(application)}

    return {"success": True, "source": "ai", "analysis": score.model_dump(mode="json")}


@router.post("/match-opportunities")
def match_opportunities(
    body: MatchRequest,
    company: CurrentCompany,
    ai: OpenAIService = Depends(get_openai_service),
):
    """
    Score stored opportunities for the company and save the results to
    opportunity_matches (one row per company and opportunity).
    """
    client = SupabaseClient.get_client()
    response = (
        client.table("opportunities")
        .select("*")
        .in_("id", body.opportunity_ids)
        .or_(f"company_id.is.null,company_id.eq.{company['id']}")
        .execute()
    )
    opportunities = response.data or []

    matches = ai.find_opportunity_matches(company, opportunities)
    known = {str(o["id"]) for o in opportunities}
    rows = [
        {
            "company_id": company["id"],
            "opportunity_id": m.opportunity_id,
            "match_score": m.match_score,
            "win_probability": m.win_probability,
            "reasoning": m.reasoning.model_dump(),
        }
        for m in matches
        if m.opportunity_id in known
    ]
    if rows:
        client.table("opportunity_matches").upsert(rows, on_conflict="company_id,opportunity_id").execute()

    return {"matches": [m.model_dump(mode="json") for m in matches if m.opportunity_id in known]}


@router.post("/score-quality")
def score_quality(
    body: ScoreQualityRequest,
    company: CurrentCompany,
    ai: OpenAIService = Depends(get_openai_service),
):
    """Grade a saved application against its opportunity and store the score."""
    application = SupabaseClient.fetch_one(
        "applications", columns="*, opportunities(*)", id=body.application_id
    )
    if not application or str(application.get("company_id")) != str(company["id"]):
        raise ApplicationNotFoundError(body.application_id)

    opportunity = application.pop("opportunities", None) or {}
    score = ai.score_application_quality(application, opportunity)
    ApplicationService.save_quality_score(company["id"], body.application_id, score.model_dump(mode="json"))
    return score


@router.post("/proposal-content")
def proposal_content(
    body: ProposalContentRequest,
    company: CurrentCompany,
    ai: OpenAIService = Depends(get_openai_service),
):
    opportunity = OpportunityService.get_opportunity(body.opportunity_id, company)
    content = ai.generate_proposal_content(opportunity, company, body.section)
    return {"section": body.section.value, "content": content}


@router.post("/chat")
def chat(
    body: ChatRequest,
    profile: CurrentProfile,
    ai: OpenAIService = Depends(get_openai_service),
):
    """Assistant chat, personalised with the caller's company when set up."""
    if not body.message.strip():
        raise BadRequestError("Message is required", code="EMPTY_MESSAGE")

    company = None
    if profile.get("company_id"):
        company = SupabaseClient.fetch_company(profile["company_id"])

    return ai.chat(
        body.message,
        company=company,
        history=[turn.model_dump() for turn in body.history],
        action=body.action,
    )
