# =============================================================================
# agents/analyst.py - Proposal Analyst (OpenAI Service)
# =============================================================================
# Every AI feature of the platform goes through this service:
#
# 1. Solicitation analysis    -> DocumentAnalysis   (cached 24h)
# 2. Opportunity matching     -> OpportunityMatch[] (cached 1h)
# 3. Application quality      -> QualityScore       (cached 1h)
# 4. Proposal section drafts  -> str                (cached 24h)
# 5. Assistant chat           -> reply dict         (never cached)
# 6. Compliance documents     -> ComplianceAnalysis (queue worker)
#
# Calls are direct chat completions with a low temperature for consistent
# structured output. Provider failures surface as AIServiceError with code
# OPENAI_ERROR so routes can fall back to the heuristics in core/analysis.py.
#
# Usage:
#   from agents.analyst import get_openai_service
#   service = get_openai_service()
#   analysis = service.analyze_document(rfp_text)
# =============================================================================

from __future__ import annotations

import base64
import logging
from functools import lru_cache
from typing import Any

from openai import OpenAI
from pydantic import ValidationError

from app.config import settings
from agents.models.analysis import (
    ComplianceAnalysis,
    ComplianceStatus,
    DocumentAnalysis,
    OpportunityMatch,
    ProposalSection,
    QualityScore,
)
from agents.parsing import AIServiceError, extract_json, extract_key_findings
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
from lib.ai_cache import AICache, CacheTier, make_cache_key
from lib.utils import utc_now_iso

logger = logging.getLogger(__name__)

# Characters of the solicitation used for the cache key
DOCUMENT_KEY_CHARS = 1000
# Text documents longer than this are truncated before review
MAX_COMPLIANCE_TEXT_CHARS = 20000
FALLBACK_CONFIDENCE = 0.7


class OpenAIService:
    """
    Government contracting analyst backed by OpenAI chat completions.

    Example:
        service = OpenAIService()
        matches = service.find_opportunity_matches(company, opportunities)
        best = max(matches, key=lambda m: m.match_score)

    Attributes:
        model: OpenAI model to use (default from settings)
        temperature: Generation temperature for structured calls
    """

    def __init__(
        self,
        model: str | None = None,
        temperature: float | None = None,
        client: OpenAI | None = None,
    ):
        self.client = client or OpenAI(api_key=settings.OPENAI_API_KEY)
        self.model = model or settings.OPENAI_MODEL
        self.temperature = temperature if temperature is not None else settings.AI_TEMPERATURE

        logger.info(f"OpenAIService initialized with model={self.model}, temp={self.temperature}")

    # -------------------------------------------------------------------------
    # Provider Call
    # -------------------------------------------------------------------------

    def _complete(
        self,
        operation: str,
        messages: list[dict[str, Any]],
        max_tokens: int,
        temperature: float | None = None,
        json_object: bool = False,
    ) -> tuple[str, Any]:
        """
        Run one chat completion and return (reply text, raw response).

        Raises:
            AIServiceError: OPENAI_ERROR on any provider failure
        """
        kwargs: dict[str, Any] = {
            "model": self.model,
            "temperature": self.temperature if temperature is None else temperature,
            "max_tokens": max_tokens,
            "messages": messages,
        }
        if json_object:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = self.client.chat.completions.create(**kwargs)
            text = response.choices[0].message.content or ""
        except Exception as e:
            raise AIServiceError(
                message=f"OpenAI API call failed: {e}",
                code="OPENAI_ERROR",
                suggestion="Check your OPENAI_API_KEY and network connection",
                details={"model": self.model, "operation": operation},
            )

        logger.debug(f"OpenAI {operation} response: {text[:200]}...")
        return text, response

    def _ask(self, operation: str, prompt: str, max_tokens: int, **kwargs: Any) -> str:
        messages = [
            {"role": "system", "content": ANALYST_SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]
        text, _ = self._complete(operation, messages, max_tokens, **kwargs)
        return text

    @staticmethod
    def _invalid(operation: str, error: ValidationError) -> AIServiceError:
        return AIServiceError(
            message=f"AI response for {operation} did not match the expected schema",
            code="SCHEMA_MISMATCH",
            suggestion="Retry the request; the model returned unexpected fields",
            details={"errors": error.errors(include_url=False)[:5]},
        )

    # -------------------------------------------------------------------------
    # Solicitation Analysis
    # -------------------------------------------------------------------------

    def analyze_document(self, document_text: str) -> DocumentAnalysis:
        """
        Extract structured facts from an RFP / RFQ / solicitation.

        Cached for 24 hours, keyed on the first 1000 characters.

        Raises:
            AIServiceError: Provider failure or unparseable reply
        """
        cache_key = make_cache_key("doc_analysis", document_text[:DOCUMENT_KEY_CHARS])
        cached = AICache.get(cache_key)
        if cached is not None:
            logger.info("Document analysis served from cache")
            return DocumentAnalysis.model_validate(cached)

        text = self._ask(
            "analyze_document",
            build_document_prompt(document_text),
            max_tokens=2000,
            json_object=True,
        )
        try:
            result = DocumentAnalysis.model_validate(extract_json(text, "object"))
        except ValidationError as e:
            raise self._invalid("analyze_document", e)

        AICache.set(cache_key, result.model_dump(mode="json"), CacheTier.DAILY, cache_type="document_analysis")
        logger.info(f"Analyzed document: {result.title or 'untitled'}")
        return result

    # -------------------------------------------------------------------------
    # Opportunity Matching
    # -------------------------------------------------------------------------

    def find_opportunity_matches(
        self,
        company_profile: dict[str, Any],
        opportunities: list[dict[str, Any]],
    ) -> list[OpportunityMatch]:
        """
        Score each opportunity against the company.

        Cached for 1 hour, keyed on the company's NAICS codes and the
        opportunity ids. Entries the model returns without a usable
        opportunity_id are dropped.
        """
        if not opportunities:
            return []

        naics = sorted(str(code) for code in company_profile.get("naics_codes") or [])
        opportunity_ids = [str(o.get("id")) for o in opportunities]
        cache_key = make_cache_key("opp_match", naics, opportunity_ids)

        cached = AICache.get(cache_key)
        if cached is not None:
            logger.info(f"Opportunity matches served from cache ({len(cached)} matches)")
            return [OpportunityMatch.model_validate(item) for item in cached]

        text = self._ask(
            "find_opportunity_matches",
            build_match_prompt(company_profile, opportunities),
            max_tokens=2000,
        )
        raw_matches = extract_json(text, "array")

        matches: list[OpportunityMatch] = []
        for item in raw_matches:
            try:
                matches.append(OpportunityMatch.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Skipping malformed match entry: {e.error_count()} errors")

        AICache.set(
            cache_key,
            [m.model_dump(mode="json") for m in matches],
            CacheTier.HOURLY,
            cache_type="opportunity_match",
        )
        logger.info(f"Matched {len(matches)} of {len(opportunities)} opportunities")
        return matches

    # -------------------------------------------------------------------------
    # Application Quality
    # -------------------------------------------------------------------------

    def score_application_quality(
        self,
        application: dict[str, Any],
        opportunity: dict[str, Any],
    ) -> QualityScore:
        """Grade an application against its opportunity. Cached for 1 hour."""
        cache_key = make_cache_key("quality_score", application.get("id"), opportunity.get("id"))
        cached = AICache.get(cache_key)
        if cached is not None:
            return QualityScore.model_validate(cached)

        text = self._ask(
            "score_application_quality",
            build_quality_prompt(application, opportunity),
            max_tokens=1500,
            json_object=True,
        )
        try:
            result = QualityScore.model_validate(extract_json(text, "object"))
        except ValidationError as e:
            raise self._invalid("score_application_quality", e)

        AICache.set(cache_key, result.model_dump(mode="json"), CacheTier.HOURLY, cache_type="quality_score")
        logger.info(f"Scored application {application.get('id')}: {result.overall_score}")
        return result

    # -------------------------------------------------------------------------
    # Proposal Drafting
    # -------------------------------------------------------------------------

    def generate_proposal_content(
        self,
        opportunity: dict[str, Any],
        company_profile: dict[str, Any],
        section: ProposalSection | str,
    ) -> str:
        """
        Draft one proposal section as plain text. Cached for 24 hours.

        Raises:
            AIServiceError: INVALID_SECTION for an unknown section name
        """
        try:
            section = ProposalSection(section)
        except ValueError:
            raise AIServiceError(
                message=f"Unknown proposal section: {section}",
                code="INVALID_SECTION",
                suggestion=f"Use one of: {', '.join(s.value for s in ProposalSection)}",
            )

        cache_key = make_cache_key(
            "proposal", opportunity.get("id"), section.value, company_profile.get("id")
        )
        cached = AICache.get(cache_key)
        if isinstance(cached, str):
            return cached

        content = self._ask(
            "generate_proposal_content",
            build_proposal_prompt(opportunity, company_profile, section.value),
            max_tokens=1200,
            temperature=0.3,
        ).strip()

        if not content:
            raise AIServiceError(
                message="OpenAI returned an empty proposal section",
                code="EMPTY_RESPONSE",
                suggestion="Retry the request or add more detail to the opportunity",
            )

        AICache.set(cache_key, content, CacheTier.DAILY, cache_type="proposal_content")
        return content

    # -------------------------------------------------------------------------
    # Assistant Chat
    # -------------------------------------------------------------------------

    def chat(
        self,
        message: str,
        company: dict[str, Any] | None = None,
        history: list[dict[str, str]] | None = None,
        action: str | None = None,
    ) -> dict[str, Any]:
        """
        Answer a free-form question in the context of the user's company.

        Args:
            message: The user's question
            company: Company row used to personalise the system prompt
            history: Earlier turns as {"role", "content"} dicts
            action: analyze_opportunity | proposal_help | market_intelligence

        Returns:
            {"response", "action", "metadata": {"model", "tokens", "timestamp"}}
        """
        messages = [{"role": "system", "content": build_chat_prompt(company, action)}]
        messages.extend(
            {"role": turn["role"], "content": turn["content"]}
            for turn in history or []
            if turn.get("role") in ("user", "assistant") and turn.get("content")
        )
        messages.append({"role": "user", "content": message})

        text, response = self._complete("chat", messages, max_tokens=1500, temperature=0.7)
        usage = getattr(response, "usage", None)

        return {
            "response": text,
            "action": action,
            "metadata": {
                "model": getattr(response, "model", self.model),
                "tokens": getattr(usage, "total_tokens", 0) if usage else 0,
                "timestamp": utc_now_iso(),
            },
        }

    # -------------------------------------------------------------------------
    # Compliance Documents
    # -------------------------------------------------------------------------

    def analyze_compliance_document(
        self,
        content: bytes | str,
        analysis_type: str,
        checklist_item: str | None = None,
        file_type: str | None = None,
    ) -> ComplianceAnalysis:
        """
        Review an uploaded compliance document.

        Images are sent inline as a data URL; anything else is decoded as
        text. A reply that is not JSON is kept as the summary, with the
        first five substantial sentences as key findings.
        """
        prompt = build_compliance_prompt(analysis_type, checklist_item, file_type)
        user_content: list[dict[str, Any]] = [{"type": "text", "text": prompt}]

        if isinstance(content, bytes) and (file_type or "").startswith("image/"):
            encoded = base64.b64encode(content).decode("ascii")
            user_content.append(
                {"type": "image_url", "image_url": {"url": f"data:{file_type};base64,{encoded}"}}
            )
        else:
            text = content.decode("utf-8", errors="ignore") if isinstance(content, bytes) else content
            user_content.append(
                {"type": "text", "text": f"<document>\n{text[:MAX_COMPLIANCE_TEXT_CHARS]}\n</document>"}
            )

        messages = [
            {"role": "system", "content": COMPLIANCE_SYSTEM_PROMPT},
            {"role": "user", "content": user_content},
        ]
        reply, _ = self._complete(
            "analyze_compliance_document", messages, max_tokens=2000, temperature=0.3
        )

        if not reply.strip():
            raise AIServiceError(
                message="No analysis result received",
                code="EMPTY_RESPONSE",
                suggestion="Retry the analysis; the model returned nothing",
            )

        try:
            return ComplianceAnalysis.model_validate(extract_json(reply, "object"))
        except (AIServiceError, ValidationError):
            logger.info("Compliance reply was not structured JSON, using text fallback")
            return ComplianceAnalysis(
                summary=reply,
                key_findings=extract_key_findings(reply),
                compliance_status=ComplianceStatus.UNKNOWN,
                confidence_score=FALLBACK_CONFIDENCE,
                raw_analysis=reply,
            )


@lru_cache()
def get_openai_service() -> OpenAIService:
    """Shared service instance (also the FastAPI dependency for AI routes)."""
    return OpenAIService()
