# =============================================================================
# core/scoring.py - Opportunity Match Scoring
# =============================================================================
# Deterministic, additive heuristics that rank opportunities for a company.
# No model, no learning: each rule adds a fixed number of points and the
# result is clamped to a fixed range.
#
# Contracts (USAspending awards / SAM notices):
#   match score      base 50, clamp 0..100
#   win probability  base 0.30, clamp 0.10..0.85
# Grants (Grants.gov):
#   match score      base 40, clamp 0..100
#   win probability  base 0.15, clamp 0.03..0.85
#
# Results from different sources are ordered by `ranking_score`, which
# weighs match score 60% and win probability 40%.
#
# Company fields arrive as user-entered strings ("$1,000,000", "10") so all
# numeric reads go through lib.utils.parse_number.
# =============================================================================

from __future__ import annotations

import re
from typing import Any, Iterable

from lib.utils import clamp, parse_number

# Used when a user has not created a company profile yet
DEFAULT_COMPANY_PROFILE: dict[str, Any] = {
    "id": "default-company",
    "name": "Default Company",
    "industry": "Technology",
    "naics_codes": ["541511", "541512"],
    "certifications": ["sba"],
    "headquarters_location": "Washington, DC",
    "annual_revenue": "1000000",
    "years_in_business": "10",
    "employee_count": "25",
    "past_performance_rating": "4.2",
}

# Scores used when no company data is available at all
NO_COMPANY_CONTRACT = (75, 0.4)
NO_COMPANY_GRANT = (65, 0.3)

_DIGITS = re.compile(r"[^0-9]")


# -----------------------------------------------------------------------------
# Field helpers
# -----------------------------------------------------------------------------

def _naics_list(value: Any) -> list[str]:
    if not value:
        return []
    if isinstance(value, (list, tuple, set)):
        return [str(v).strip() for v in value if str(v).strip()]
    return [part.strip() for part in str(value).split(",") if part.strip()]


def _lower(value: Any) -> str:
    return str(value or "").lower()


def _int_field(company: dict[str, Any], field: str) -> int | None:
    """Integer-valued company field, or None when absent."""
    value = company.get(field)
    if value in (None, ""):
        return None
    return int(parse_number(value))


def _float_field(company: dict[str, Any], field: str) -> float | None:
    value = company.get(field)
    if value in (None, ""):
        return None
    return parse_number(value)


def naics_prefix_match(opportunity_naics: Iterable[str], company_naics: Iterable[str]) -> bool:
    """
    True when any pair of codes shares a 3-digit prefix in either direction.

    Example:
        naics_prefix_match(["541330"], ["541511"])  # True ("541")
        naics_prefix_match(["236220"], ["541511"])  # False
    """
    company_codes = list(company_naics)
    for opp_code in opportunity_naics:
        for comp_code in company_codes:
            if opp_code.startswith(comp_code[:3]) or comp_code.startswith(opp_code[:3]):
                return True
    return False


# =============================================================================
# Contracts
# =============================================================================

def contract_match_score(
    agency: str | None,
    naics_codes: Iterable[str],
    award_amount: float | None,
    company: dict[str, Any],
) -> int:
    """
    Score how well a contract fits the company (0-100).

    Rules:
        +25  NAICS 3-digit prefix match
        +15  technology company and defense/commerce agency
        +15  health company and health agency
        +15  energy company and energy agency
        +15  award is 10-50% of annual revenue (else +8 if 5-100%)
    """
    score = 50

    opp_naics = _naics_list(list(naics_codes))
    company_naics = _naics_list(company.get("naics_codes"))
    if opp_naics and company_naics and naics_prefix_match(opp_naics, company_naics):
        score += 25

    industry = _lower(company.get("industry"))
    agency_text = _lower(agency)
    if agency_text and industry:
        if "technology" in industry and ("defense" in agency_text or "commerce" in agency_text):
            score += 15
        if "health" in industry and "health" in agency_text:
            score += 15
        if "energy" in industry and "energy" in agency_text:
            score += 15

    revenue_digits = _DIGITS.sub("", str(company.get("annual_revenue") or ""))
    if award_amount and revenue_digits:
        revenue = int(revenue_digits)
        if revenue > 0:
            ratio = award_amount / revenue
            if 0.1 <= ratio <= 0.5:
                score += 15
            elif 0.05 <= ratio <= 1.0:
                score += 8

    return int(clamp(score, 0, 100))


def contract_win_probability(naics_codes: Iterable[str], company: dict[str, Any]) -> float:
    """
    Estimate the chance of winning a contract (0.10-0.85).

    Experience, past-performance rating and an exact NAICS match each
    add to a 30% base.
    """
    probability = 0.3

    years = _int_field(company, "years_in_business")
    if years is not None:
        if years > 10:
            probability += 0.1
        elif years > 5:
            probability += 0.05

    rating = _float_field(company, "past_performance_rating")
    if rating is not None:
        if rating >= 4.5:
            probability += 0.15
        elif rating >= 4.0:
            probability += 0.1
        elif rating >= 3.5:
            probability += 0.05

    opp_naics = set(_naics_list(list(naics_codes)))
    if opp_naics & set(_naics_list(company.get("naics_codes"))):
        probability += 0.1

    return round(clamp(probability, 0.1, 0.85), 4)


# =============================================================================
# Grants
# =============================================================================

_GRANT_AGENCY_RULES = [
    # (agency keyword, industry keyword, points)
    ("science", "technology", 20),
    ("health", "health", 20),
    ("education", "education", 20),
    ("energy", "energy", 20),
    ("defense", "technology", 15),
]


def grant_match_score(agency: str | None, company: dict[str, Any]) -> int:
    """
    Score how well a grant fits the company (0-100).

    Agency/industry keyword pairs add 15-20 points each; smaller
    companies get a size bonus.
    """
    score = 40

    agency_text = _lower(agency)
    industry = _lower(company.get("industry"))
    if agency_text and industry:
        for agency_kw, industry_kw, points in _GRANT_AGENCY_RULES:
            if agency_kw in agency_text and industry_kw in industry:
                score += points

    employees = _int_field(company, "employee_count")
    if employees is not None:
        if employees <= 50:
            score += 15
        elif employees <= 100:
            score += 10
        elif employees <= 500:
            score += 5

    return int(clamp(score, 0, 100))


def grant_win_probability(company: dict[str, Any]) -> float:
    """Estimate the chance of winning a grant (0.03-0.85)."""
    probability = 0.15

    years = _int_field(company, "years_in_business")
    if years is not None:
        if years > 10:
            probability += 0.08
        elif years > 5:
            probability += 0.04

    rating = _float_field(company, "past_performance_rating")
    if rating is not None:
        if rating >= 4.5:
            probability += 0.12
        elif rating >= 4.0:
            probability += 0.08
        elif rating >= 3.5:
            probability += 0.04

    employees = _int_field(company, "employee_count")
    if employees is not None:
        if employees <= 25:
            probability += 0.1
        elif employees <= 50:
            probability += 0.05

    return round(clamp(probability, 0.03, 0.85), 4)


# =============================================================================
# Profile relevance & ranking
# =============================================================================

def profile_relevance_score(
    title: str | None,
    agency: str | None,
    industries: Iterable[str] = (),
    keywords: Iterable[str] = (),
    company_type: str | None = None,
) -> int:
    """
    Quick relevance score for stored opportunities against a profile.

    Rules:
        +20  any profile industry appears in title or agency
        +15  any profile keyword appears in title
        +25  Department of Defense agency and a defense company
    Capped at 100.
    """
    score = 50
    title_text = _lower(title)
    agency_text = _lower(agency)

    if any(i and (i.lower() in title_text or i.lower() in agency_text) for i in industries):
        score += 20

    if any(k and k.lower() in title_text for k in keywords):
        score += 15

    if "department of defense" in agency_text and _lower(company_type) == "defense":
        score += 25

    return min(100, score)


def ranking_score(match_score: float | None, win_probability: float | None) -> float:
    """Combined sort key: match score weighted 60%, win probability 40%."""
    return (match_score or 0) * 0.6 + (win_probability or 0) * 100 * 0.4
