# =============================================================================
# core/analysis.py - Rule-Based Analysis
# =============================================================================
# Deterministic analyses that run without the LLM:
# - analyze_opportunity_fit: score one opportunity against a company
# - analyze_company: SWOT-style competitive position
# - generate_proposal_outline: templated proposal sections
# - basic_application_quality: fallback when OpenAI scoring fails
#
# Served by POST /api/v1/ai/analyze and used as the fallback path of
# POST /api/v1/ai/analyze-application.
# =============================================================================

from __future__ import annotations

from datetime import datetime
from typing import Any

from lib.utils import parse_datetime, parse_number, utc_now


# =============================================================================
# Opportunity Fit
# =============================================================================

def _fit_assessment(score: int) -> str:
    if score >= 80:
        return "Excellent Match"
    if score >= 60:
        return "Good Match"
    if score >= 40:
        return "Moderate Match"
    return "Poor Match"


def analyze_opportunity_fit(
    opportunity: dict[str, Any],
    company: dict[str, Any] | None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """
    Score how well an opportunity fits a company profile.

    Each dimension is only scored when both sides have data:

    | Dimension    | Points                                        |
    |--------------|-----------------------------------------------|
    | Industry     | 30 exact, 20 partial, 5 otherwise             |
    | Location     | 25 overlapping, 10 otherwise                  |
    | Size         | 20 when value fits Small/Medium/Large, else 10|
    | Deadline     | 15 (>30 days), 10 (>14 days), 5 otherwise     |
    | Requirements | 10 when any requirement word overlaps         |

    Args:
        opportunity: dict with title, agency, amount, deadline, industry,
            location, requirements
        company: companies row (name, industry, size, location, description)
        now: Reference time for the deadline rule

    Returns:
        dict with score, assessment, reasons, recommendations and echoes
        of the opportunity/company fields used
    """
    company = company or {}
    now = now or utc_now()
    score = 0
    reasons: list[str] = []
    recommendations: list[str] = []

    company_industry = str(company.get("industry") or "").lower()
    opp_industry = str(opportunity.get("industry") or "").lower()
    if company_industry and opp_industry:
        if company_industry == opp_industry:
            score += 30
            reasons.append("Perfect industry match")
        elif opp_industry in company_industry or company_industry in opp_industry:
            score += 20
            reasons.append("Good industry alignment")
        else:
            score += 5
            reasons.append("Industry mismatch - consider diversifying")
            recommendations.append("Consider expanding into this industry")

    company_location = str(company.get("location") or "").lower()
    opp_location = str(opportunity.get("location") or "").lower()
    if company_location and opp_location:
        if opp_location in company_location or company_location in opp_location:
            score += 25
            reasons.append("Geographic advantage")
        else:
            score += 10
            reasons.append("Remote work opportunity")
            recommendations.append("Consider remote work capabilities")

    size = company.get("size")
    amount = opportunity.get("amount")
    if size and amount:
        value = parse_number(amount)
        if (value < 100_000 and size == "Small") or (value < 1_000_000 and size == "Medium"):
            score += 20
            reasons.append("Appropriate contract size for company")
        elif value >= 1_000_000 and size == "Large":
            score += 20
            reasons.append("Large contract suitable for company size")
        else:
            score += 10
            reasons.append("Contract size may be challenging")
            recommendations.append("Consider teaming arrangements for large contracts")

    deadline = parse_datetime(opportunity.get("deadline"))
    if deadline:
        days_left = (deadline - now).days
        if days_left > 30:
            score += 15
            reasons.append("Adequate time for proposal preparation")
        elif days_left > 14:
            score += 10
            reasons.append("Moderate timeline for proposal")
            recommendations.append("Start proposal preparation immediately")
        else:
            score += 5
            reasons.append("Tight deadline")
            recommendations.append("Consider if timeline is feasible")

    requirements = str(opportunity.get("requirements") or "").lower().split()
    description = str(company.get("description") or "").lower().split()
    if requirements and description:
        matches = [
            word for word in requirements
            if any(word in cw or cw in word for cw in description)
        ]
        if matches:
            score += 10
            reasons.append(f"Matches {len(matches)} key requirements")
        else:
            recommendations.append("Review requirements and update company capabilities")

    return {
        "score": score,
        "assessment": _fit_assessment(score),
        "reasons": reasons,
        "recommendations": recommendations,
        "opportunity": {
            key: opportunity.get(key)
            for key in ("title", "agency", "amount", "deadline", "industry", "location")
        },
        "company": {
            key: company.get(key) for key in ("name", "industry", "size", "location")
        },
    }


# =============================================================================
# Company SWOT
# =============================================================================

HIGH_DEMAND_INDUSTRIES = {"Technology", "Healthcare", "Construction", "Manufacturing"}


def _position(total: int) -> str:
    if total >= 50:
        return "Strong Competitive Position"
    if total >= 30:
        return "Good Competitive Position"
    if total >= 10:
        return "Moderate Competitive Position"
    return "Needs Improvement"


def analyze_company(company: dict[str, Any]) -> dict[str, Any]:
    """
    Build a SWOT summary of a company's contracting position.

    total_score = 10*strengths - 5*weaknesses + 8*opportunities - 3*threats
    """
    strengths: list[str] = []
    weaknesses: list[str] = []
    opportunities: list[str] = []
    threats: list[str] = []
    recommendations: list[str] = []

    size = company.get("size")
    if size == "Small":
        strengths.append("Agile decision-making and flexibility")
        weaknesses.append("Limited resources and capacity")
        opportunities.append("Focus on niche markets and specialized services")
        threats.append("Competition from larger companies")
    elif size == "Medium":
        strengths.append("Balanced resources and experience")
        strengths.append("Established processes and procedures")
        opportunities.append("Expand into new markets and services")
    elif size == "Large":
        strengths.append("Extensive resources and capabilities")
        strengths.append("Established brand and reputation")
        threats.append("Bureaucracy and slower decision-making")

    industry = company.get("industry")
    if industry in HIGH_DEMAND_INDUSTRIES:
        strengths.append(f"Strong position in {industry} sector")
        opportunities.append("Government contracts in high-demand sectors")

    location = company.get("location") or ""
    if location:
        if "DC" in location or "Washington" in location:
            strengths.append("Proximity to government agencies")
            opportunities.append("Direct access to federal contracting opportunities")
        else:
            recommendations.append("Consider establishing presence in government hub areas")

    certifications = company.get("certifications") or []
    if certifications:
        strengths.append(f"Certified in {', '.join(certifications)}")
        opportunities.append("Leverage certifications for competitive advantage")
    else:
        weaknesses.append("Limited certifications")
        recommendations.append("Pursue relevant industry certifications")

    past_projects = company.get("past_projects") or []
    if past_projects:
        strengths.append(f"Completed {len(past_projects)} successful projects")
        opportunities.append("Use past performance for future opportunities")
    else:
        weaknesses.append("Limited project history")
        recommendations.append("Document and showcase completed projects")

    total = len(strengths) * 10 - len(weaknesses) * 5 + len(opportunities) * 8 - len(threats) * 3

    return {
        "assessment": _position(total),
        "total_score": total,
        "strengths": strengths,
        "weaknesses": weaknesses,
        "opportunities": opportunities,
        "threats": threats,
        "recommendations": recommendations,
        "company": {
            key: company.get(key)
            for key in ("name", "industry", "size", "location", "years_in_business", "certifications")
        },
    }


# =============================================================================
# Proposal Outline
# =============================================================================

def generate_proposal_outline(data: dict[str, Any]) -> dict[str, Any]:
    """Fill the standard proposal sections from form input."""
    timeline = data.get("timeline") or {}
    budget = data.get("budget") or {}
    strengths = data.get("company_strengths") or [
        "Experienced team with proven track record",
        "Quality-focused approach",
        "Strong client relationships",
        "Innovative solutions",
    ]

    executive_summary = (
        f"We are pleased to submit this proposal for {data.get('opportunity_title', 'this opportunity')}. "
        f"{data.get('company_name', 'Our company')} brings extensive experience and a proven track record "
        f"in delivering high-quality solutions. Our approach focuses on {data.get('approach', 'proven methods')} "
        "to ensure successful project completion within the specified timeline and budget."
    )

    technical_approach = "\n".join([
        "Our technical approach includes:",
        "• Comprehensive project planning and risk assessment",
        "• Regular stakeholder communication and progress updates",
        "• Quality assurance processes and deliverables review",
        "• Scalable and maintainable solution architecture",
        "• Integration with existing systems and workflows",
    ])

    project_timeline = "\n".join([
        "Project Timeline:",
        f"• Phase 1: Planning and Requirements ({timeline.get('planning', '2 weeks')})",
        f"• Phase 2: Development and Implementation ({timeline.get('development', '8 weeks')})",
        f"• Phase 3: Testing and Quality Assurance ({timeline.get('testing', '2 weeks')})",
        f"• Phase 4: Deployment and Training ({timeline.get('deployment', '1 week')})",
        f"• Phase 5: Support and Maintenance ({timeline.get('support', 'Ongoing')})",
    ])

    budget_breakdown = "\n".join([
        "Budget Breakdown:",
        f"• Personnel Costs: ${budget.get('personnel', 'TBD')}",
        f"• Materials and Equipment: ${budget.get('materials', 'TBD')}",
        f"• Travel and Expenses: ${budget.get('travel', 'TBD')}",
        f"• Contingency (10%): ${budget.get('contingency', 'TBD')}",
        f"• Total Project Cost: ${budget.get('total', 'TBD')}",
    ])

    qualifications = "Company Qualifications:\n" + "\n".join(f"• {s}" for s in strengths)

    return {
        "executive_summary": executive_summary,
        "technical_approach": technical_approach,
        "project_timeline": project_timeline,
        "budget_breakdown": budget_breakdown,
        "company_qualifications": qualifications,
        "recommendations": [
            "Customize technical approach based on specific requirements",
            "Include relevant case studies and references",
            "Add detailed risk mitigation strategies",
            "Provide clear communication and reporting protocols",
        ],
    }


# =============================================================================
# Application Quality Fallback
# =============================================================================

APPLICATION_TEXT_FIELDS = (
    "proposal_text",
    "technical_approach",
    "team_members",
    "timeline",
    "budget",
    "relevant_experience",
)

FALLBACK_RECOMMENDATIONS = [
    "Review and expand technical specifications where possible",
    "Include specific examples of past successful projects",
    "Ensure timeline aligns with project complexity",
    "Verify budget competitiveness and completeness",
    "Highlight unique value propositions and differentiators",
]


def basic_application_quality(application: dict[str, Any]) -> dict[str, Any]:
    """
    Length-based quality review used when the AI review is unavailable.

    Returns:
        dict with quality_score (0-100), strengths, improvements (max 5),
        win_probability (0.3-0.9) and recommendations
    """
    lengths = {f: len(str(application.get(f) or "")) for f in APPLICATION_TEXT_FIELDS}

    score = 50
    if lengths["proposal_text"] > 200:
        score += 15
    if lengths["technical_approach"] > 100:
        score += 10
    if lengths["team_members"] > 50:
        score += 10
    if lengths["timeline"] > 50:
        score += 5
    if lengths["budget"] > 50:
        score += 5
    if lengths["relevant_experience"] > 100:
        score += 5

    strengths = []
    if lengths["proposal_text"] > 500:
        strengths.append("Comprehensive proposal overview provided")
    if lengths["technical_approach"] > 200:
        strengths.append("Detailed technical approach outlined")
    if lengths["team_members"] > 100:
        strengths.append("Well-defined team structure and qualifications")
    if lengths["relevant_experience"] > 200:
        strengths.append("Strong relevant experience demonstrated")
    if not strengths:
        strengths.append("Application shows good foundation for development")

    improvements = []
    if lengths["proposal_text"] < 300:
        improvements.append("Expand the proposal overview with more detail")
    if lengths["technical_approach"] < 150:
        improvements.append("Provide more comprehensive technical methodology")
    if lengths["team_members"] < 100:
        improvements.append("Include more detailed team member qualifications")
    if lengths["timeline"] < 100:
        improvements.append("Develop a more detailed project timeline")
    if lengths["budget"] < 100:
        improvements.append("Provide more detailed budget breakdown")

    content_length = (
        lengths["proposal_text"]
        + lengths["technical_approach"]
        + lengths["team_members"]
        + lengths["relevant_experience"]
    )
    probability = 0.3
    if content_length > 1000:
        probability += 0.2
    if content_length > 2000:
        probability += 0.1
    if lengths["timeline"] > 100:
        probability += 0.05
    if lengths["budget"] > 100:
        probability += 0.05

    return {
        "quality_score": min(100, score),
        "strengths": strengths,
        "improvements": improvements[:5],
        "win_probability": round(min(0.9, probability), 2),
        "recommendations": list(FALLBACK_RECOMMENDATIONS),
    }
