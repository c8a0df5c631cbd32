# =============================================================================
# tests/test_analysis.py - Rule-Based Analysis Tests
# =============================================================================
# Tests for opportunity fit, company SWOT, proposal outline and the
# length-based application review.
# =============================================================================

from datetime import datetime, timedelta, timezone

import pytest

from core.analysis import (
    analyze_company,
    analyze_opportunity_fit,
    basic_application_quality,
    generate_proposal_outline,
)

NOW = datetime(2025, 3, 1, tzinfo=timezone.utc)


# =============================================================================
# Opportunity Fit
# =============================================================================

class TestOpportunityFit:

    def test_every_dimension_scores(self):
        opportunity = {
            "title": "Cloud Migration",
            "industry": "Technology",
            "location": "DC",
            "amount": "$50,000",
            "deadline": (NOW + timedelta(days=45)).isoformat(),
            "requirements": "cloud migration",
        }
        company = {
            "industry": "technology",
            "location": "Washington, DC",
            "size": "Small",
            "description": "Cloud services company",
        }

        result = analyze_opportunity_fit(opportunity, company, now=NOW)

        assert result["score"] == 100
        assert result["assessment"] == "Excellent Match"
        assert "Perfect industry match" in result["reasons"]
        assert "Geographic advantage" in result["reasons"]
        assert result["recommendations"] == []
        assert result["opportunity"]["title"] == "Cloud Migration"

    def test_no_company_scores_zero(self):
        result = analyze_opportunity_fit({"title": "Anything"}, None, now=NOW)

        assert result["score"] == 0
        assert result["assessment"] == "Poor Match"
        assert result["reasons"] == []

    def test_mismatches_produce_recommendations(self):
        opportunity = {
            "industry": "Construction",
            "location": "Texas",
            "amount": 5_000_000,
            "deadline": (NOW + timedelta(days=7)).isoformat(),
        }
        company = {"industry": "Healthcare", "location": "Ohio", "size": "Small"}

        result = analyze_opportunity_fit(opportunity, company, now=NOW)

        # 5 (industry) + 10 (location) + 10 (size) + 5 (deadline)
        assert result["score"] == 30
        assert result["assessment"] == "Poor Match"
        assert "Consider teaming arrangements for large contracts" in result["recommendations"]
        assert "Tight deadline" in result["reasons"]


# =============================================================================
# Company SWOT
# =============================================================================

class TestAnalyzeCompany:

    def test_well_positioned_small_company(self):
        company = {
            "name": "Acme",
            "size": "Small",
            "industry": "Technology",
            "location": "Washington, DC",
            "certifications": ["8(a)"],
            "past_projects": ["p1", "p2"],
        }

        result = analyze_company(company)

        assert len(result["strengths"]) == 5
        assert result["total_score"] == 82
        assert result["assessment"] == "Strong Competitive Position"
        assert "Certified in 8(a)" in result["strengths"]
        assert "Completed 2 successful projects" in result["strengths"]

    def test_empty_company_needs_improvement(self):
        result = analyze_company({})

        assert result["weaknesses"] == ["Limited certifications", "Limited project history"]
        assert result["total_score"] == -10
        assert result["assessment"] == "Needs Improvement"

    def test_location_outside_hub(self):
        result = analyze_company({"location": "Denver, CO"})

        assert "Consider establishing presence in government hub areas" in result["recommendations"]


# =============================================================================
# Proposal Outline
# =============================================================================

def test_proposal_outline_uses_form_values():
    outline = generate_proposal_outline({
        "opportunity_title": "Help Desk Support",
        "company_name": "Acme",
        "budget": {"total": "50000"},
        "timeline": {"planning": "1 week"},
        "company_strengths": ["ISO 9001 certified"],
    })

    assert "Help Desk Support" in outline["executive_summary"]
    assert "Acme" in outline["executive_summary"]
    assert "• Total Project Cost: $50000" in outline["budget_breakdown"]
    assert "Phase 1: Planning and Requirements (1 week)" in outline["project_timeline"]
    assert outline["company_qualifications"] == "Company Qualifications:\n• ISO 9001 certified"


def test_proposal_outline_defaults():
    outline = generate_proposal_outline({})

    assert "this opportunity" in outline["executive_summary"]
    assert "$TBD" in outline["budget_breakdown"]
    assert len(outline["recommendations"]) == 4


# =============================================================================
# Application Quality Fallback
# =============================================================================

class TestBasicApplicationQuality:

    def test_empty_application(self):
        result = basic_application_quality({})

        assert result["quality_score"] == 50
        assert result["strengths"] == ["Application shows good foundation for development"]
        assert len(result["improvements"]) == 5
        assert result["win_probability"] == pytest.approx(0.3)

    def test_detailed_application(self):
        application = {
            "proposal_text": "p" * 600,
            "technical_approach": "t" * 250,
            "team_members": "m" * 150,
            "timeline": "l" * 150,
            "budget": "b" * 150,
            "relevant_experience": "e" * 250,
        }

        result = basic_application_quality(application)

        assert result["quality_score"] == 100
        assert len(result["strengths"]) == 4
        assert result["improvements"] == []
        assert result["win_probability"] == pytest.approx(0.6)
