# =============================================================================
# tests/test_scoring.py - Opportunity Scoring Tests
# =============================================================================
# Unit tests for the additive match / win-probability heuristics.
# =============================================================================

import pytest

from core.scoring import (
    DEFAULT_COMPANY_PROFILE,
    contract_match_score,
    contract_win_probability,
    grant_match_score,
    grant_win_probability,
    naics_prefix_match,
    profile_relevance_score,
    ranking_score,
)


class TestNaicsPrefixMatch:

    def test_shared_three_digit_prefix(self):
        assert naics_prefix_match(["541330"], ["541511"])

    def test_different_sector(self):
        assert not naics_prefix_match(["236220"], ["541511"])

    def test_short_code_matches_in_either_direction(self):
        assert naics_prefix_match(["54"], ["541511"])


class TestContractMatchScore:

    def test_base_score_without_signals(self):
        assert contract_match_score(None, [], None, {}) == 50

    def test_naics_and_agency_and_size_bonuses(self):
        company = {
            "industry": "Technology",
            "naics_codes": ["541511"],
            "annual_revenue": "$1,000,000",
        }

        # 50 + 25 (NAICS) + 15 (defense agency) + 15 (award is 20% of revenue)
        score = contract_match_score("Department of Defense", ["541512"], 200_000, company)

        assert score == 100

    def test_partial_revenue_fit(self):
        company = {"annual_revenue": "1000000"}

        assert contract_match_score(None, [], 800_000, company) == 58

    def test_comma_separated_company_naics(self):
        company = {"naics_codes": "236220, 541511"}

        assert contract_match_score(None, ["541990"], None, company) == 75

    def test_clamped_to_100(self):
        company = {
            "industry": "Technology Health Energy",
            "naics_codes": ["541511"],
            "annual_revenue": "1000000",
        }

        score = contract_match_score(
            "Defense Health Energy Agency", ["541511"], 300_000, company
        )

        assert score == 100


class TestContractWinProbability:

    def test_base_probability(self):
        assert contract_win_probability([], {}) == pytest.approx(0.3)

    def test_experienced_company_with_exact_naics(self):
        company = {
            "years_in_business": "12",
            "past_performance_rating": "4.6",
            "naics_codes": ["541511"],
        }

        # 0.3 + 0.1 + 0.15 + 0.1
        assert contract_win_probability(["541511"], company) == pytest.approx(0.65)

    def test_mid_experience(self):
        company = {"years_in_business": 7, "past_performance_rating": 3.7}

        assert contract_win_probability([], company) == pytest.approx(0.4)


class TestGrantScores:

    def test_grant_match_agency_and_size(self):
        company = {"industry": "Healthcare", "employee_count": "30"}

        # 40 + 20 (health) + 15 (<= 50 employees)
        assert grant_match_score("Department of Health and Human Services", company) == 75

    def test_grant_match_large_company(self):
        assert grant_match_score("Unknown Agency", {"employee_count": 400}) == 45

    def test_grant_win_probability_small_experienced(self):
        company = {
            "years_in_business": "11",
            "past_performance_rating": "4.0",
            "employee_count": "10",
        }

        # 0.15 + 0.08 + 0.08 + 0.1
        assert grant_win_probability(company) == pytest.approx(0.41)

    def test_grant_win_probability_base(self):
        assert grant_win_probability({}) == pytest.approx(0.15)


class TestProfileRelevance:

    def test_industry_keyword_and_defense_bonus(self):
        score = profile_relevance_score(
            "Cybersecurity Operations Support",
            "Department of Defense",
            industries=["cybersecurity"],
            keywords=["operations"],
            company_type="defense",
        )

        assert score == 100

    def test_no_overlap(self):
        assert profile_relevance_score("Road paving", "City of Austin") == 50


class TestRankingScore:

    def test_weights(self):
        assert ranking_score(80, 0.5) == pytest.approx(68.0)

    def test_missing_values(self):
        assert ranking_score(None, None) == 0


def test_default_profile_scores_technology_contract():
    score = contract_match_score(
        "Department of Commerce", ["541512"], None, DEFAULT_COMPANY_PROFILE
    )

    assert score == 90
