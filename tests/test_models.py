# =============================================================================
# tests/test_models.py - Pydantic Model Tests
# =============================================================================
# Unit tests for the API models to ensure:
# - Valid data is accepted and parsed correctly
# - Invalid data raises ValidationError
# - Defaults and helper methods behave as the routes expect
#
# Run with: pytest tests/test_models.py -v
# =============================================================================

import pytest
from pydantic import ValidationError

from core.models import (
    ApplicationCreate,
    ApplicationStatus,
    ApplicationUpdate,
    ApproveOpportunities,
    BillingInterval,
    CheckoutRequest,
    CombinedOpportunity,
    CommissionRequest,
    CompanyCreate,
    CompanyUpdate,
    OpportunityCreate,
    OpportunitySource,
    OpportunityType,
    PlanTier,
    ProfileRole,
    SelectedOpportunity,
    TeamInvite,
)


# =============================================================================
# Application Model Tests
# =============================================================================

class TestApplicationStatus:
    """Tests for the application lifecycle rules."""

    @pytest.mark.parametrize(
        "current,target",
        [
            (ApplicationStatus.DRAFT, ApplicationStatus.SUBMITTED),
            (ApplicationStatus.SUBMITTED, ApplicationStatus.UNDER_REVIEW),
            (ApplicationStatus.UNDER_REVIEW, ApplicationStatus.AWARDED),
            (ApplicationStatus.UNDER_REVIEW, ApplicationStatus.REJECTED),
        ],
    )
    def test_allowed_transitions(self, current, target):
        assert current.can_transition_to(target)

    @pytest.mark.parametrize(
        "current,target",
        [
            (ApplicationStatus.DRAFT, ApplicationStatus.AWARDED),
            (ApplicationStatus.SUBMITTED, ApplicationStatus.DRAFT),
            (ApplicationStatus.AWARDED, ApplicationStatus.REJECTED),
            (ApplicationStatus.REJECTED, ApplicationStatus.UNDER_REVIEW),
        ],
    )
    def test_disallowed_transitions(self, current, target):
        assert not current.can_transition_to(target)

    def test_final_states(self):
        """Only awarded and rejected are final."""
        finals = [s for s in ApplicationStatus if s.is_final]

        assert finals == [ApplicationStatus.AWARDED, ApplicationStatus.REJECTED]
        assert ApplicationStatus.AWARDED.allowed_next() == []


class TestApplicationPayloads:

    def test_create_requires_opportunity(self):
        with pytest.raises(ValidationError):
            ApplicationCreate(opportunity_id="")

    def test_create_defaults(self):
        payload = ApplicationCreate(opportunity_id="opp-1")

        assert payload.responses == {}
        assert payload.documents == []
        assert payload.notes == ""

    def test_update_changes_only_sent_fields(self):
        """Unset fields must not overwrite stored values."""
        update = ApplicationUpdate(status="under_review", notes=None)

        assert update.changes() == {"status": "under_review", "notes": None}

    def test_update_rejects_unknown_status(self):
        with pytest.raises(ValidationError):
            ApplicationUpdate(status="won")


# =============================================================================
# Company Model Tests
# =============================================================================

class TestCompanyModels:

    def test_create_fills_defaults(self):
        row = CompanyCreate(name="Acme LLC").to_row()

        assert row == {
            "name": "Acme LLC",
            "industry": "General",
            "size": "Small",
            "location": "United States",
        }

    def test_create_keeps_given_values(self):
        row = CompanyCreate(name="Acme LLC", size="Large", naics_codes=["541511"]).to_row()

        assert row["size"] == "Large"
        assert row["naics_codes"] == ["541511"]

    def test_update_is_partial(self):
        assert CompanyUpdate(description="Cloud integrator").to_row() == {
            "description": "Cloud integrator"
        }

    def test_rating_bounds(self):
        with pytest.raises(ValidationError):
            CompanyUpdate(past_performance_rating=6)

    def test_invite_defaults_to_member(self):
        assert TeamInvite(email="new@acme.test").role == ProfileRole.MEMBER


# =============================================================================
# Opportunity Model Tests
# =============================================================================

class TestOpportunityModels:

    def test_combined_opportunity_bounds(self):
        base = {
            "id": "x",
            "title": "Cloud",
            "source": OpportunitySource.USASPENDING,
            "type": OpportunityType.CONTRACT,
        }

        assert CombinedOpportunity(**base).match_score == 0
        with pytest.raises(ValidationError):
            CombinedOpportunity(**base, match_score=101)
        with pytest.raises(ValidationError):
            CombinedOpportunity(**base, win_probability=1.5)

    def test_source_serializes_to_display_name(self):
        opportunity = CombinedOpportunity(
            id="G-1", title="Grant", source="Grants.gov", type="grant"
        )

        assert opportunity.model_dump(mode="json")["source"] == "Grants.gov"

    def test_opportunity_create_defaults(self):
        payload = OpportunityCreate(title="Road paving")

        assert payload.type == OpportunityType.CONTRACT
        assert payload.jurisdiction.value == "federal"
        assert payload.company_id is None

    def test_negative_value_rejected(self):
        with pytest.raises(ValidationError):
            OpportunityCreate(title="Road paving", estimated_value_min=-1)


class TestApproveOpportunities:

    def test_one_to_five_selections(self):
        one = {"title": "Cloud services"}

        assert len(ApproveOpportunities(selected_opportunities=[one]).selected_opportunities) == 1
        with pytest.raises(ValidationError):
            ApproveOpportunities(selected_opportunities=[])
        with pytest.raises(ValidationError):
            ApproveOpportunities(selected_opportunities=[one] * 6)

    def test_selected_match_score(self):
        assert SelectedOpportunity(title="Help desk").match_score == 85
        with pytest.raises(ValidationError):
            SelectedOpportunity(title="Help desk", match_score=120)


# =============================================================================
# Billing Model Tests
# =============================================================================

class TestBillingModels:

    def test_checkout_defaults_to_monthly(self):
        request = CheckoutRequest(plan_id="starter")

        assert request.plan_id == PlanTier.STARTER
        assert request.interval == BillingInterval.MONTHLY

    def test_unknown_plan(self):
        with pytest.raises(ValidationError):
            CheckoutRequest(plan_id="free")

    def test_commission_rate_default_and_bounds(self):
        assert CommissionRequest(application_id="a", contract_value=10).commission_rate == 0.03
        with pytest.raises(ValidationError):
            CommissionRequest(application_id="a", contract_value=0)
        with pytest.raises(ValidationError):
            CommissionRequest(application_id="a", contract_value=10, commission_rate=0.9)
