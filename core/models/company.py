# =============================================================================
# core/models/company.py - Company & Profile Schemas
# =============================================================================
# A company is the tenant: applications, checklists, subscriptions and
# opportunity matches all hang off company_id. A profile links an auth user
# to one company with a role.
# =============================================================================

from enum import Enum

from pydantic import BaseModel, Field


class ProfileRole(str, Enum):
    """
    Role of a user within their company.

    Owners and admins manage billing, the checklist and the team.
    """
    COMPANY_OWNER = "company_owner"
    ADMIN = "admin"
    MEMBER = "member"


MANAGER_ROLES = (ProfileRole.COMPANY_OWNER.value, ProfileRole.ADMIN.value)


class CompanySize(str, Enum):
    SMALL = "Small"
    MEDIUM = "Medium"
    LARGE = "Large"


class CompanyBase(BaseModel):
    """Fields a user can set on their company profile."""

    name: str | None = Field(default=None, max_length=255)
    industry: str | None = None
    size: CompanySize | None = None
    location: str | None = None
    description: str | None = None
    website: str | None = None
    naics_codes: list[str] | None = None
    certifications: list[str] | None = None
    annual_revenue: str | None = Field(
        default=None,
        description="Free-form revenue, e.g. '$2,500,000'"
    )
    years_in_business: int | None = Field(default=None, ge=0)
    employee_count: int | None = Field(default=None, ge=0)
    past_performance_rating: float | None = Field(default=None, ge=0, le=5)
    headquarters_location: str | None = None
    company_type: str | None = Field(
        default=None,
        description="Business category such as 'defense' or 'technology'"
    )


class CompanyCreate(CompanyBase):
    """
    Input for POST /companies.

    Only the name is required; industry, size and location fall back to
    "General", "Small" and "United States".
    """
    name: str = Field(..., min_length=1, max_length=255)

    def to_row(self) -> dict:
        row = self.model_dump(exclude_none=True, mode="json")
        row.setdefault("industry", "General")
        row.setdefault("size", CompanySize.SMALL.value)
        row.setdefault("location", "United States")
        return row


class CompanyUpdate(CompanyBase):
    """Partial update; unset fields are left alone."""

    def to_row(self) -> dict:
        return self.model_dump(exclude_unset=True, mode="json")


class TeamInvite(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    role: ProfileRole = ProfileRole.MEMBER


class ProfileSetup(BaseModel):
    """Input for POST /auth/setup-profile."""

    full_name: str | None = Field(default=None, max_length=255)
    company: CompanyCreate | None = Field(
        default=None,
        description="Create and join a company in the same call"
    )
