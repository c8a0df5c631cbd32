# =============================================================================
# core/services/opportunity_request_service.py - Concierge Opportunity Requests
# =============================================================================
# A company asks the team to find opportunities for it; an admin searches,
# hand-picks one to five results and approves the request. Approval creates
# private opportunity rows (company_id set) plus draft applications, and
# emails the requester.
#
# Request lifecycle: pending -> completed (or rejected)
# =============================================================================

import logging
from typing import Any

from app.config import settings
from app.exceptions import BadRequestError, CompanyNotFoundError, GovContractException
from core.models.application import ApplicationStatus
from core.models.opportunity import (
    Jurisdiction,
    OpportunityRequestStatus,
    OpportunityType,
    SelectedOpportunity,
)
from core.services.email_service import EmailService
from lib.supabase_client import SupabaseClient
from lib.utils import utc_now_iso

logger = logging.getLogger(__name__)

REQUESTS_TABLE = "opportunity_requests"


class OpportunityRequestNotFoundError(GovContractException):
    def __init__(self, request_id: str):
        super().__init__(
            message=f"Opportunity request not found: {request_id}",
            code="REQUEST_NOT_FOUND",
            status_code=404,
            details={"request_id": request_id},
        )


def company_location(company: dict[str, Any]) -> str:
    return company.get("headquarters_location") or company.get("location") or "Not specified"


class OpportunityRequestService:

    @staticmethod
    def create_request(profile: dict[str, Any], company: dict[str, Any]) -> dict[str, Any]:
        """
        File a request on behalf of the user's company and notify the admin inbox.

        Location and NAICS codes come from the company profile. A failed
        admin email leaves `email_sent` false but does not fail the request.
        """
        location = company_location(company)
        industry = company.get("industry") or ""

        request = SupabaseClient.insert(
            REQUESTS_TABLE,
            {
                "user_id": profile["id"],
                "company_id": company["id"],
                "request_type": "opportunity_search",
                "description": f"Looking for {industry or 'contract'} opportunities in {location}",
                "location_preference": location,
                "industry_focus": industry,
                "status": OpportunityRequestStatus.PENDING.value,
                "email_sent": False,
            },
        )

        result = EmailService.send_admin_opportunity_request(
            request_id=request["id"],
            company_name=company.get("name") or "Unknown company",
            industry=industry or "Not specified",
            location=location,
            business_type=company.get("company_type") or "Not specified",
            naics_codes=company.get("naics_codes") or [],
        )
        if result.success:
            sent_at = utc_now_iso()
            SupabaseClient.update(
                REQUESTS_TABLE, {"email_sent": True, "email_sent_at": sent_at}, id=request["id"]
            )
            request = {**request, "email_sent": True, "email_sent_at": sent_at}
        else:
            logger.warning(f"Admin notification for request {request['id']} not sent: {result.error}")

        logger.info(f"Opportunity request {request['id']} created for company {company['id']}")
        return request

    @staticmethod
    def list_for_user(user_id: str) -> list[dict[str, Any]]:
        client = SupabaseClient.get_client()
        response = (
            client.table(REQUESTS_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .execute()
        )
        return response.data or []

    @staticmethod
    def list_all(status: OpportunityRequestStatus | None = None) -> list[dict[str, Any]]:
        """Admin view with requester and company names flattened in."""
        client = SupabaseClient.get_client()
        query = client.table(REQUESTS_TABLE).select(
            "*, profiles(email, full_name), companies(name)"
        )
        if status:
            query = query.eq("status", status.value)
        response = query.order("created_at", desc=True).execute()

        requests = []
        for row in response.data or []:
            requester = row.pop("profiles", None) or {}
            company = row.pop("companies", None) or {}
            requests.append({
                **row,
                "user_email": requester.get("email"),
                "user_name": requester.get("full_name"),
                "company_name": company.get("name"),
            })
        return requests

    @staticmethod
    def approve(
        request_id: str,
        admin_user_id: str,
        selected: list[SelectedOpportunity],
    ) -> dict[str, Any]:
        """
        Turn an admin's picks into private opportunities for the requester.

        Raises:
            BadRequestError: No picks, more than five, or request already closed
            OpportunityRequestNotFoundError / CompanyNotFoundError
        """
        if not 1 <= len(selected) <= 5:
            raise BadRequestError(
                "Between 1 and 5 opportunities can be approved at once",
                code="INVALID_SELECTION",
            )

        request = SupabaseClient.fetch_one(REQUESTS_TABLE, id=request_id)
        if not request:
            raise OpportunityRequestNotFoundError(request_id)
        if request.get("status") == OpportunityRequestStatus.COMPLETED.value:
            raise BadRequestError("Request has already been completed", code="REQUEST_COMPLETED")

        company = SupabaseClient.fetch_company(request["company_id"])
        if not company:
            raise CompanyNotFoundError(request["company_id"])

        created = []
        for pick in selected:
            opportunity = SupabaseClient.insert(
                "opportunities",
                {
                    "title": pick.title,
                    "description": pick.description,
                    "agency": pick.agency or "Government Agency",
                    "source_url": pick.url,
                    "due_date": pick.deadline,
                    "type": OpportunityType.CONTRACT.value,
                    "jurisdiction": Jurisdiction.FEDERAL.value,
                    "company_id": company["id"],
                    "recommended_by": admin_user_id,
                    "match_score": pick.match_score,
                    "admin_notes": pick.admin_notes,
                    "search_result_data": pick.source_data,
                    "status": "active",
                },
            )
            SupabaseClient.insert(
                "applications",
                {
                    "company_id": company["id"],
                    "opportunity_id": opportunity["id"],
                    "created_by": request["user_id"],
                    "title": pick.title,
                    "status": ApplicationStatus.DRAFT.value,
                    "source": "admin_recommended",
                    "recommended_at": utc_now_iso(),
                },
            )
            created.append({
                "title": opportunity["title"],
                "agency": opportunity.get("agency") or "Government Agency",
                "deadline": opportunity.get("due_date"),
                "url": f"{settings.APP_URL.rstrip('/')}/my-opportunities",
            })

        SupabaseClient.update(
            REQUESTS_TABLE,
            {
                "status": OpportunityRequestStatus.COMPLETED.value,
                "processed_by": admin_user_id,
                "processed_at": utc_now_iso(),
            },
            id=request_id,
        )

        requester = SupabaseClient.fetch_profile(request["user_id"]) or {}
        if requester.get("email"):
            EmailService.send_opportunities_ready(
                requester["email"],
                requester.get("full_name"),
                company.get("name") or "your company",
                created,
            )

        logger.info(f"Approved {len(created)} opportunities for request {request_id}")
        return {
            "success": True,
            "opportunities_created": len(created),
            "opportunities": created,
        }
