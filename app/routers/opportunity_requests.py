# =============================================================================
# app/routers/opportunity_requests.py - Concierge Request Endpoints
# =============================================================================
# A company asks the team to hand-pick opportunities for it. Admin review
# and approval live in app/routers/admin.py.
# =============================================================================

from fastapi import APIRouter

from app.dependencies import CurrentCompany, CurrentProfile
from core.services.opportunity_request_service import OpportunityRequestService

router = APIRouter()


@router.post("")
def create_request(profile: CurrentProfile, company: CurrentCompany):
    request = OpportunityRequestService.create_request(profile, company)
    return {
        "success": True,
        "request": request,
        "message": "Request submitted! Our team will find opportunities for you within 24 hours.",
    }


@router.get("")
async def list_my_requests(profile: CurrentProfile):
    return {"requests": OpportunityRequestService.list_for_user(profile["id"])}
