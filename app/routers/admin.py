# =============================================================================
# app/routers/admin.py - Platform Admin Endpoints
# =============================================================================
# Restricted to the emails in ADMIN_EMAILS (see require_admin).
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Depends, Path

from app.auth import AuthUser, require_admin
from core.models.opportunity import ApproveOpportunities, OpportunityRequestStatus
from core.services.opportunity_request_service import OpportunityRequestService

router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("/opportunity-requests")
async def list_opportunity_requests(status: OpportunityRequestStatus | None = None):
    requests = OpportunityRequestService.list_all(status)
    return {"requests": requests, "count": len(requests)}


@router.post("/opportunity-requests/{request_id}/approve")
def approve_opportunity_request(
    request_id: Annotated[str, Path(description="Opportunity request UUID")],
    body: ApproveOpportunities,
    admin: AuthUser = Depends(require_admin),
):
    """Create 1-5 private opportunities for the requesting company and email them."""
    return OpportunityRequestService.approve(request_id, str(admin.id), body.selected_opportunities)
