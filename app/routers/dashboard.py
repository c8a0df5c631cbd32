# =============================================================================
# app/routers/dashboard.py - Dashboard Endpoint
# =============================================================================

from fastapi import APIRouter

from app.dependencies import CurrentCompany
from core.services.dashboard_service import DashboardService

router = APIRouter()


@router.get("")
async def get_dashboard(company: CurrentCompany):
    """Application counts, win rate, deadlines in the next 30 days, recent matches."""
    return DashboardService.get_stats(company)
