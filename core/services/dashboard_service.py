# =============================================================================
# core/services/dashboard_service.py - Company Dashboard Stats
# =============================================================================
# One read-only summary for the dashboard page: application counts by
# status, win rate, upcoming deadlines and recently matched opportunities.
# =============================================================================

import logging
from datetime import timedelta
from typing import Any

from core.models.application import ApplicationStatus
from lib.supabase_client import SupabaseClient
from lib.utils import parse_datetime, utc_now

logger = logging.getLogger(__name__)

DEADLINE_WINDOW_DAYS = 30
RECENT_MATCHES = 5


def win_rate(counts: dict[str, int]) -> float:
    """Awarded share of decided applications, as a percentage (0 when none decided)."""
    awarded = counts.get(ApplicationStatus.AWARDED.value, 0)
    decided = awarded + counts.get(ApplicationStatus.REJECTED.value, 0)
    return round(awarded / decided * 100, 1) if decided else 0.0


def upcoming_deadlines(
    applications: list[dict[str, Any]],
    days: int = DEADLINE_WINDOW_DAYS,
) -> list[dict[str, Any]]:
    """Open applications whose opportunity is due within `days`, soonest first."""
    now = utc_now()
    horizon = now + timedelta(days=days)
    upcoming = []
    for application in applications:
        if ApplicationStatus(application["status"]).is_final:
            continue
        opportunity = application.get("opportunities") or {}
        due = parse_datetime(opportunity.get("due_date"))
        if due is None or not now <= due <= horizon:
            continue
        upcoming.append({
            "application_id": application["id"],
            "title": application.get("title") or opportunity.get("title"),
            "agency": opportunity.get("agency"),
            "status": application["status"],
            "due_date": due.isoformat(),
            "days_remaining": (due - now).days,
        })
    return sorted(upcoming, key=lambda item: item["due_date"])


class DashboardService:

    @staticmethod
    def get_stats(company: dict[str, Any]) -> dict[str, Any]:
        client = SupabaseClient.get_client()

        applications = (
            client.table("applications")
            .select("id, title, status, submitted_at, opportunities(title, agency, due_date)")
            .eq("company_id", company["id"])
            .execute()
        ).data or []

        counts = {status.value: 0 for status in ApplicationStatus}
        for application in applications:
            counts[application["status"]] = counts.get(application["status"], 0) + 1

        matches = (
            client.table("opportunity_matches")
            .select("*")
            .eq("company_id", company["id"])
            .order("created_at", desc=True)
            .limit(RECENT_MATCHES)
            .execute()
        ).data or []

        logger.debug(f"Dashboard for company {company['id']}: {len(applications)} applications")
        return {
            "company": {"id": company["id"], "name": company.get("name")},
            "applications": {
                "total": len(applications),
                "by_status": counts,
                "active": sum(counts[s.value] for s in ApplicationStatus if not s.is_final),
            },
            "win_rate": win_rate(counts),
            "upcoming_deadlines": upcoming_deadlines(applications),
            "recent_opportunities": matches,
        }
