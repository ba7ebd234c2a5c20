from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Response
from sqlmodel import Session

from core.config import BUSINESS_TIMEZONE, OVERTIME_PREMIUM_MULTIPLIER, PAYROLL_HOURLY_RATE
from core.deps import require_admin_role
from db.session import get_session
from services.payroll_summary import PayrollMetrics, PayrollSummaryService, TimeClockEntryView
from services.team_roster import TeamRosterCache, get_team_roster
from utils.timezone_helpers import get_current_date_in_tz

router = APIRouter()


def get_payroll_summary_service(
    session: Session = Depends(get_session),
    roster: TeamRosterCache = Depends(get_team_roster),
) -> PayrollSummaryService:
    return PayrollSummaryService(
        session=session,
        roster=roster,
        hourly_rate=PAYROLL_HOURLY_RATE,
        overtime_premium=OVERTIME_PREMIUM_MULTIPLIER,
        tz=BUSINESS_TIMEZONE,
    )


@router.get("/entries", response_model=List[TimeClockEntryView])
def list_time_clock_entries(
    week_of: Optional[date] = None,
    service: PayrollSummaryService = Depends(get_payroll_summary_service),
    admin: dict = Depends(require_admin_role),
):
    """Time clock entries whose clock-in falls in the Sunday-Saturday pay week containing `week_of` (default: this week)."""
    return service.entries_for_week(week_of or get_current_date_in_tz(service.tz))


@router.get("/summary", response_model=PayrollMetrics)
def get_weekly_payroll_summary(
    week_of: Optional[date] = None,
    service: PayrollSummaryService = Depends(get_payroll_summary_service),
    admin: dict = Depends(require_admin_role),
):
    return service.weekly_summary(week_of or get_current_date_in_tz(service.tz))


@router.get("/summary.csv", response_class=Response)
def export_weekly_payroll_csv(
    week_of: Optional[date] = None,
    service: PayrollSummaryService = Depends(get_payroll_summary_service),
    admin: dict = Depends(require_admin_role),
):
    """Downloads the week's entries with base pay, overtime premium and total cost per entry."""
    filename, content = service.weekly_export(week_of or get_current_date_in_tz(service.tz))
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
