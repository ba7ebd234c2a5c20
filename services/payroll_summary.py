import csv
import io
import logging
from datetime import date, datetime
from typing import List, Optional, Tuple

from pydantic import BaseModel, field_serializer
from sqlmodel import Session, select

from models.time_clock import TimeClockEntry, TimeClockStatus
from services.team_roster import TeamRosterCache
from utils.datetime_helpers import format_utc_datetime
from utils.timezone_helpers import from_utc_to_local, get_week_range

logger = logging.getLogger(__name__)

# Clock-outs after this local hour count as late
LATE_CLOCK_OUT_HOUR = 17
DAYS_PER_WEEK = 7


class TimeClockEntryView(BaseModel):
    id: Optional[int] = None
    user_id: Optional[str] = None
    employee_name: str
    employee_role: Optional[str] = None
    clock_in: datetime
    clock_out: Optional[datetime] = None
    total_hours: float = 0
    overtime_hours: Optional[float] = None
    break_time_minutes: int = 0
    location: Optional[str] = None
    project_name: Optional[str] = None
    status: TimeClockStatus
    notes: Optional[str] = None
    source_request_id: Optional[str] = None

    @field_serializer("clock_in", "clock_out")
    def serialize_timestamps(self, dt: Optional[datetime]) -> Optional[str]:
        """Ensure timestamps are formatted as UTC with Z suffix"""
        return format_utc_datetime(dt)


class PayrollMetrics(BaseModel):
    week_start: date
    week_end: date
    hourly_rate: float
    total_hours: float
    overtime_hours: float
    late_clockouts: int
    active_employees: int
    average_daily_hours: float
    total_labor_cost: float
    overtime_cost: float


def calculate_metrics(
    entries: List[TimeClockEntryView],
    hourly_rate: float,
    overtime_premium: float,
    tz: str,
    week_start: date,
    week_end: date,
) -> PayrollMetrics:
    total_hours = sum(entry.total_hours or 0 for entry in entries)
    overtime_hours = sum(entry.overtime_hours or 0 for entry in entries)
    late_clockouts = sum(
        1
        for entry in entries
        if entry.clock_out and from_utc_to_local(entry.clock_out, tz).hour > LATE_CLOCK_OUT_HOUR
    )
    active_employees = len({entry.employee_name for entry in entries})
    average_daily_hours = (
        total_hours / (active_employees * DAYS_PER_WEEK) if active_employees > 0 else 0.0
    )

    return PayrollMetrics(
        week_start=week_start,
        week_end=week_end,
        hourly_rate=hourly_rate,
        total_hours=round(total_hours, 2),
        overtime_hours=round(overtime_hours, 2),
        late_clockouts=late_clockouts,
        active_employees=active_employees,
        average_daily_hours=round(average_daily_hours, 2),
        total_labor_cost=round(total_hours * hourly_rate, 2),
        # Overtime hours are already paid at the base rate inside total hours
        overtime_cost=round(overtime_hours * hourly_rate * overtime_premium, 2),
    )


PAYROLL_CSV_COLUMNS = [
    "Employee Name", "Role/Position", "Shift Date", "Clock In Time", "Clock Out Time",
    "Regular Hours", "Overtime Hours", "Break Minutes", "Base Pay", "OT Premium",
    "Total Cost", "Work Location", "Status", "Notes",
]


def _format_currency(amount: float) -> str:
    return f"${amount:,.2f}"


def _format_clock_time(dt: datetime, tz: str) -> str:
    # e.g. "9:05 AM"
    return from_utc_to_local(dt, tz).strftime("%I:%M %p").lstrip("0")


def payroll_csv_row(entry: TimeClockEntryView, hourly_rate: float, overtime_premium: float, tz: str) -> List[str]:
    hours = entry.total_hours or 0
    overtime = entry.overtime_hours or 0
    base_pay = hours * hourly_rate
    ot_premium = overtime * hourly_rate * overtime_premium

    return [
        entry.employee_name,
        entry.employee_role or "",
        from_utc_to_local(entry.clock_in, tz).strftime("%m/%d/%Y"),
        _format_clock_time(entry.clock_in, tz),
        _format_clock_time(entry.clock_out, tz) if entry.clock_out else "In Progress",
        f"{hours:.2f}",
        f"{overtime:.2f}",
        str(entry.break_time_minutes),
        _format_currency(base_pay),
        _format_currency(ot_premium),
        _format_currency(base_pay + ot_premium),
        entry.location or entry.project_name or "",
        getattr(entry.status, "value", entry.status),
        entry.notes or "",
    ]


def render_payroll_csv(
    entries: List[TimeClockEntryView], hourly_rate: float, overtime_premium: float, tz: str
) -> str:
    sio = io.StringIO()
    writer = csv.writer(sio, quoting=csv.QUOTE_ALL)
    writer.writerow(PAYROLL_CSV_COLUMNS)
    for entry in entries:
        writer.writerow(payroll_csv_row(entry, hourly_rate, overtime_premium, tz))
    return sio.getvalue()


def payroll_csv_filename(week_start: date, week_end: date) -> str:
    return f"payroll-summary-{week_start.isoformat()}-to-{week_end.isoformat()}.csv"


class PayrollSummaryService:
    def __init__(
        self,
        session: Session,
        roster: Optional[TeamRosterCache],
        hourly_rate: float,
        overtime_premium: float,
        tz: str,
    ):
        self.session = session
        self.roster = roster
        self.hourly_rate = hourly_rate
        self.overtime_premium = overtime_premium
        self.tz = tz

    def entries_for_week(self, week_of: date) -> List[TimeClockEntryView]:
        _, _, start_dt, end_dt = get_week_range(week_of, self.tz)
        entries = self.session.exec(
            select(TimeClockEntry)
            .where(TimeClockEntry.clock_in >= start_dt)
            .where(TimeClockEntry.clock_in <= end_dt)
            .order_by(TimeClockEntry.clock_in.desc())
        ).all()
        return [self._to_view(entry) for entry in entries]

    def weekly_summary(self, week_of: date) -> PayrollMetrics:
        week_start, week_end, _, _ = get_week_range(week_of, self.tz)
        entries = self.entries_for_week(week_of)
        logger.info(f"[PAYROLL] 📊 Summarizing {len(entries)} entries for week of {week_start}")
        return calculate_metrics(
            entries, self.hourly_rate, self.overtime_premium, self.tz, week_start, week_end
        )

    def weekly_export(self, week_of: date) -> Tuple[str, str]:
        """CSV export of the week's entries with per-entry pay; returns (filename, content)."""
        week_start, week_end, _, _ = get_week_range(week_of, self.tz)
        entries = self.entries_for_week(week_of)
        logger.info(f"[PAYROLL] 📤 Exporting {len(entries)} entries for week of {week_start}")
        content = render_payroll_csv(entries, self.hourly_rate, self.overtime_premium, self.tz)
        return payroll_csv_filename(week_start, week_end), content

    def _to_view(self, entry: TimeClockEntry) -> TimeClockEntryView:
        view = TimeClockEntryView.model_validate(entry, from_attributes=True)
        if self.roster is None or not entry.user_id:
            return view

        # Prefer the live roster name over the snapshot taken when the entry was written
        try:
            member = self.roster.find_member(entry.user_id)
        except Exception as e:
            logger.warning(f"[PAYROLL] ⚠️ Roster lookup failed for {entry.user_id}: {e}")
            return view
        if member is not None:
            view.employee_name = member.full_name or view.employee_name
            view.employee_role = member.role or view.employee_role
        return view
