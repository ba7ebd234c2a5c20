#!/usr/bin/env python3
"""
Tests for weekly payroll metrics and the admin time clock endpoints.
"""

import csv
import io
from datetime import date, datetime, timezone

import pytest

from models.time_clock import TimeClockEntry, TimeClockStatus
from services.payroll_summary import (
    PAYROLL_CSV_COLUMNS,
    PayrollSummaryService,
    TimeClockEntryView,
    calculate_metrics,
    payroll_csv_row,
    render_payroll_csv,
)

TZ = "America/New_York"


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


def view(name, clock_in, clock_out, hours, overtime=None):
    return TimeClockEntryView(
        employee_name=name,
        clock_in=clock_in,
        clock_out=clock_out,
        total_hours=hours,
        overtime_hours=overtime,
        status=TimeClockStatus.COMPLETED,
    )


def test_calculate_metrics():
    entries = [
        # 09:00-17:00 local
        view("Dana Ruiz", utc(2024, 1, 8, 14), utc(2024, 1, 8, 22), 8),
        # 09:00-19:30 local, a late clock-out
        view("Dana Ruiz", utc(2024, 1, 9, 14), utc(2024, 1, 10, 0, 30), 10.5, overtime=2.5),
        view("Bo Chen", utc(2024, 1, 9, 14), None, 3.5),
    ]

    metrics = calculate_metrics(entries, 65, 0.5, TZ, date(2024, 1, 8), date(2024, 1, 14))

    assert metrics.total_hours == 22
    assert metrics.overtime_hours == 2.5
    assert metrics.late_clockouts == 1
    assert metrics.active_employees == 2
    assert metrics.average_daily_hours == pytest.approx(round(22 / 14, 2))
    assert metrics.total_labor_cost == 1430
    assert metrics.overtime_cost == 81.25


def test_calculate_metrics_empty_week():
    metrics = calculate_metrics([], 65, 0.5, TZ, date(2024, 1, 8), date(2024, 1, 14))

    assert metrics.total_hours == 0
    assert metrics.active_employees == 0
    assert metrics.average_daily_hours == 0
    assert metrics.total_labor_cost == 0


def _seed_week(session):
    session.add_all([
        TimeClockEntry(user_id="u-crew", employee_name="Old Name", clock_in=utc(2024, 1, 8, 14),
                       clock_out=utc(2024, 1, 8, 22), total_hours=8, status=TimeClockStatus.COMPLETED),
        TimeClockEntry(user_id="u-gone", employee_name="Gil Stone", clock_in=utc(2024, 1, 12, 14),
                       clock_out=utc(2024, 1, 12, 23), total_hours=9, overtime_hours=1,
                       status=TimeClockStatus.COMPLETED),
        # Previous week
        TimeClockEntry(user_id="u-crew", employee_name="Old Name", clock_in=utc(2024, 1, 5, 14),
                       clock_out=utc(2024, 1, 5, 22), total_hours=8, status=TimeClockStatus.COMPLETED),
    ])
    session.commit()


def test_entries_for_week_uses_live_roster_names(session, roster):
    _seed_week(session)
    service = PayrollSummaryService(session, roster, hourly_rate=65, overtime_premium=0.5, tz=TZ)

    entries = service.entries_for_week(date(2024, 1, 10))

    assert [e.employee_name for e in entries] == ["Gil Stone", "Dana Ruiz"]
    assert entries[1].employee_role == "crew"


def test_weekly_summary(session, roster):
    _seed_week(session)
    service = PayrollSummaryService(session, roster, hourly_rate=65, overtime_premium=0.5, tz=TZ)

    metrics = service.weekly_summary(date(2024, 1, 13))

    assert metrics.week_start == date(2024, 1, 7)
    assert metrics.week_end == date(2024, 1, 13)
    assert metrics.total_hours == 17
    assert metrics.late_clockouts == 1
    assert metrics.active_employees == 2
    assert metrics.overtime_cost == 32.5


def test_summary_endpoint(client, engine):
    from sqlmodel import Session

    with Session(engine) as session:
        _seed_week(session)

    response = client.get("/admin/time-clock/summary", params={"week_of": "2024-01-10"})

    assert response.status_code == 200
    body = response.json()
    assert body["week_start"] == "2024-01-07"
    assert body["total_hours"] == 17
    assert body["hourly_rate"] == 65


def test_entries_endpoint_serializes_utc(client, engine):
    from sqlmodel import Session

    with Session(engine) as session:
        _seed_week(session)

    response = client.get("/admin/time-clock/entries", params={"week_of": "2024-01-10"})

    assert response.status_code == 200
    body = response.json()
    assert len(body) == 2
    assert body[1]["clock_in"] == "2024-01-08T14:00:00Z"
    assert body[1]["employee_name"] == "Dana Ruiz"


def test_sunday_shift_opens_the_pay_week(session, roster):
    session.add_all([
        # Sunday 10:00 local, first day of the week of Jan 10
        TimeClockEntry(user_id="u-crew", employee_name="Dana Ruiz", clock_in=utc(2024, 1, 7, 15),
                       total_hours=4, status=TimeClockStatus.COMPLETED),
        # The following Sunday belongs to the next week
        TimeClockEntry(user_id="u-crew", employee_name="Dana Ruiz", clock_in=utc(2024, 1, 14, 15),
                       total_hours=5, status=TimeClockStatus.COMPLETED),
    ])
    session.commit()
    service = PayrollSummaryService(session, roster, hourly_rate=65, overtime_premium=0.5, tz=TZ)

    assert [e.total_hours for e in service.entries_for_week(date(2024, 1, 10))] == [4]
    assert [e.total_hours for e in service.entries_for_week(date(2024, 1, 14))] == [5]


def test_payroll_csv_row():
    entry = view("Dana Ruiz", utc(2024, 1, 9, 14, 5), utc(2024, 1, 10, 0, 30), 10.5, overtime=2.5)
    entry.employee_role = "crew"
    entry.break_time_minutes = 30
    entry.project_name = "Maple St."

    row = payroll_csv_row(entry, 65, 0.5, TZ)

    assert row == [
        "Dana Ruiz", "crew", "01/09/2024", "9:05 AM", "7:30 PM", "10.50", "2.50", "30",
        "$682.50", "$81.25", "$763.75", "Maple St.", "completed", "",
    ]


def test_payroll_csv_row_for_open_entry():
    row = payroll_csv_row(view("Bo Chen", utc(2024, 1, 9, 14), None, 0), 65, 0.5, TZ)

    assert row[4] == "In Progress"
    assert row[5:7] == ["0.00", "0.00"]
    assert row[8:11] == ["$0.00", "$0.00", "$0.00"]


def test_render_payroll_csv_quotes_every_field():
    content = render_payroll_csv([view("Lee, Sam", utc(2024, 1, 9, 14), None, 8)], 65, 0.5, TZ)
    rows = list(csv.reader(io.StringIO(content)))

    assert rows[0] == PAYROLL_CSV_COLUMNS
    assert rows[1][0] == "Lee, Sam"
    assert rows[1][8] == "$520.00"
    assert content.splitlines()[1].startswith('"Lee, Sam","",')


def test_csv_export_endpoint(client, engine):
    from sqlmodel import Session

    with Session(engine) as session:
        _seed_week(session)

    response = client.get("/admin/time-clock/summary.csv", params={"week_of": "2024-01-10"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert response.headers["content-disposition"] == (
        'attachment; filename="payroll-summary-2024-01-07-to-2024-01-13.csv"'
    )
    rows = list(csv.reader(io.StringIO(response.text)))
    assert len(rows) == 3
    assert [r[0] for r in rows[1:]] == ["Gil Stone", "Dana Ruiz"]
    assert rows[1][10] == "$617.50"
