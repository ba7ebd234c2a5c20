#!/usr/bin/env python3
"""
Create the time clock entries missing for approved shift requests.

Approving a shift request writes the approval first and the time clock entry
second. When the second write fails the request stays approved with no
payroll record; run this (manually or from a scheduler) to fill the gaps.
"""

import logging
import os
import sys

from fastapi import HTTPException
from rich.console import Console
from rich.table import Table
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

# Add the project root to Python path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.config import LOG_LEVEL
from db.session import get_engine
from services.notification_service import get_notifier
from services.request_review import RequestReviewService
from services.team_roster import get_team_roster
from utils.datetime_helpers import format_utc_datetime

console = Console()


def format_optional(value):
    return str(value) if value is not None else "-"


def main() -> int:
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    console.print("[bold cyan]Looking for approved shift requests without a time clock entry...[/bold cyan]")

    try:
        with Session(get_engine()) as session:
            service = RequestReviewService(session=session, notifier=get_notifier(), roster=get_team_roster())
            created = service.reconcile_shift_approvals()

            if not created:
                console.print("[green]Nothing to reconcile.[/green]")
                return 0

            table = Table(title="[bold green]Created Time Clock Entries[/bold green]", show_lines=True)
            for col in ["Entry ID", "Request ID", "Employee", "Clock In", "Clock Out", "Hours", "Project"]:
                table.add_column(col, overflow="fold")

            for entry in created:
                table.add_row(
                    str(entry.id),
                    format_optional(entry.source_request_id),
                    entry.employee_name,
                    format_optional(format_utc_datetime(entry.clock_in)),
                    format_optional(format_utc_datetime(entry.clock_out)),
                    format_optional(entry.total_hours),
                    format_optional(entry.project_name),
                )

            console.print(table)
            console.print(f"\n[bold cyan]Created {len(created)} missing time clock entries[/bold cyan]")
    except (SQLAlchemyError, HTTPException) as e:
        console.print(f"[bold red]Database error occurred:[/bold red] {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
