from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import field_serializer
from sqlmodel import Field, Index, SQLModel

from utils.datetime_helpers import format_utc_datetime


class TimeClockStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


# Defines a Table "time_clock": one row per worked shift (clock-in/clock-out pair)
class TimeClockEntry(SQLModel, table=True):
    __tablename__ = "time_clock"

    __table_args__ = (
        Index("ix_time_clock_user_id", "user_id"),
        Index("ix_time_clock_clock_in", "clock_in"),
        # Weekly summaries filter by clock_in per employee
        Index("ix_time_clock_user_id_clock_in", "user_id", "clock_in"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: Optional[str] = None
    # Snapshot of the roster at the time the entry was written
    employee_name: str
    employee_role: Optional[str] = None

    clock_in: datetime
    clock_out: Optional[datetime] = None
    total_hours: float = Field(default=0)
    overtime_hours: Optional[float] = None
    break_time_minutes: int = Field(default=0)

    location: Optional[str] = None
    project_name: Optional[str] = None
    status: TimeClockStatus = Field(default=TimeClockStatus.ACTIVE)
    notes: Optional[str] = None

    # Set when the entry was derived from an approved shift request
    source_request_id: Optional[str] = Field(
        default=None, foreign_key="employee_requests.id", unique=True
    )

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_serializer("clock_in", "clock_out", "created_at")
    def serialize_timestamps(self, dt: Optional[datetime]) -> Optional[str]:
        """Ensure timestamps are formatted as UTC with Z suffix"""
        return format_utc_datetime(dt)
