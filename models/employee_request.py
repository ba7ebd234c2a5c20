from sqlmodel import SQLModel, Field, Index
from typing import Optional
from datetime import datetime, timezone, date, time
from enum import Enum
from pydantic import field_serializer
import uuid

from utils.datetime_helpers import format_utc_datetime


class RequestType(str, Enum):
    TIME_OFF = "time_off"
    SHIFT = "shift"
    BREAK = "break"


class RequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    # Denied requests are deleted; the value only exists for filtering
    DENIED = "denied"


class EmployeeRequest(SQLModel, table=True):
    __tablename__ = "employee_requests"

    __table_args__ = (
        Index("ix_employee_requests_status_submitted_at", "status", "submitted_at"),
    )

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    user_id: str = Field(index=True)
    request_type: RequestType = Field(index=True)
    status: RequestStatus = Field(default=RequestStatus.PENDING, index=True)

    submitted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    reviewed_at: Optional[datetime] = Field(default=None)
    reviewed_by: Optional[str] = Field(default=None)

    # time_off payload
    time_off_start_date: Optional[date] = None
    time_off_end_date: Optional[date] = None
    time_off_start_time: Optional[time] = None
    time_off_end_time: Optional[time] = None
    time_off_type: Optional[str] = None  # e.g. "vacation", "sick", "personal"
    is_all_day: Optional[bool] = None
    total_time_off_hours: Optional[float] = None

    # shift payload
    shift_start_date: Optional[date] = None
    shift_start_time: Optional[time] = None
    shift_end_date: Optional[date] = None
    shift_end_time: Optional[time] = None
    total_hours: Optional[float] = None
    job_name: Optional[str] = None
    include_mileage: Optional[bool] = None

    # break payload
    break_start_time: Optional[time] = None
    break_end_time: Optional[time] = None
    break_duration_minutes: Optional[int] = None
    break_type: Optional[str] = None  # e.g. "lunch", "rest"

    explanation: Optional[str] = None  # requester
    notes: Optional[str] = None  # reviewer, set on decision

    @field_serializer("submitted_at", "reviewed_at")
    def serialize_timestamps(self, dt: Optional[datetime]) -> Optional[str]:
        """Ensure timestamps are formatted as UTC with Z suffix"""
        return format_utc_datetime(dt)
