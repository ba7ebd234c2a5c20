from fastapi import APIRouter, Depends
from sqlmodel import Session
from typing import List, Optional
from datetime import date, datetime, time
from enum import Enum
import logging

from pydantic import BaseModel, field_serializer

from models.employee_request import EmployeeRequest, RequestStatus, RequestType
from services.notification_service import SmsNotifier, get_notifier
from services.payroll_summary import TimeClockEntryView
from services.request_review import RequestReviewService
from services.team_roster import TeamRosterCache, get_team_roster
from db.session import get_session
from core.deps import require_admin_role
from utils.datetime_helpers import format_utc_datetime

logger = logging.getLogger(__name__)

router = APIRouter()


class StatusFilter(str, Enum):
    ALL = "all"
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"


class TypeFilter(str, Enum):
    ALL = "all"
    TIME_OFF = "time_off"
    SHIFT = "shift"
    BREAK = "break"


# --- Pydantic Models for Admin Actions ---

class ApproveRequestPayload(BaseModel):
    notes: Optional[str] = None


class DenyRequestPayload(BaseModel):
    reason: str = ""


# --- Response Models ---

class EmployeeRequestResponse(BaseModel):
    id: str
    user_id: str
    request_type: RequestType
    status: RequestStatus
    submitted_at: datetime
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None

    time_off_start_date: Optional[date] = None
    time_off_end_date: Optional[date] = None
    time_off_start_time: Optional[time] = None
    time_off_end_time: Optional[time] = None
    time_off_type: Optional[str] = None
    is_all_day: Optional[bool] = None
    total_time_off_hours: Optional[float] = None

    shift_start_date: Optional[date] = None
    shift_start_time: Optional[time] = None
    shift_end_date: Optional[date] = None
    shift_end_time: Optional[time] = None
    total_hours: Optional[float] = None
    job_name: Optional[str] = None
    include_mileage: Optional[bool] = None

    break_start_time: Optional[time] = None
    break_end_time: Optional[time] = None
    break_duration_minutes: Optional[int] = None
    break_type: Optional[str] = None

    explanation: Optional[str] = None
    notes: Optional[str] = None

    # Roster enrichment
    requester_name: Optional[str] = None
    requester_avatar_url: Optional[str] = None

    @field_serializer("submitted_at", "reviewed_at")
    def serialize_timestamps(self, dt: Optional[datetime]) -> Optional[str]:
        """Ensure timestamps are formatted as UTC with Z suffix"""
        return format_utc_datetime(dt)


class ApprovalResponse(BaseModel):
    request: EmployeeRequestResponse
    time_clock_entry: Optional[TimeClockEntryView] = None


class DenialResponse(BaseModel):
    request_id: str
    deleted: bool = True


class PendingCountResponse(BaseModel):
    pending: int


# --- Helper Functions ---

def get_request_review_service(
    session: Session = Depends(get_session),
    notifier: SmsNotifier = Depends(get_notifier),
    roster: TeamRosterCache = Depends(get_team_roster),
) -> RequestReviewService:
    return RequestReviewService(session=session, notifier=notifier, roster=roster)


def to_response(db_request: EmployeeRequest, roster: Optional[TeamRosterCache] = None) -> EmployeeRequestResponse:
    response = EmployeeRequestResponse.model_validate(db_request, from_attributes=True)
    if roster is not None:
        try:
            member = roster.find_member(db_request.user_id)
        except Exception as e:
            logger.warning(f"[REQUESTS] ⚠️ Roster lookup failed for {db_request.user_id}: {e}")
            member = None
        if member is not None:
            response.requester_name = member.full_name or member.email
            response.requester_avatar_url = member.avatar_url
    return response


# --- Admin Endpoints ---

@router.get("/", response_model=List[EmployeeRequestResponse])
def list_employee_requests(
    status_filter: StatusFilter = StatusFilter.PENDING,
    type_filter: TypeFilter = TypeFilter.ALL,
    service: RequestReviewService = Depends(get_request_review_service),
    admin: dict = Depends(require_admin_role),
):
    """Gets employee requests newest first, filtered by status and type ("all" matches everything)."""
    requests = service.list_requests(status_filter.value, type_filter.value)
    return [to_response(r, service.roster) for r in requests]


@router.get("/pending-count", response_model=PendingCountResponse)
def get_pending_request_count(
    service: RequestReviewService = Depends(get_request_review_service),
    admin: dict = Depends(require_admin_role),
):
    return PendingCountResponse(pending=service.pending_count())


@router.post("/reconcile", response_model=List[TimeClockEntryView])
def reconcile_shift_approvals(
    service: RequestReviewService = Depends(get_request_review_service),
    admin: dict = Depends(require_admin_role),
):
    """Creates time clock entries missing for approved shift requests."""
    entries = service.reconcile_shift_approvals()
    return [TimeClockEntryView.model_validate(e, from_attributes=True) for e in entries]


@router.get("/{request_id}", response_model=EmployeeRequestResponse)
def get_employee_request(
    request_id: str,
    service: RequestReviewService = Depends(get_request_review_service),
    admin: dict = Depends(require_admin_role),
):
    return to_response(service.get_request(request_id), service.roster)


@router.post("/{request_id}/approve", response_model=ApprovalResponse)
def approve_employee_request(
    request_id: str,
    payload: ApproveRequestPayload,
    service: RequestReviewService = Depends(get_request_review_service),
    admin: dict = Depends(require_admin_role),
):
    """Approves a pending request; shift requests also get a completed time clock entry."""
    outcome = service.approve(request_id, payload.notes, admin.get("uid"))
    entry = outcome.time_clock_entry
    return ApprovalResponse(
        request=to_response(outcome.request, service.roster),
        time_clock_entry=(
            TimeClockEntryView.model_validate(entry, from_attributes=True) if entry else None
        ),
    )


@router.post("/{request_id}/deny", response_model=DenialResponse)
def deny_employee_request(
    request_id: str,
    payload: DenyRequestPayload,
    service: RequestReviewService = Depends(get_request_review_service),
    admin: dict = Depends(require_admin_role),
):
    """Denies a pending request: the requester is notified and the request is deleted."""
    service.deny(request_id, payload.reason, admin.get("uid"))
    return DenialResponse(request_id=request_id)
