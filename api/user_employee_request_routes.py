import logging
from datetime import date, datetime, time, timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from api.admin_employee_request_routes import EmployeeRequestResponse, to_response
from core.deps import get_current_user
from db.session import get_session
from models.employee_request import EmployeeRequest, RequestType
from services.notification_service import SmsNotifier, get_notifier
from services.request_review import RequestReviewService
from services.team_roster import TeamRosterCache, get_team_roster

logger = logging.getLogger(__name__)

router = APIRouter()

HOURS_PER_DAY_OFF = 8


# --- Pydantic Models for Requester Submissions ---

class TimeOffRequestPayload(BaseModel):
    time_off_type: str
    start_date: date
    end_date: date
    is_all_day: bool = True
    start_time: Optional[time] = None  # HH:MM, only when not all day
    end_time: Optional[time] = None
    total_hours: Optional[float] = None
    explanation: Optional[str] = None


class ShiftRequestPayload(BaseModel):
    start_date: date
    start_time: time
    end_time: time
    end_date: Optional[date] = None  # Defaults to start_date
    break_duration_minutes: int = 0
    total_hours: Optional[float] = None
    job_name: Optional[str] = None
    include_mileage: bool = False
    explanation: Optional[str] = None


class BreakRequestPayload(BaseModel):
    break_type: str
    start_time: time
    end_time: time
    duration_minutes: Optional[int] = None
    explanation: Optional[str] = None


# --- Helper Functions ---

def _hours_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 3600


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def build_time_off_request(user_id: str, payload: TimeOffRequestPayload) -> EmployeeRequest:
    if payload.end_date < payload.start_date:
        raise _bad_request("End date must be on or after start date.")

    days = (payload.end_date - payload.start_date).days + 1
    if payload.is_all_day:
        start_time = end_time = None
        computed_hours = days * HOURS_PER_DAY_OFF
    else:
        if payload.start_time is None or payload.end_time is None:
            raise _bad_request("Start and end times are required for partial-day time off.")
        if payload.end_time <= payload.start_time:
            raise _bad_request("End time must be after start time.")
        start_time, end_time = payload.start_time, payload.end_time
        daily = _hours_between(
            datetime.combine(payload.start_date, start_time),
            datetime.combine(payload.start_date, end_time),
        )
        computed_hours = days * daily

    return EmployeeRequest(
        user_id=user_id,
        request_type=RequestType.TIME_OFF,
        time_off_type=payload.time_off_type,
        is_all_day=payload.is_all_day,
        time_off_start_date=payload.start_date,
        time_off_end_date=payload.end_date,
        time_off_start_time=start_time,
        time_off_end_time=end_time,
        total_time_off_hours=(
            payload.total_hours if payload.total_hours is not None else round(computed_hours, 2)
        ),
        explanation=payload.explanation or None,
    )


def build_shift_request(user_id: str, payload: ShiftRequestPayload) -> EmployeeRequest:
    end_date = payload.end_date or payload.start_date
    start_dt = datetime.combine(payload.start_date, payload.start_time)
    end_dt = datetime.combine(end_date, payload.end_time)
    if end_dt <= start_dt:
        raise _bad_request("Shift end must be after shift start.")
    if payload.break_duration_minutes < 0:
        raise _bad_request("Break duration cannot be negative.")

    computed_hours = max(_hours_between(start_dt, end_dt) - payload.break_duration_minutes / 60, 0)

    return EmployeeRequest(
        user_id=user_id,
        request_type=RequestType.SHIFT,
        job_name=payload.job_name,
        shift_start_date=payload.start_date,
        shift_start_time=payload.start_time,
        shift_end_date=end_date,
        shift_end_time=payload.end_time,
        break_duration_minutes=payload.break_duration_minutes,
        total_hours=(
            payload.total_hours if payload.total_hours is not None else round(computed_hours, 2)
        ),
        include_mileage=payload.include_mileage,
        explanation=payload.explanation or None,
    )


def build_break_request(user_id: str, payload: BreakRequestPayload) -> EmployeeRequest:
    if payload.end_time <= payload.start_time:
        raise _bad_request("Break end must be after break start.")
    today = date.today()
    computed_minutes = int(
        (datetime.combine(today, payload.end_time) - datetime.combine(today, payload.start_time))
        / timedelta(minutes=1)
    )
    return EmployeeRequest(
        user_id=user_id,
        request_type=RequestType.BREAK,
        break_type=payload.break_type,
        break_start_time=payload.start_time,
        break_end_time=payload.end_time,
        break_duration_minutes=(
            payload.duration_minutes if payload.duration_minutes is not None else computed_minutes
        ),
        explanation=payload.explanation or None,
    )


def describe_request(db_request: EmployeeRequest) -> str:
    """Short summary used in the admin notification body."""
    if db_request.request_type == RequestType.SHIFT:
        prefix = f"{db_request.job_name} - " if db_request.job_name else ""
        return (
            f"{prefix}{db_request.shift_start_date}, {db_request.shift_start_time:%H:%M} to "
            f"{db_request.shift_end_time:%H:%M} ({db_request.total_hours} hrs)"
        )
    if db_request.request_type == RequestType.TIME_OFF:
        if db_request.is_all_day:
            days = (db_request.time_off_end_date - db_request.time_off_start_date).days + 1
            return (
                f"{db_request.time_off_type}: {db_request.time_off_start_date} to "
                f"{db_request.time_off_end_date} ({days} day{'s' if days != 1 else ''})"
            )
        return (
            f"{db_request.time_off_type}: {db_request.time_off_start_date}, "
            f"{db_request.time_off_start_time:%H:%M} to {db_request.time_off_end_time:%H:%M} "
            f"({db_request.total_time_off_hours} hrs)"
        )
    return (
        f"{db_request.break_type}: {db_request.break_start_time:%H:%M} to "
        f"{db_request.break_end_time:%H:%M} ({db_request.break_duration_minutes} min)"
    )


def submit_request(
    db_request: EmployeeRequest,
    current_user: dict,
    session: Session,
    notifier: SmsNotifier,
    roster: TeamRosterCache,
) -> EmployeeRequestResponse:
    try:
        session.add(db_request)
        session.commit()
        session.refresh(db_request)
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"[REQUESTS] ❌ Failed to save {db_request.request_type.value} request: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="The database is temporarily unavailable. Please try again.",
        )
    logger.info(f"[REQUESTS] 📝 {db_request.request_type.value} request {db_request.id} submitted by {db_request.user_id}")

    # Best-effort: tell admins and owners a request is waiting
    try:
        shift_data = None
        if db_request.request_type == RequestType.SHIFT:
            shift_data = {
                "date": db_request.shift_start_date.isoformat(),
                "startTime": db_request.shift_start_time.strftime("%H:%M"),
                "endTime": db_request.shift_end_time.strftime("%H:%M"),
            }
        notifier.notify_new_employee_request(
            roster.admin_user_ids(),
            db_request.request_type,
            current_user.get("name") or "An employee",
            describe_request(db_request),
            shift_data,
        )
    except Exception as e:
        logger.error(f"[REQUESTS] ❌ Failed to notify admins of new request: {e}")

    return to_response(db_request)


# --- Requester Endpoints ---

@router.post("/time-off", response_model=EmployeeRequestResponse, status_code=status.HTTP_201_CREATED)
def submit_time_off_request(
    payload: TimeOffRequestPayload,
    session: Session = Depends(get_session),
    notifier: SmsNotifier = Depends(get_notifier),
    roster: TeamRosterCache = Depends(get_team_roster),
    current_user: dict = Depends(get_current_user),
):
    db_request = build_time_off_request(current_user["uid"], payload)
    return submit_request(db_request, current_user, session, notifier, roster)


@router.post("/shift", response_model=EmployeeRequestResponse, status_code=status.HTTP_201_CREATED)
def submit_shift_request(
    payload: ShiftRequestPayload,
    session: Session = Depends(get_session),
    notifier: SmsNotifier = Depends(get_notifier),
    roster: TeamRosterCache = Depends(get_team_roster),
    current_user: dict = Depends(get_current_user),
):
    db_request = build_shift_request(current_user["uid"], payload)
    return submit_request(db_request, current_user, session, notifier, roster)


@router.post("/break", response_model=EmployeeRequestResponse, status_code=status.HTTP_201_CREATED)
def submit_break_request(
    payload: BreakRequestPayload,
    session: Session = Depends(get_session),
    notifier: SmsNotifier = Depends(get_notifier),
    roster: TeamRosterCache = Depends(get_team_roster),
    current_user: dict = Depends(get_current_user),
):
    db_request = build_break_request(current_user["uid"], payload)
    return submit_request(db_request, current_user, session, notifier, roster)


@router.get("/mine", response_model=List[EmployeeRequestResponse])
def get_my_requests(
    session: Session = Depends(get_session),
    notifier: SmsNotifier = Depends(get_notifier),
    roster: TeamRosterCache = Depends(get_team_roster),
    current_user: dict = Depends(get_current_user),
):
    """Requests submitted by the authenticated user, newest first. Denied requests no longer exist."""
    service = RequestReviewService(session=session, notifier=notifier, roster=roster)
    return [to_response(r) for r in service.list_requests_for_user(current_user["uid"])]
