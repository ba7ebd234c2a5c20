import logging
from datetime import datetime, timezone
from typing import Callable, List, NamedTuple, Optional

from fastapi import HTTPException, status
from sqlalchemy import delete, update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, func, select

from core.config import BUSINESS_TIMEZONE
from models.employee_request import EmployeeRequest, RequestStatus, RequestType
from models.time_clock import TimeClockEntry, TimeClockStatus
from services.notification_service import SmsNotifier
from services.team_roster import RosterMember, TeamRosterCache
from utils.datetime_helpers import combine_local_date_time
from utils.request_filters import ALL, filter_requests

logger = logging.getLogger(__name__)


class TimeClockWriteError(HTTPException):
    """The approval committed but its time clock entry could not be written."""

    def __init__(self, request_id: str):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": (
                    "The request was approved, but the payroll time clock entry "
                    "could not be created. Add it manually or run reconciliation."
                ),
                "request_id": request_id,
                "request_status": RequestStatus.APPROVED.value,
            },
        )
        self.request_id = request_id


class ApprovalOutcome(NamedTuple):
    request: EmployeeRequest
    time_clock_entry: Optional[TimeClockEntry]


def build_time_clock_entry(
    request: EmployeeRequest,
    member: Optional[RosterMember],
    notes: Optional[str],
    tz: str,
) -> Optional[TimeClockEntry]:
    """Derive the payroll entry for an approved shift request.

    Returns None when the clock-in date or time is missing; no entry is
    created for such requests.
    """
    clock_in = combine_local_date_time(request.shift_start_date, request.shift_start_time, tz)
    if clock_in is None:
        return None
    clock_out = combine_local_date_time(request.shift_end_date, request.shift_end_time, tz)

    return TimeClockEntry(
        user_id=request.user_id,
        employee_name=(member.full_name if member and member.full_name else "Unknown"),
        employee_role=member.role if member else None,
        clock_in=clock_in,
        clock_out=clock_out,
        total_hours=request.total_hours or 0,
        break_time_minutes=request.break_duration_minutes or 0,
        project_name=request.job_name,
        status=TimeClockStatus.COMPLETED,
        notes=f"Approved from request: {notes or ''}",
        source_request_id=request.id,
    )


class RequestReviewService:
    """Reviewer decisions on employee requests.

    approve: conditional status update (the transaction of record), then a
    best-effort notification, then for shift requests a separate insert of
    the derived time clock entry. The two writes are not atomic; a failed
    insert raises TimeClockWriteError and leaves the request approved.

    deny: conditional hard delete of the request row, then a best-effort
    notification carrying the reason, then the commit. A reviewer who loses
    a race gets a 409 and notifies nobody.
    """

    def __init__(
        self,
        session: Session,
        notifier: SmsNotifier,
        roster: TeamRosterCache,
        tz: str = BUSINESS_TIMEZONE,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.session = session
        self.notifier = notifier
        self.roster = roster
        self.tz = tz
        self.now = now

    # --- Read path ---

    def list_requests(self, status_filter: str = ALL, type_filter: str = ALL) -> List[EmployeeRequest]:
        try:
            requests = self.session.exec(
                select(EmployeeRequest).order_by(EmployeeRequest.submitted_at.desc())
            ).all()
        except SQLAlchemyError as e:
            raise self._transient(e, "loading requests")
        return filter_requests(requests, status_filter, type_filter)

    def list_requests_for_user(self, user_id: str) -> List[EmployeeRequest]:
        try:
            return self.session.exec(
                select(EmployeeRequest)
                .where(EmployeeRequest.user_id == user_id)
                .order_by(EmployeeRequest.submitted_at.desc())
            ).all()
        except SQLAlchemyError as e:
            raise self._transient(e, "loading requests")

    def pending_count(self) -> int:
        try:
            return self.session.exec(
                select(func.count())
                .select_from(EmployeeRequest)
                .where(EmployeeRequest.status == RequestStatus.PENDING)
            ).one()
        except SQLAlchemyError as e:
            raise self._transient(e, "counting pending requests")

    def get_request(self, request_id: str) -> EmployeeRequest:
        try:
            db_request = self.session.get(EmployeeRequest, request_id)
        except SQLAlchemyError as e:
            raise self._transient(e, "loading request")
        if not db_request:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employee request not found.")
        return db_request

    # --- Transitions ---

    def approve(self, request_id: str, notes: Optional[str], reviewer_id: Optional[str]) -> ApprovalOutcome:
        db_request = self.get_request(request_id)
        self._ensure_pending(db_request, "approve")

        user_id = db_request.user_id
        request_type = db_request.request_type

        # 1) Primary write, guarded so only one concurrent decision wins
        statement = (
            update(EmployeeRequest)
            .where(EmployeeRequest.id == request_id)
            .where(EmployeeRequest.status == RequestStatus.PENDING)
            .values(
                status=RequestStatus.APPROVED,
                reviewed_at=self.now(),
                reviewed_by=reviewer_id,
                notes=notes or None,
            )
        )
        try:
            result = self.session.execute(statement)
            if result.rowcount == 0:
                self.session.rollback()
                raise self._conflict(request_id, "approve")
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise self._transient(e, f"approving request {request_id}")
        self.session.refresh(db_request)
        logger.info(f"[REQUESTS] ✅ Request {request_id} ({request_type.value}) approved by {reviewer_id}")

        # 2) Best-effort notification
        self._notify_safely(
            "approval", lambda: self.notifier.notify_request_approved(user_id, request_type)
        )

        # 3) Derived time clock entry for shift requests
        entry = None
        if request_type == RequestType.SHIFT:
            entry = self._create_time_clock_entry(db_request, notes)

        return ApprovalOutcome(request=db_request, time_clock_entry=entry)

    def deny(self, request_id: str, reason: Optional[str], reviewer_id: Optional[str]) -> None:
        # Validated before any remote call
        if not reason or not reason.strip():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="A reason is required to deny a request.",
            )
        reason = reason.strip()

        db_request = self.get_request(request_id)
        self._ensure_pending(db_request, "deny")

        user_id = db_request.user_id
        request_type = db_request.request_type

        # 1) Guarded hard delete, left uncommitted; losing the race sends nothing
        statement = (
            delete(EmployeeRequest)
            .where(EmployeeRequest.id == request_id)
            .where(EmployeeRequest.status == RequestStatus.PENDING)
        )
        try:
            result = self.session.execute(statement)
        except SQLAlchemyError as e:
            self.session.rollback()
            raise self._transient(e, f"denying request {request_id}")
        if result.rowcount == 0:
            self.session.rollback()
            raise self._conflict(request_id, "deny")

        # 2) Best-effort notification while the deleted row is still locked
        self._notify_safely(
            "denial", lambda: self.notifier.notify_request_denied(user_id, request_type, reason)
        )

        # 3) Make the deletion durable
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise self._transient(e, f"denying request {request_id}")

        logger.info(
            f"[REQUESTS] 🗑️ Request {request_id} ({request_type.value}) for {user_id} "
            f"denied and deleted by {reviewer_id}. Reason: {reason}"
        )

    # --- Reconciliation ---

    def reconcile_shift_approvals(self) -> List[TimeClockEntry]:
        """Create missing time clock entries for approved shift requests.

        Requests without a clock-in date and time are left alone, matching
        the approval path.
        """
        linked_ids = select(TimeClockEntry.source_request_id).where(
            TimeClockEntry.source_request_id.is_not(None)
        )
        try:
            orphaned = self.session.exec(
                select(EmployeeRequest)
                .where(EmployeeRequest.request_type == RequestType.SHIFT)
                .where(EmployeeRequest.status == RequestStatus.APPROVED)
                .where(EmployeeRequest.shift_start_date.is_not(None))
                .where(EmployeeRequest.shift_start_time.is_not(None))
                .where(EmployeeRequest.id.not_in(linked_ids))
            ).all()
        except SQLAlchemyError as e:
            raise self._transient(e, "finding unreconciled shift approvals")

        created = []
        for db_request in orphaned:
            request_id = db_request.id
            entry = build_time_clock_entry(
                db_request, self._lookup_member(db_request.user_id), db_request.notes, self.tz
            )
            try:
                self.session.add(entry)
                self.session.commit()
                self.session.refresh(entry)
            except SQLAlchemyError as e:
                self.session.rollback()
                logger.error(f"[REQUESTS] ❌ Reconciliation failed for request {request_id}: {e}")
                continue
            created.append(entry)

        logger.info(f"[REQUESTS] 🔁 Reconciled {len(created)}/{len(orphaned)} approved shift requests")
        return created

    # --- Helpers ---

    def _create_time_clock_entry(self, db_request: EmployeeRequest, notes: Optional[str]) -> Optional[TimeClockEntry]:
        member = self._lookup_member(db_request.user_id)
        entry = build_time_clock_entry(db_request, member, notes, self.tz)
        if entry is None:
            logger.info(
                f"[REQUESTS] ⏭️ Shift request {db_request.id} has no clock-in date/time, "
                "no time clock entry created"
            )
            return None

        request_id = db_request.id
        try:
            self.session.add(entry)
            self.session.commit()
            self.session.refresh(entry)
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"[REQUESTS] ❌ Approved request {request_id} but time clock insert failed: {e}")
            raise TimeClockWriteError(request_id) from e
        return entry

    def _lookup_member(self, user_id: str) -> Optional[RosterMember]:
        try:
            return self.roster.find_member(user_id)
        except Exception as e:
            logger.warning(f"[REQUESTS] ⚠️ Roster lookup failed for {user_id}: {e}")
            return None

    def _notify_safely(self, kind: str, send: Callable[[], object]) -> None:
        try:
            send()
        except Exception as e:
            logger.error(f"[REQUESTS] ❌ Failed to send {kind} notification: {e}")

    @staticmethod
    def _ensure_pending(db_request: EmployeeRequest, action: str) -> None:
        if db_request.status != RequestStatus.PENDING:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Request is already {db_request.status.value}, cannot {action}.",
            )

    @staticmethod
    def _conflict(request_id: str, action: str) -> HTTPException:
        logger.warning(f"[REQUESTS] ⚠️ Request {request_id} was decided concurrently, cannot {action}")
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Request is no longer pending, cannot {action}.",
        )

    @staticmethod
    def _transient(error: Exception, action: str) -> HTTPException:
        logger.error(f"[REQUESTS] ❌ Store error while {action}: {error}")
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="The database is temporarily unavailable. Please try again.",
        )
