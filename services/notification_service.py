import logging
from typing import Any, Dict, Iterable, Optional

import httpx

from core.config import (
    NOTIFICATION_FUNCTION_TOKEN,
    NOTIFICATION_FUNCTION_URL,
    NOTIFICATION_TIMEOUT_SECONDS,
)

logger = logging.getLogger(__name__)

REQUEST_TYPE_NAMES = {
    "shift": "shift request",
    "time_off": "time off request",
    "break": "break request",
}


class NotificationError(Exception):
    """Raised when the SMS dispatch function could not be reached or refused the message."""


def describe_request_type(request_type: str) -> str:
    request_type = getattr(request_type, "value", request_type)
    return REQUEST_TYPE_NAMES.get(request_type, "break request")


class SmsNotifier:
    """Client for the SMS notification function.

    Every send either succeeds or raises NotificationError. Callers decide
    whether a failure matters; the review workflow never lets one through.
    """

    def __init__(
        self,
        function_url: Optional[str] = NOTIFICATION_FUNCTION_URL,
        token: Optional[str] = NOTIFICATION_FUNCTION_TOKEN,
        timeout_seconds: float = NOTIFICATION_TIMEOUT_SECONDS,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.function_url = function_url
        self.token = token
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    def send(self, user_id: str, title: str, body: str, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        if not self.function_url:
            raise NotificationError("NOTIFICATION_FUNCTION_URL is not configured")

        payload = {"userId": user_id, "title": title, "body": body, "data": data or {}}
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        logger.info(f"[SMS] 📱 Sending notification to {user_id}: {title}")
        try:
            with httpx.Client(timeout=self.timeout_seconds, transport=self._transport) as client:
                response = client.post(self.function_url, json=payload, headers=headers)
                response.raise_for_status()
        except httpx.HTTPStatusError as http_error:
            raise NotificationError(
                f"Notification function returned {http_error.response.status_code}: {http_error.response.text}"
            ) from http_error
        except httpx.TimeoutException as timeout_error:
            raise NotificationError("Notification function timed out") from timeout_error
        except httpx.HTTPError as http_error:
            raise NotificationError(f"Notification function unreachable: {http_error}") from http_error

        try:
            result = response.json()
        except ValueError:
            result = {}
        logger.info(f"[SMS] ✅ Notification sent to {user_id}")
        return result

    def notify_request_approved(self, user_id: str, request_type: str, details: Optional[str] = None):
        request_type = getattr(request_type, "value", request_type)
        body = f"Your {describe_request_type(request_type)} has been approved!"
        if details:
            body += f" {details}"
        return self.send(
            user_id,
            title="✅ Request Approved",
            body=body,
            data={"type": "request_approved", "requestType": request_type},
        )

    def notify_request_denied(self, user_id: str, request_type: str, reason: Optional[str] = None):
        request_type = getattr(request_type, "value", request_type)
        body = f"Your {describe_request_type(request_type)} has been denied."
        if reason:
            body += f" Reason: {reason}"
        return self.send(
            user_id,
            title="❌ Request Denied",
            body=body,
            data={"type": "request_denied", "requestType": request_type},
        )

    def notify_new_employee_request(
        self,
        admin_user_ids: Iterable[str],
        request_type: str,
        employee_name: str,
        details: str,
        shift_data: Optional[Dict[str, str]] = None,
    ) -> Dict[str, int]:
        """Tell every admin/owner about a newly submitted request.

        Individual failures are logged and counted, never raised.
        """
        request_type = getattr(request_type, "value", request_type)
        recipients = [uid for uid in admin_user_ids if uid]
        if not recipients:
            logger.warning("[SMS] ⚠️ No linked admins/owners found to notify")
            return {"sent": 0, "total": 0}

        if request_type == "shift":
            title = "📝 Timesheet Edit Request"
        elif request_type == "time_off":
            title = f"🏖️ Time Off Request from {employee_name}"
        else:
            title = f"☕ Break Request from {employee_name}"

        sent = 0
        for admin_id in recipients:
            try:
                self.send(
                    admin_id,
                    title=title,
                    body=details,
                    data={
                        "type": "employee_request",
                        "requestType": request_type,
                        "employeeName": employee_name,
                        "shiftData": shift_data,
                    },
                )
                sent += 1
            except NotificationError as e:
                logger.error(f"[SMS] ❌ Failed to notify admin {admin_id}: {e}")

        logger.info(f"[SMS] ✅ Sent {sent}/{len(recipients)} new-request notifications")
        return {"sent": sent, "total": len(recipients)}


_notifier: Optional[SmsNotifier] = None


def get_notifier() -> SmsNotifier:
    global _notifier
    if _notifier is None:
        _notifier = SmsNotifier()
    return _notifier
