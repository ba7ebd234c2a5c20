#!/usr/bin/env python3
"""
Tests for the SMS notification client, using an in-process httpx transport
instead of the real Cloud Function.
"""

import json

import httpx
import pytest

from models.employee_request import RequestType
from services.notification_service import NotificationError, SmsNotifier, describe_request_type

FUNCTION_URL = "https://sms.example.com/sendSmsNotification"


def recording_transport(calls, status_code=200, body=None):
    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(status_code, json=body if body is not None else {"success": True})

    return httpx.MockTransport(handler)


def test_send_posts_payload_with_bearer_token():
    calls = []
    notifier = SmsNotifier(function_url=FUNCTION_URL, token="secret", transport=recording_transport(calls))

    result = notifier.send("u1", title="Hello", body="World", data={"type": "test"})

    assert result == {"success": True}
    assert len(calls) == 1
    request = calls[0]
    assert str(request.url) == FUNCTION_URL
    assert request.headers["Authorization"] == "Bearer secret"
    assert json.loads(request.content) == {
        "userId": "u1",
        "title": "Hello",
        "body": "World",
        "data": {"type": "test"},
    }


def test_send_without_token_omits_authorization():
    calls = []
    notifier = SmsNotifier(function_url=FUNCTION_URL, token=None, transport=recording_transport(calls))

    notifier.send("u1", title="t", body="b")

    assert "Authorization" not in calls[0].headers
    assert json.loads(calls[0].content)["data"] == {}


def test_error_status_raises_notification_error():
    notifier = SmsNotifier(function_url=FUNCTION_URL, transport=recording_transport([], status_code=500))

    with pytest.raises(NotificationError, match="500"):
        notifier.send("u1", title="t", body="b")


def test_connection_failure_raises_notification_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    notifier = SmsNotifier(function_url=FUNCTION_URL, transport=httpx.MockTransport(handler))

    with pytest.raises(NotificationError, match="unreachable"):
        notifier.send("u1", title="t", body="b")


def test_timeout_raises_notification_error():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    notifier = SmsNotifier(function_url=FUNCTION_URL, transport=httpx.MockTransport(handler))

    with pytest.raises(NotificationError, match="timed out"):
        notifier.send("u1", title="t", body="b")


def test_missing_function_url_raises():
    notifier = SmsNotifier(function_url=None)

    with pytest.raises(NotificationError):
        notifier.send("u1", title="t", body="b")


def test_approved_and_denied_messages():
    calls = []
    notifier = SmsNotifier(function_url=FUNCTION_URL, transport=recording_transport(calls))

    notifier.notify_request_approved("u1", RequestType.SHIFT)
    notifier.notify_request_denied("u1", RequestType.TIME_OFF, reason="Short staffed")

    approved = json.loads(calls[0].content)
    denied = json.loads(calls[1].content)
    assert approved["title"] == "✅ Request Approved"
    assert approved["body"] == "Your shift request has been approved!"
    assert approved["data"] == {"type": "request_approved", "requestType": "shift"}
    assert denied["title"] == "❌ Request Denied"
    assert denied["body"] == "Your time off request has been denied. Reason: Short staffed"


def test_new_request_notification_counts_partial_failures():
    calls = []

    def handler(request):
        calls.append(request)
        if json.loads(request.content)["userId"] == "owner-1":
            return httpx.Response(502)
        return httpx.Response(200, json={"success": True})

    notifier = SmsNotifier(function_url=FUNCTION_URL, transport=httpx.MockTransport(handler))

    result = notifier.notify_new_employee_request(
        ["admin-1", "owner-1", None], RequestType.BREAK, "Dana Ruiz", "Lunch break"
    )

    assert result == {"sent": 1, "total": 2}
    assert len(calls) == 2
    first = json.loads(calls[0].content)
    assert first["title"] == "☕ Break Request from Dana Ruiz"
    assert first["body"] == "Lunch break"
    assert first["data"]["employeeName"] == "Dana Ruiz"


def test_new_request_notification_with_no_admins_sends_nothing():
    calls = []
    notifier = SmsNotifier(function_url=FUNCTION_URL, transport=recording_transport(calls))

    assert notifier.notify_new_employee_request([], "shift", "Dana Ruiz", "details") == {"sent": 0, "total": 0}
    assert calls == []


def test_describe_request_type():
    assert describe_request_type(RequestType.TIME_OFF) == "time off request"
    assert describe_request_type("shift") == "shift request"
    assert describe_request_type("break") == "break request"
