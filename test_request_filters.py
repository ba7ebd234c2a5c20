import pytest

from models.employee_request import EmployeeRequest, RequestStatus, RequestType
from utils.request_filters import filter_requests


def _requests():
    return [
        EmployeeRequest(id="a", user_id="u1", request_type=RequestType.SHIFT, status=RequestStatus.PENDING),
        EmployeeRequest(id="b", user_id="u1", request_type=RequestType.TIME_OFF, status=RequestStatus.APPROVED),
        EmployeeRequest(id="c", user_id="u2", request_type=RequestType.BREAK, status=RequestStatus.PENDING),
        EmployeeRequest(id="d", user_id="u2", request_type=RequestType.SHIFT, status=RequestStatus.APPROVED),
    ]


@pytest.mark.parametrize(
    "status_filter,type_filter,expected",
    [
        ("all", "all", ["a", "b", "c", "d"]),
        ("pending", "all", ["a", "c"]),
        ("approved", "shift", ["d"]),
        ("all", "time_off", ["b"]),
        ("denied", "all", []),
        (RequestStatus.PENDING, RequestType.BREAK, ["c"]),
    ],
)
def test_filter_requests(status_filter, type_filter, expected):
    result = filter_requests(_requests(), status_filter=status_filter, type_filter=type_filter)
    assert [r.id for r in result] == expected


def test_filter_requests_defaults_match_everything_in_order():
    reqs = list(reversed(_requests()))
    assert [r.id for r in filter_requests(reqs)] == ["d", "c", "b", "a"]


def test_filter_does_not_mutate_input():
    reqs = _requests()
    filter_requests(reqs, status_filter="pending")
    assert len(reqs) == 4
