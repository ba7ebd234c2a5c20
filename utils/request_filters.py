from typing import Iterable, List

from models.employee_request import EmployeeRequest, RequestStatus

ALL = "all"

STATUS_FILTERS = [ALL] + [s.value for s in RequestStatus]
TYPE_FILTERS = [ALL, "time_off", "shift", "break"]


def filter_requests(
    requests: Iterable[EmployeeRequest],
    status_filter: str = ALL,
    type_filter: str = ALL,
) -> List[EmployeeRequest]:
    """Return the requests matching both filters, keeping input order.

    "all" matches everything on that axis.
    """
    status_filter = getattr(status_filter, "value", status_filter)
    type_filter = getattr(type_filter, "value", type_filter)

    matched = []
    for req in requests:
        if status_filter != ALL and req.status != status_filter:
            continue
        if type_filter != ALL and req.request_type != type_filter:
            continue
        matched.append(req)
    return matched
