from .employee_request import EmployeeRequest, RequestStatus, RequestType
from .team_member import Profile, TeamMember, TeamMemberStatus
from .time_clock import TimeClockEntry, TimeClockStatus
