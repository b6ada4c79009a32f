from .attendance import AttendanceViewSet
from .employee import EmployeeViewSet

__all__ = [
    "AttendanceViewSet",
    "EmployeeViewSet",
]
