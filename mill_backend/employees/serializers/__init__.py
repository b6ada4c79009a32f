from .attendance import (
    AttendanceMarkSerializer,
    AttendanceSerializer,
    BulkAttendanceSerializer,
)
from .employee import EmployeeSerializer

__all__ = [
    "AttendanceMarkSerializer",
    "AttendanceSerializer",
    "BulkAttendanceSerializer",
    "EmployeeSerializer",
]
