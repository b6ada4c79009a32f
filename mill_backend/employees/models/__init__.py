from .attendance import Attendance
from .employee import Employee

__all__ = [
    "Attendance",
    "Employee",
]
