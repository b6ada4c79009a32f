# employees/tests/test_employees.py

from datetime import date, time
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from employees.models import Attendance, Employee
from employees.services.attendance import (
    AttendanceError,
    bulk_mark_attendance,
    mark_attendance,
    monthly_summary,
)

User = get_user_model()


def _employee(**overrides):
    data = {
        "first_name": "Ali",
        "last_name": "Raza",
        "email": "ali@example.com",
        "phone": "0300-0000000",
        "department": Employee.Department.PRODUCTION,
        "position": "Miller",
        "salary": Decimal("45000.00"),
    }
    data.update(overrides)
    return Employee.objects.create(**data)


class EmployeeModelTests(TestCase):
    def test_employee_ids_are_sequential(self):
        first = _employee()
        second = _employee(email="bilal@example.com", first_name="Bilal")

        self.assertEqual(first.employee_id, "EMP0001")
        self.assertEqual(second.employee_id, "EMP0002")
        self.assertEqual(first.full_name, "Ali Raza")


class AttendanceTests(TestCase):
    """
    GUARANTEES:
    - working_hours derived from check-in/out, rounded to 2 dp
    - overtime only above 8 hours
    - one row per employee per date (marking again updates)
    """

    def setUp(self):
        self.employee = _employee()
        self.day = date(2026, 3, 2)

    def test_working_hours_and_overtime(self):
        record, created = mark_attendance(
            employee=self.employee,
            date=self.day,
            status=Attendance.Status.PRESENT,
            check_in=time(8, 0),
            check_out=time(18, 20),
        )

        self.assertTrue(created)
        self.assertEqual(record.working_hours, Decimal("10.33"))
        self.assertEqual(record.overtime, Decimal("2.33"))

    def test_no_overtime_for_short_day(self):
        record, _ = mark_attendance(
            employee=self.employee,
            date=self.day,
            status=Attendance.Status.HALF_DAY,
            check_in=time(9, 0),
            check_out=time(13, 0),
        )

        self.assertEqual(record.working_hours, Decimal("4.00"))
        self.assertEqual(record.overtime, Decimal("0.00"))

    def test_check_out_before_check_in_is_rejected(self):
        with self.assertRaises(AttendanceError):
            mark_attendance(
                employee=self.employee,
                date=self.day,
                status=Attendance.Status.PRESENT,
                check_in=time(17, 0),
                check_out=time(9, 0),
            )

    def test_marking_twice_updates_same_row(self):
        mark_attendance(employee=self.employee, date=self.day, status=Attendance.Status.ABSENT)
        record, created = mark_attendance(employee=self.employee, date=self.day, status=Attendance.Status.LATE)

        self.assertFalse(created)
        self.assertEqual(record.status, Attendance.Status.LATE)
        self.assertEqual(Attendance.objects.filter(employee=self.employee, date=self.day).count(), 1)

    def test_bulk_mark_upserts_and_reports_errors(self):
        other = _employee(email="bilal@example.com", first_name="Bilal")
        inactive = _employee(email="old@example.com", status=Employee.Status.TERMINATED)
        mark_attendance(employee=self.employee, date=self.day, status=Attendance.Status.ABSENT)

        result = bulk_mark_attendance(
            date=self.day,
            records=[
                {"employee_id": self.employee.pk, "status": "present", "check_in": time(9, 0), "check_out": time(17, 0)},
                {"employee_id": other.pk, "status": "leave"},
                {"employee_id": inactive.pk, "status": "present"},
            ],
        )

        self.assertEqual(result.created, 1)
        self.assertEqual(result.updated, 1)
        self.assertEqual(len(result.errors), 1)
        self.assertEqual(Attendance.objects.get(employee=self.employee, date=self.day).working_hours, Decimal("8.00"))

    def test_monthly_summary(self):
        mark_attendance(
            employee=self.employee,
            date=date(2026, 3, 2),
            status="present",
            check_in=time(8, 0),
            check_out=time(17, 0),
        )
        mark_attendance(employee=self.employee, date=date(2026, 3, 3), status="absent")
        mark_attendance(employee=self.employee, date=date(2026, 4, 1), status="present")

        summary = monthly_summary(employee=self.employee, year=2026, month=3)

        self.assertEqual(summary["days_marked"], 2)
        self.assertEqual(summary["by_status"]["present"], 1)
        self.assertEqual(summary["by_status"]["absent"], 1)
        self.assertEqual(summary["working_hours"], Decimal("9.00"))
        self.assertEqual(summary["overtime"], Decimal("1.00"))
        self.assertEqual(summary["days_in_month"], 31)


class EmployeeApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.manager = User.objects.create_user(
            email="pm@example.com",
            password="pass",
            role="production_manager",
        )
        self.viewer = User.objects.create_user(
            email="wm@example.com",
            password="pass",
            role="warehouse_manager",
        )
        self.cashier = User.objects.create_user(
            email="cashier@example.com",
            password="pass",
            role="cashier",
        )

    def _create_employee(self):
        return self.client.post(
            "/api/employees/",
            {
                "first_name": "Sana",
                "last_name": "Iqbal",
                "email": "sana@example.com",
                "phone": "0301-1111111",
                "department": "Warehouse",
                "position": "Store Keeper",
                "salary": "38000.00",
            },
            format="json",
        )

    def test_manager_creates_employee_and_bulk_marks(self):
        self.client.force_authenticate(self.manager)

        res = self._create_employee()
        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(res.data["employee_id"], "EMP0001")

        res = self.client.post(
            "/api/employees/attendance/bulk-mark/",
            {
                "date": "2026-03-02",
                "records": [
                    {"employee_id": res.data["id"], "status": "present", "check_in": "09:00", "check_out": "17:30"},
                ],
            },
            format="json",
        )
        self.assertEqual(res.status_code, 200, res.data)
        self.assertEqual(res.data["created"], 1)

        res = self.client.get("/api/employees/attendance/")
        self.assertEqual(res.status_code, 200)

    def test_viewer_can_read_but_not_write(self):
        self.client.force_authenticate(self.viewer)

        self.assertEqual(self.client.get("/api/employees/").status_code, 200)
        self.assertEqual(self._create_employee().status_code, 403)

    def test_cashier_has_no_staff_access(self):
        self.client.force_authenticate(self.cashier)

        self.assertEqual(self.client.get("/api/employees/").status_code, 403)
