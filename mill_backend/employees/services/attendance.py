# employees/services/attendance.py

"""
ATTENDANCE SERVICES

- mark_attendance(): upsert one (employee, date) row.
- bulk_mark_attendance(): upsert many rows for a single date. Each record is
  applied independently; bad records are reported, good ones are kept.
- monthly_summary(): per-status day counts and hour totals for one employee.
"""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass, field
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Count, Sum

from employees.models import Attendance, Employee

logger = logging.getLogger(__name__)


class AttendanceError(ValueError):
    pass


@dataclass
class BulkMarkResult:
    created: int = 0
    updated: int = 0
    errors: list = field(default_factory=list)


def _actor(user):
    return user if getattr(user, "is_authenticated", False) else None


def mark_attendance(
    *,
    employee,
    date,
    status: str,
    check_in=None,
    check_out=None,
    notes: str = "",
    user=None,
) -> tuple[Attendance, bool]:
    if not isinstance(employee, Employee):
        employee = Employee.objects.filter(id=employee).first()
        if employee is None:
            raise AttendanceError("Employee not found")

    if employee.status != Employee.Status.ACTIVE:
        raise AttendanceError(f"Employee {employee.employee_id} is not active")

    if status not in Attendance.Status.values:
        raise AttendanceError(f"Unsupported attendance status: {status}")

    with transaction.atomic():
        record = (
            Attendance.objects.select_for_update()
            .filter(employee=employee, date=date)
            .first()
        )
        created = record is None
        if created:
            record = Attendance(employee=employee, date=date, marked_by=_actor(user))
        else:
            record.updated_by = _actor(user)

        record.status = status
        record.check_in = check_in
        record.check_out = check_out
        record.notes = (notes or "").strip()

        try:
            record.save()
        except ValidationError as exc:
            raise AttendanceError("; ".join(exc.messages)) from exc

    return record, created


def bulk_mark_attendance(*, date, records, user=None) -> BulkMarkResult:
    result = BulkMarkResult()

    for rec in records:
        employee_id = rec.get("employee_id")
        try:
            _, created = mark_attendance(
                employee=employee_id,
                date=date,
                status=rec.get("status") or Attendance.Status.PRESENT,
                check_in=rec.get("check_in"),
                check_out=rec.get("check_out"),
                notes=rec.get("notes", ""),
                user=user,
            )
        except AttendanceError as exc:
            result.errors.append({"employee_id": str(employee_id), "error": str(exc)})
            continue

        if created:
            result.created += 1
        else:
            result.updated += 1

    logger.info(
        "attendance bulk marked",
        extra={
            "date": str(date),
            "created": result.created,
            "updated": result.updated,
            "errors": len(result.errors),
        },
    )
    return result


def monthly_summary(*, employee: Employee, year: int, month: int) -> dict:
    if not 1 <= month <= 12:
        raise AttendanceError("month must be between 1 and 12")

    last_day = calendar.monthrange(year, month)[1]
    qs = Attendance.objects.filter(
        employee=employee,
        date__year=year,
        date__month=month,
    )

    counts = {s: 0 for s in Attendance.Status.values}
    for row in qs.values("status").annotate(n=Count("id")):
        counts[row["status"]] = row["n"]

    totals = qs.aggregate(hours=Sum("working_hours"), overtime=Sum("overtime"))

    return {
        "employee_id": employee.employee_id,
        "year": year,
        "month": month,
        "days_in_month": last_day,
        "days_marked": sum(counts.values()),
        "by_status": counts,
        "working_hours": totals["hours"] or Decimal("0.00"),
        "overtime": totals["overtime"] or Decimal("0.00"),
    }
