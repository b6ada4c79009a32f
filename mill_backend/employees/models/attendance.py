# employees/models/attendance.py

"""
ATTENDANCE

One row per employee per date.
working_hours / overtime are derived on save from check_in / check_out:
    working_hours = (check_out - check_in) in hours, rounded to 2 dp
    overtime      = hours above STANDARD_HOURS
Check-out must be later than check-in on the same date (no overnight shifts).
"""

import uuid
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

User = settings.AUTH_USER_MODEL

STANDARD_HOURS = Decimal("8")
TWOPLACES = Decimal("0.01")


def compute_working_hours(check_in, check_out) -> Decimal:
    if check_in is None or check_out is None:
        return Decimal("0.00")
    delta = datetime.combine(datetime.min, check_out) - datetime.combine(datetime.min, check_in)
    hours = Decimal(str(delta.total_seconds())) / Decimal("3600")
    return hours.quantize(TWOPLACES, rounding=ROUND_HALF_UP)


class Attendance(models.Model):
    class Status(models.TextChoices):
        PRESENT = "present", "Present"
        ABSENT = "absent", "Absent"
        LATE = "late", "Late"
        HALF_DAY = "half-day", "Half Day"
        LEAVE = "leave", "Leave"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    employee = models.ForeignKey(
        "employees.Employee",
        on_delete=models.CASCADE,
        related_name="attendance",
    )
    date = models.DateField()
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.ABSENT)

    check_in = models.TimeField(null=True, blank=True)
    check_out = models.TimeField(null=True, blank=True)

    working_hours = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0.00"))
    overtime = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0.00"))

    notes = models.TextField(blank=True, default="")

    marked_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="attendance_marked",
    )
    updated_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="attendance_updated",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-date", "employee__employee_id"]
        constraints = [
            models.UniqueConstraint(fields=["employee", "date"], name="uniq_attendance_employee_date"),
        ]
        indexes = [
            models.Index(fields=["date"], name="attendance_date_idx"),
            models.Index(fields=["status"], name="attendance_status_idx"),
        ]

    def clean(self):
        if self.check_out is not None and self.check_in is None:
            raise ValidationError({"check_in": "check_in is required when check_out is set"})
        if self.check_in is not None and self.check_out is not None and self.check_out <= self.check_in:
            raise ValidationError({"check_out": "check_out must be later than check_in"})

    def save(self, *args, **kwargs):
        self.clean()
        self.working_hours = compute_working_hours(self.check_in, self.check_out)
        self.overtime = max(self.working_hours - STANDARD_HOURS, Decimal("0.00"))

        update_fields = kwargs.get("update_fields")
        if update_fields is not None:
            kwargs["update_fields"] = list({*update_fields, "working_hours", "overtime"})

        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.employee_id} {self.date} {self.status}"
