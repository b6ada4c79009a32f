# employees/models/employee.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone


class Employee(models.Model):
    """
    Mill staff record (HR side; separate from login accounts).

    Guarantees:
    - employee_id is unique and auto-assigned (EMP0001, EMP0002, ...)
    - email is unique
    """

    class Department(models.TextChoices):
        PRODUCTION = "Production", "Production"
        WAREHOUSE = "Warehouse", "Warehouse"
        SALES = "Sales", "Sales"
        FINANCE = "Finance", "Finance"
        HR = "HR", "HR"
        IT = "IT", "IT"
        MAINTENANCE = "Maintenance", "Maintenance"

    class Status(models.TextChoices):
        ACTIVE = "active", "Active"
        INACTIVE = "inactive", "Inactive"
        TERMINATED = "terminated", "Terminated"

    NUMBER_PREFIX = "EMP"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    employee_id = models.CharField(max_length=20, unique=True, blank=True)
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    email = models.EmailField(unique=True)
    phone = models.CharField(max_length=50)
    address = models.TextField(blank=True, default="")

    department = models.CharField(max_length=20, choices=Department.choices)
    position = models.CharField(max_length=100)
    hire_date = models.DateField(default=timezone.localdate)
    salary = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.ACTIVE)

    warehouse = models.ForeignKey(
        "warehouses.Warehouse",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="employees",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["employee_id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(salary__gte=Decimal("0.00")),
                name="employee_salary_nonnegative",
            ),
        ]
        indexes = [
            models.Index(fields=["department"], name="employee_department_idx"),
            models.Index(fields=["status"], name="employee_status_idx"),
        ]

    @classmethod
    def next_employee_id(cls) -> str:
        last = (
            cls.objects.filter(employee_id__startswith=cls.NUMBER_PREFIX)
            .order_by("-employee_id")
            .values_list("employee_id", flat=True)
            .first()
        )
        seq = 0
        if last:
            try:
                seq = int(last[len(cls.NUMBER_PREFIX):])
            except ValueError:
                seq = cls.objects.count()
        return f"{cls.NUMBER_PREFIX}{seq + 1:04d}"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def clean(self):
        if not (self.first_name or "").strip():
            raise ValidationError({"first_name": "first_name is required"})

    def save(self, *args, **kwargs):
        self.email = (self.email or "").strip().lower()
        if not (self.employee_id or "").strip():
            self.employee_id = self.next_employee_id()
        self.full_clean()
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.full_name} ({self.employee_id})"
