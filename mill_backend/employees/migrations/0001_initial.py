import uuid
from decimal import Decimal

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("warehouses", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Employee",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("employee_id", models.CharField(blank=True, max_length=20, unique=True)),
                ("first_name", models.CharField(max_length=100)),
                ("last_name", models.CharField(max_length=100)),
                ("email", models.EmailField(max_length=254, unique=True)),
                ("phone", models.CharField(max_length=50)),
                ("address", models.TextField(blank=True, default="")),
                (
                    "department",
                    models.CharField(
                        choices=[
                            ("Production", "Production"),
                            ("Warehouse", "Warehouse"),
                            ("Sales", "Sales"),
                            ("Finance", "Finance"),
                            ("HR", "HR"),
                            ("IT", "IT"),
                            ("Maintenance", "Maintenance"),
                        ],
                        max_length=20,
                    ),
                ),
                ("position", models.CharField(max_length=100)),
                ("hire_date", models.DateField(default=django.utils.timezone.localdate)),
                ("salary", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                (
                    "status",
                    models.CharField(
                        choices=[("active", "Active"), ("inactive", "Inactive"), ("terminated", "Terminated")],
                        default="active",
                        max_length=20,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "warehouse",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="employees",
                        to="warehouses.warehouse",
                    ),
                ),
            ],
            options={
                "ordering": ["employee_id"],
                "indexes": [
                    models.Index(fields=["department"], name="employee_department_idx"),
                    models.Index(fields=["status"], name="employee_status_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("salary__gte", Decimal("0.00"))),
                        name="employee_salary_nonnegative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Attendance",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("date", models.DateField()),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("present", "Present"),
                            ("absent", "Absent"),
                            ("late", "Late"),
                            ("half-day", "Half Day"),
                            ("leave", "Leave"),
                        ],
                        default="absent",
                        max_length=10,
                    ),
                ),
                ("check_in", models.TimeField(blank=True, null=True)),
                ("check_out", models.TimeField(blank=True, null=True)),
                ("working_hours", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=5)),
                ("overtime", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=5)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "employee",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="attendance",
                        to="employees.employee",
                    ),
                ),
                (
                    "marked_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="attendance_marked",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "updated_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="attendance_updated",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-date", "employee__employee_id"],
                "indexes": [
                    models.Index(fields=["date"], name="attendance_date_idx"),
                    models.Index(fields=["status"], name="attendance_status_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("employee", "date"), name="uniq_attendance_employee_date"),
                ],
            },
        ),
    ]
