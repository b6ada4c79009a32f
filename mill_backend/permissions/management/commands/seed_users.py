# permissions/management/commands/seed_users.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from permissions.roles import (
    ROLE_ADMIN,
    ROLE_CASHIER,
    ROLE_EMPLOYEE,
    ROLE_GENERAL_MANAGER,
    ROLE_PRODUCTION_MANAGER,
    ROLE_SALES_MANAGER,
    ROLE_WAREHOUSE_MANAGER,
)


@dataclass(frozen=True)
class SeedUserSpec:
    label: str
    role: str
    username: str
    email: str


SEED_USERS = [
    SeedUserSpec("Admin", ROLE_ADMIN, "admin", "admin@example.com"),
    SeedUserSpec("General Manager", ROLE_GENERAL_MANAGER, "gm", "gm@example.com"),
    SeedUserSpec("Warehouse Manager", ROLE_WAREHOUSE_MANAGER, "warehouse", "warehouse@example.com"),
    SeedUserSpec("Production Manager", ROLE_PRODUCTION_MANAGER, "production", "production@example.com"),
    SeedUserSpec("Sales Manager", ROLE_SALES_MANAGER, "sales", "sales@example.com"),
    SeedUserSpec("Cashier", ROLE_CASHIER, "cashier", "cashier@example.com"),
    SeedUserSpec("Employee", ROLE_EMPLOYEE, "employee", "employee@example.com"),
]


def _upsert_user(
    *,
    User,
    spec: SeedUserSpec,
    password: str,
    is_superuser: bool = False,
) -> tuple[Any, bool]:
    """
    Idempotent user seed:
    - create if missing
    - update role/staff flags if exists
    """
    user = User.objects.filter(email=spec.email).first()
    if user is None:
        user = User.objects.create_user(
            email=spec.email,
            username=spec.username,
            password=password,
            role=spec.role,
            is_staff=True,
            is_superuser=is_superuser,
        )
        return user, True

    dirty = False
    if user.role != spec.role:
        user.role = spec.role
        dirty = True
    if user.is_superuser != is_superuser:
        user.is_superuser = is_superuser
        dirty = True
    if not user.is_staff:
        user.is_staff = True
        dirty = True

    if dirty:
        user.save(update_fields=["role", "is_superuser", "is_staff"])

    return user, False


class Command(BaseCommand):
    help = "Seed one staff user per mill role (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--password",
            type=str,
            default="Pass1234!",
            help="Password for seeded users (default: Pass1234!)",
        )
        parser.add_argument(
            "--force-password",
            action="store_true",
            help="If set, resets password for existing seeded users too.",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        password = options.get("password") or ""
        force_password = bool(options.get("force_password"))

        if not password or len(password) < 6:
            raise CommandError("--password must be provided and at least 6 characters.")

        User = get_user_model()

        self.stdout.write("Seeding mill staff users ...")

        created_count = 0
        updated_count = 0

        for spec in SEED_USERS:
            user, created = _upsert_user(
                User=User,
                spec=spec,
                password=password,
                is_superuser=spec.role == ROLE_ADMIN,
            )

            if force_password and not created:
                user.set_password(password)
                user.save(update_fields=["password"])
                updated_count += 1

            if created:
                created_count += 1
                self.stdout.write(f"created: {spec.label} ({spec.role})")
            else:
                self.stdout.write(f"exists:  {spec.label} ({spec.role})")

        self.stdout.write("\n--- Summary ---")
        self.stdout.write(self.style.SUCCESS(f"Created users: {created_count}"))
        if force_password:
            self.stdout.write(f"Passwords reset: {updated_count}")
