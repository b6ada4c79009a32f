"""
PATH: users/models/user.py

CUSTOM USER MODEL

Identity rules:
- email is the canonical login identity (SimpleJWT uses USERNAME_FIELD).
- username is optional; the manager derives one from the email local-part.
- role is the staff job role; permissions/roles.py maps roles to capabilities.

Audit:
- Ledger rows (StockMovement.created_by, Attendance.marked_by, ...) point here.
"""

from __future__ import annotations

import uuid

from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.core.exceptions import ValidationError
from django.db import models


# ---------------- USER MANAGER ----------------
class UserManager(BaseUserManager):
    def _unique_username(self, base: str) -> str:
        base = (base or "user").strip().lower()
        candidate = base
        i = 1
        while self.model.objects.filter(username__iexact=candidate).exists():
            i += 1
            candidate = f"{base}{i}"
        return candidate

    def create_user(self, email=None, password=None, **extra_fields):
        """
        Supports:
        - create_user(email="a@b.com", password="x", username="ali")
        - create_user(username="storekeeper", password="x")   (tests)
        - create_user(email="a@b.com", password="x")

        Rules:
        - Must provide at least one of: email or username.
        - If email missing but username present: email becomes <username>@local.test
        - If username missing: derived from the email local-part (uniqueness ensured)
        """
        username = (extra_fields.pop("username", "") or "").strip()
        email = (email or extra_fields.pop("email", "") or "").strip()

        if not email and not username:
            raise ValueError("Provide at least email or username")

        if not email:
            email = f"{username.lower()}@local.test"

        email = self.normalize_email(email)

        if not username:
            username = self._unique_username(email.split("@")[0])

        extra_fields.setdefault("is_active", True)

        user = self.model(email=email, username=username, **extra_fields)

        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()

        user.full_clean(exclude=["password"])
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError("Superuser must have an email")
        if not password:
            raise ValueError("Superuser must have a password")

        extra_fields.setdefault("role", User.ROLE_ADMIN)
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True")

        return self.create_user(email=email, password=password, **extra_fields)


# ---------------- USER MODEL ----------------
class User(AbstractBaseUser, PermissionsMixin):
    ROLE_ADMIN = "admin"
    ROLE_GENERAL_MANAGER = "general_manager"
    ROLE_WAREHOUSE_MANAGER = "warehouse_manager"
    ROLE_PRODUCTION_MANAGER = "production_manager"
    ROLE_SALES_MANAGER = "sales_manager"
    ROLE_CASHIER = "cashier"
    ROLE_EMPLOYEE = "employee"

    ROLE_CHOICES = [
        (ROLE_ADMIN, "Admin"),
        (ROLE_GENERAL_MANAGER, "General Manager"),
        (ROLE_WAREHOUSE_MANAGER, "Warehouse Manager"),
        (ROLE_PRODUCTION_MANAGER, "Production Manager"),
        (ROLE_SALES_MANAGER, "Sales Manager"),
        (ROLE_CASHIER, "Cashier"),
        (ROLE_EMPLOYEE, "Employee"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    username = models.CharField(max_length=150, unique=True, null=True, blank=True)
    email = models.EmailField(unique=True)

    first_name = models.CharField(max_length=100, blank=True)
    last_name = models.CharField(max_length=100, blank=True)

    role = models.CharField(max_length=32, choices=ROLE_CHOICES, default=ROLE_EMPLOYEE)

    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserManager()

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    class Meta:
        ordering = ["-created_at"]

    def clean(self):
        if self.email:
            self.email = self.__class__.objects.normalize_email(self.email).strip()
        if self.username is not None:
            self.username = self.username.strip() or None

        if not self.email:
            raise ValidationError({"email": "email is required"})

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __str__(self):
        ident = self.username or self.email
        return f"{ident} ({self.role})"
