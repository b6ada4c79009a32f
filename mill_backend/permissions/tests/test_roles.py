# permissions/tests/test_roles.py

from io import StringIO

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase

from permissions.roles import (
    ALL_CAPABILITIES,
    CAP_INVENTORY_ADJUST,
    CAP_INVENTORY_VIEW,
    CAP_PRODUCTION_MANAGE,
    CAP_PURCHASES_MANAGE,
    CAP_REPORTS_VIEW,
    CAP_SALES_CANCEL,
    CAP_SALES_SELL,
    CAP_STAFF_MANAGE,
    ROLE_CAPABILITIES,
    effective_capabilities_for,
)

User = get_user_model()


class RoleCapabilityTests(TestCase):
    """
    GUARANTEES:
    - every role can at least view inventory
    - admin and general manager hold every capability
    - operational roles only get the capabilities of their desk
    """

    def _caps(self, role, **extra):
        user = User.objects.create_user(email=f"{role}@mill.test", password="pass", role=role, **extra)
        return effective_capabilities_for(None, user)

    def test_every_role_views_inventory(self):
        for role, caps in ROLE_CAPABILITIES.items():
            self.assertIn(CAP_INVENTORY_VIEW, caps, role)

    def test_managers_hold_everything(self):
        self.assertEqual(self._caps("admin"), ALL_CAPABILITIES)
        self.assertEqual(self._caps("general_manager"), ALL_CAPABILITIES)

    def test_desk_roles_are_scoped(self):
        warehouse = self._caps("warehouse_manager")
        self.assertIn(CAP_INVENTORY_ADJUST, warehouse)
        self.assertIn(CAP_PURCHASES_MANAGE, warehouse)
        self.assertNotIn(CAP_SALES_SELL, warehouse)

        production = self._caps("production_manager")
        self.assertIn(CAP_PRODUCTION_MANAGE, production)
        self.assertIn(CAP_STAFF_MANAGE, production)
        self.assertNotIn(CAP_PURCHASES_MANAGE, production)

        sales = self._caps("sales_manager")
        self.assertIn(CAP_SALES_CANCEL, sales)
        self.assertIn(CAP_REPORTS_VIEW, sales)

        cashier = self._caps("cashier")
        self.assertIn(CAP_SALES_SELL, cashier)
        self.assertNotIn(CAP_SALES_CANCEL, cashier)

        self.assertEqual(self._caps("employee"), {CAP_INVENTORY_VIEW})

    def test_superuser_gets_everything_regardless_of_role(self):
        self.assertEqual(self._caps("employee", is_superuser=True), ALL_CAPABILITIES)


class SeedUsersCommandTests(TestCase):
    def test_seed_is_idempotent(self):
        call_command("seed_users", stdout=StringIO())
        call_command("seed_users", stdout=StringIO())

        self.assertEqual(User.objects.count(), len(ROLE_CAPABILITIES))
        admin = User.objects.get(email="admin@example.com")
        self.assertTrue(admin.is_superuser)
        self.assertTrue(admin.check_password("Pass1234!"))

    def test_short_password_is_rejected(self):
        with self.assertRaises(CommandError):
            call_command("seed_users", "--password", "abc", stdout=StringIO())
