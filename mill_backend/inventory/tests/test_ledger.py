# inventory/tests/test_ledger.py

from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.test import TestCase
from django.utils import timezone

from inventory.models import InventoryItem, StockMovement
from inventory.services.exceptions import InsufficientStockError, MovementReferenceError
from inventory.services.ledger import (
    audit_consistency,
    get_or_create_inventory_item,
    recalculate_all,
    record_movement,
)
from products.models import Product
from warehouses.models import Warehouse

User = get_user_model()


class StockLedgerTests(TestCase):
    """
    Stock ledger tests.

    GUARANTEES:
    - current_stock always equals the signed sum of movements
    - status follows (current_stock, minimum_stock)
    - outgoing movements never drive stock below zero
    - stale instances never clobber a balance
    """

    def setUp(self):
        self.user = User.objects.create_user(
            email="keeper@example.com",
            password="pass",
            role="warehouse_manager",
        )
        self.warehouse = Warehouse.objects.create(name="Main Godown", location="Mill yard")
        self.wheat = Product.objects.create(
            name="Wheat",
            category=Product.Category.RAW_MATERIALS,
            unit=Product.Unit.KG,
            price=Decimal("45.00"),
            minimum_stock=Decimal("100"),
        )
        self.item, _ = get_or_create_inventory_item(warehouse=self.warehouse, product=self.wheat)

    def _move(self, movement_type, qty, item=None):
        return record_movement(
            inventory_item=item or self.item,
            movement_type=movement_type,
            quantity=qty,
            reason="test",
            user=self.user,
        )

    def _stock(self, item=None):
        return InventoryItem.objects.get(pk=(item or self.item).pk).current_stock

    # --------------------------------------------------
    # Balance = signed sum
    # --------------------------------------------------

    def test_new_item_starts_empty_and_out_of_stock(self):
        self.assertEqual(self.item.current_stock, Decimal("0"))
        self.assertEqual(self.item.status, InventoryItem.Status.OUT_OF_STOCK)

    def test_sequence_of_movements_equals_signed_sum(self):
        self._move("in", "500")
        self._move("out", "120.5")
        self._move("in", "30.25")
        self._move("out", "9.75")

        self.assertEqual(self._stock(), Decimal("400.000"))
        self.assertEqual(self.item.movements.count(), 4)

    def test_result_carries_new_balance_and_status(self):
        result = self._move("in", "250")

        self.assertEqual(result.current_stock, Decimal("250"))
        self.assertEqual(result.status, InventoryItem.Status.ACTIVE)
        self.assertEqual(result.movement.warehouse_id, self.warehouse.pk)
        self.assertEqual(result.movement.created_by, self.user)

    # --------------------------------------------------
    # Status derivation
    # --------------------------------------------------

    def test_status_low_at_minimum_then_active_above(self):
        result = self._move("in", "100")
        self.assertEqual(result.status, InventoryItem.Status.LOW_STOCK)

        result = self._move("in", "1")
        self.assertEqual(result.status, InventoryItem.Status.ACTIVE)

    def test_status_out_of_stock_when_emptied(self):
        self._move("in", "40")
        result = self._move("out", "40")

        self.assertEqual(result.current_stock, Decimal("0"))
        self.assertEqual(result.status, InventoryItem.Status.OUT_OF_STOCK)

    def test_minimum_stock_change_rederives_status(self):
        self._move("in", "150")

        item = InventoryItem.objects.get(pk=self.item.pk)
        item.minimum_stock = Decimal("200")
        item.save()

        item.refresh_from_db()
        self.assertEqual(item.status, InventoryItem.Status.LOW_STOCK)
        self.assertEqual(item.current_stock, Decimal("150"))

    # --------------------------------------------------
    # Rejections
    # --------------------------------------------------

    def test_outgoing_above_balance_is_rejected(self):
        self._move("in", "50")

        with self.assertRaises(InsufficientStockError):
            self._move("out", "80")

        self.assertEqual(self._stock(), Decimal("50"))
        self.assertEqual(StockMovement.objects.filter(inventory_item=self.item).count(), 1)

    def test_non_positive_quantity_is_rejected(self):
        for qty in ("0", "-5"):
            with self.assertRaises(ValidationError):
                self._move("in", qty)
        self.assertEqual(StockMovement.objects.count(), 0)

    def test_overlong_reason_or_reference_is_rejected(self):
        with self.assertRaises(ValidationError):
            record_movement(inventory_item=self.item, movement_type="in", quantity="5", reason="x" * 256)
        with self.assertRaises(ValidationError):
            record_movement(
                inventory_item=self.item,
                movement_type="in",
                quantity="5",
                reference_number="R" * 65,
            )
        self.assertEqual(StockMovement.objects.count(), 0)
        self.assertEqual(self._stock(), Decimal("0"))

    def test_unknown_movement_type_is_rejected(self):
        with self.assertRaises(ValidationError):
            self._move("sideways", "5")

    def test_unknown_item_is_rejected(self):
        with self.assertRaises(MovementReferenceError):
            record_movement(
                inventory_item="00000000-0000-0000-0000-000000000000",
                movement_type="in",
                quantity="5",
            )

    def test_warehouse_mismatch_is_rejected(self):
        other = Warehouse.objects.create(name="Bag Store")

        with self.assertRaises(MovementReferenceError):
            record_movement(
                inventory_item=self.item,
                movement_type="in",
                quantity="5",
                warehouse=other.pk,
            )
        self.assertEqual(self._stock(), Decimal("0"))

    # --------------------------------------------------
    # Aggregate protection
    # --------------------------------------------------

    def test_stale_instances_do_not_lose_increments(self):
        first = InventoryItem.objects.get(pk=self.item.pk)
        second = InventoryItem.objects.get(pk=self.item.pk)

        self._move("in", "10", item=first)
        self._move("in", "10", item=second)

        # Saving a stale instance must not write its old balance back.
        second.subcategory = "Hard red"
        second.save()

        self.assertEqual(self._stock(), Decimal("20"))

    def test_direct_stock_edit_is_refused(self):
        item = InventoryItem.objects.get(pk=self.item.pk)
        item.current_stock = Decimal("999")

        with self.assertRaises(ValidationError):
            item.save()

        self.assertEqual(self._stock(), Decimal("0"))

    def test_new_item_with_stock_is_refused(self):
        with self.assertRaises(ValidationError):
            InventoryItem.objects.create(
                warehouse=self.warehouse,
                name="Bran",
                current_stock=Decimal("10"),
            )

    def test_movements_are_immutable(self):
        movement = self._move("in", "10").movement

        movement.quantity = Decimal("99")
        with self.assertRaises(ValidationError):
            movement.save()

        with self.assertRaises(ValidationError):
            movement.delete()

        self.assertEqual(self._stock(), Decimal("10"))

    # --------------------------------------------------
    # Lazy creation
    # --------------------------------------------------

    def test_get_or_create_is_idempotent(self):
        again, created = get_or_create_inventory_item(warehouse=self.warehouse, product=self.wheat)

        self.assertFalse(created)
        self.assertEqual(again.pk, self.item.pk)
        self.assertEqual(
            InventoryItem.objects.filter(product=self.wheat, warehouse=self.warehouse).count(), 1
        )

    def test_get_or_create_copies_catalog_defaults(self):
        self.assertEqual(self.item.name, "Wheat")
        self.assertEqual(self.item.code, self.wheat.code)
        self.assertEqual(self.item.unit, "kg")
        self.assertEqual(self.item.minimum_stock, Decimal("100"))

    def test_name_only_items_are_keyed_by_name(self):
        first, created_first = get_or_create_inventory_item(warehouse=self.warehouse, name="Sweepings")
        second, created_second = get_or_create_inventory_item(warehouse=self.warehouse, name="Sweepings")

        self.assertTrue(created_first)
        self.assertFalse(created_second)
        self.assertEqual(first.pk, second.pk)
        self.assertIsNone(first.product_id)

    def test_get_or_create_rejects_opening_stock_in_defaults(self):
        with self.assertRaises(ValidationError):
            get_or_create_inventory_item(
                warehouse=self.warehouse,
                name="Bran",
                defaults={"current_stock": Decimal("5")},
            )

    def test_get_or_create_rejects_inactive_warehouse(self):
        closed = Warehouse.objects.create(name="Old Shed", status=Warehouse.Status.INACTIVE)

        with self.assertRaises(MovementReferenceError):
            get_or_create_inventory_item(warehouse=closed, product=self.wheat)

    # --------------------------------------------------
    # Replay + audit
    # --------------------------------------------------

    def test_audit_reports_drift_and_replay_repairs_it(self):
        self._move("in", "300")
        self._move("out", "50")

        # Out-of-band write (e.g. a manual SQL fix gone wrong)
        InventoryItem.objects.filter(pk=self.item.pk).update(current_stock=Decimal("999"))

        drift = audit_consistency()
        self.assertEqual(len(drift), 1)
        self.assertEqual(drift[0].expected, Decimal("250"))
        self.assertEqual(drift[0].recorded, Decimal("999"))

        summary = recalculate_all()
        self.assertEqual(len(summary.corrections), 1)
        self.assertEqual(self._stock(), Decimal("250"))
        self.assertEqual(audit_consistency(), [])

    def test_replay_is_idempotent(self):
        self._move("in", "80")
        self._move("out", "30")

        first = recalculate_all()
        stock_after_first = self._stock()
        second = recalculate_all()

        self.assertEqual(stock_after_first, Decimal("50"))
        self.assertEqual(self._stock(), stock_after_first)
        self.assertEqual(first.corrections, [])
        self.assertEqual(second.corrections, [])
        self.assertEqual(second.movements_replayed, 2)

    def test_replay_dry_run_does_not_write(self):
        self._move("in", "80")
        InventoryItem.objects.filter(pk=self.item.pk).update(current_stock=Decimal("1"))

        summary = recalculate_all(dry_run=True)

        self.assertTrue(summary.dry_run)
        self.assertEqual(len(summary.corrections), 1)
        self.assertEqual(self._stock(), Decimal("1"))

    def test_audit_respects_epsilon(self):
        self._move("in", "10")
        InventoryItem.objects.filter(pk=self.item.pk).update(current_stock=Decimal("10.005"))

        self.assertEqual(audit_consistency(epsilon="0.01"), [])
        self.assertEqual(len(audit_consistency(epsilon="0.001")), 1)

    def test_audit_rejects_non_finite_epsilon(self):
        for value in ("NaN", "Infinity", "-0.5"):
            with self.assertRaises(ValidationError):
                audit_consistency(epsilon=value)

    def test_replay_touches_updated_at_of_repaired_items(self):
        self._move("in", "40")
        stale = timezone.now() - timedelta(days=3)
        InventoryItem.objects.filter(pk=self.item.pk).update(current_stock=Decimal("7"), updated_at=stale)

        recalculate_all()

        repaired = InventoryItem.objects.get(pk=self.item.pk)
        self.assertEqual(repaired.current_stock, Decimal("40"))
        self.assertGreater(repaired.updated_at, stale)
