# inventory/tests/test_workflows.py

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase, override_settings

from inventory.models import DamageReport, InventoryItem, Notification, StockMovement, StockTransfer
from inventory.services import notifications as notification_service
from inventory.services.damage import report_damage
from inventory.services.exceptions import (
    CapacityExceededError,
    InsufficientStockError,
    MovementReferenceError,
    TransferStateError,
)
from inventory.services.ledger import get_or_create_inventory_item, record_movement
from inventory.services.transfers import (
    approve_transfer,
    cancel_transfer,
    complete_transfer,
    create_transfer,
    dispatch_transfer,
    receive_transfer,
    transfer_stock,
)
from products.models import Product
from warehouses.models import Warehouse


class TransferTests(TestCase):
    def setUp(self):
        self.main = Warehouse.objects.create(name="Main Godown")
        self.branch = Warehouse.objects.create(name="Branch Store")
        self.flour = Product.objects.create(
            name="Fine Flour 50kg",
            category=Product.Category.FINISHED_GOODS,
            unit=Product.Unit.BAGS,
            price=Decimal("1800.00"),
            minimum_stock=Decimal("10"),
        )
        self.item, _ = get_or_create_inventory_item(warehouse=self.main, product=self.flour)
        record_movement(inventory_item=self.item, movement_type="in", quantity="100", reason="Opening Stock")

    def test_transfer_moves_stock_between_warehouses(self):
        transfer = transfer_stock(
            from_warehouse=self.main.pk,
            to_warehouse=self.branch.pk,
            items=[{"inventory_item": self.item.pk, "quantity": "40"}],
        )

        source = InventoryItem.objects.get(pk=self.item.pk)
        destination = InventoryItem.objects.get(product=self.flour, warehouse=self.branch)

        self.assertEqual(source.current_stock, Decimal("60"))
        self.assertEqual(destination.current_stock, Decimal("40"))
        self.assertEqual(transfer.items.count(), 1)

        reasons = set(
            StockMovement.objects.filter(reference_number=transfer.transfer_number).values_list("reason", flat=True)
        )
        self.assertEqual(reasons, {f"Transfer - {transfer.transfer_number}"})
        self.assertTrue(transfer.transfer_number.startswith("TR-"))

    def test_transfer_reuses_existing_destination_item(self):
        existing, _ = get_or_create_inventory_item(warehouse=self.branch, product=self.flour)

        transfer_stock(
            from_warehouse=self.main,
            to_warehouse=self.branch,
            items=[{"inventory_item": self.item.pk, "quantity": "5"}],
        )

        self.assertEqual(InventoryItem.objects.filter(product=self.flour, warehouse=self.branch).count(), 1)
        self.assertEqual(InventoryItem.objects.get(pk=existing.pk).current_stock, Decimal("5"))

    def test_same_warehouse_is_rejected(self):
        with self.assertRaises(ValidationError):
            transfer_stock(
                from_warehouse=self.main,
                to_warehouse=self.main,
                items=[{"inventory_item": self.item.pk, "quantity": "5"}],
            )

    def test_capacity_overflow_rolls_back(self):
        self.branch.capacity = Decimal("30")
        self.branch.capacity_unit = "bags"
        self.branch.save()

        with self.assertRaises(CapacityExceededError):
            transfer_stock(
                from_warehouse=self.main,
                to_warehouse=self.branch,
                items=[{"inventory_item": self.item.pk, "quantity": "40"}],
            )

        self.assertEqual(InventoryItem.objects.get(pk=self.item.pk).current_stock, Decimal("100"))
        self.assertEqual(StockTransfer.objects.count(), 0)

    def test_insufficient_source_stock_rolls_back(self):
        with self.assertRaises(InsufficientStockError):
            transfer_stock(
                from_warehouse=self.main,
                to_warehouse=self.branch,
                items=[{"inventory_item": self.item.pk, "quantity": "150"}],
            )

        self.assertFalse(InventoryItem.objects.filter(warehouse=self.branch).exists())
        self.assertEqual(StockTransfer.objects.count(), 0)

    def test_item_from_another_warehouse_is_rejected(self):
        with self.assertRaises(MovementReferenceError):
            transfer_stock(
                from_warehouse=self.branch,
                to_warehouse=self.main,
                items=[{"inventory_item": self.item.pk, "quantity": "1"}],
            )

    def test_bags_do_not_use_up_a_kg_capacity(self):
        wheat = Product.objects.create(name="Wheat", category=Product.Category.RAW_MATERIALS)
        self.branch.capacity = Decimal("1000")
        self.branch.save()
        held, _ = get_or_create_inventory_item(warehouse=self.branch, product=self.flour)
        record_movement(inventory_item=held, movement_type="in", quantity="100")
        bulk, _ = get_or_create_inventory_item(warehouse=self.branch, product=wheat)
        record_movement(inventory_item=bulk, movement_type="in", quantity="200")

        self.assertEqual(self.branch.current_usage(), Decimal("200"))
        self.assertEqual(self.branch.usage_by_unit()["bags"], Decimal("100"))

        transfer_stock(
            from_warehouse=self.main,
            to_warehouse=self.branch,
            items=[{"inventory_item": self.item.pk, "quantity": "40"}],
        )
        self.assertEqual(InventoryItem.objects.get(pk=held.pk).current_stock, Decimal("140"))

    def test_tons_are_converted_into_a_kg_capacity(self):
        wheat = Product.objects.create(
            name="Wheat (bulk)",
            category=Product.Category.RAW_MATERIALS,
            unit=Product.Unit.TONS,
        )
        source, _ = get_or_create_inventory_item(warehouse=self.main, product=wheat)
        record_movement(inventory_item=source, movement_type="in", quantity="5")
        self.branch.capacity = Decimal("1500")
        self.branch.save()

        with self.assertRaises(CapacityExceededError):
            transfer_stock(
                from_warehouse=self.main,
                to_warehouse=self.branch,
                items=[{"inventory_item": source.pk, "quantity": "2"}],
            )

        transfer_stock(
            from_warehouse=self.main,
            to_warehouse=self.branch,
            items=[{"inventory_item": source.pk, "quantity": "1.5"}],
        )
        self.branch.refresh_from_db()
        self.assertEqual(self.branch.available_capacity(), Decimal("0"))


class TransferLifecycleTests(TestCase):
    """
    GUARANTEES:
    - nothing moves until dispatch; dispatch is the only OUT
    - receive records the actual quantity IN; shortfall stays out of stock
    - steps only run from the status before them
    - cancel only before dispatch
    """

    def setUp(self):
        self.main = Warehouse.objects.create(name="Main Godown")
        self.branch = Warehouse.objects.create(name="Branch Store")
        self.item, _ = get_or_create_inventory_item(
            warehouse=self.main,
            name="Bran",
            defaults={"unit": "kg"},
        )
        record_movement(inventory_item=self.item, movement_type="in", quantity="500")

    def _create(self, qty="200"):
        return create_transfer(
            from_warehouse=self.main,
            to_warehouse=self.branch,
            items=[{"inventory_item": self.item.pk, "quantity": qty}],
        )

    def _stock(self, item):
        return InventoryItem.objects.get(pk=item.pk).current_stock

    def test_staged_transfer_moves_stock_at_dispatch_and_receipt(self):
        transfer = self._create()
        self.assertEqual(transfer.status, StockTransfer.Status.PENDING)

        approve_transfer(transfer=transfer)
        self.assertEqual(self._stock(self.item), Decimal("500"))

        transfer = dispatch_transfer(transfer=transfer)
        self.assertEqual(transfer.status, StockTransfer.Status.IN_TRANSIT)
        self.assertEqual(self._stock(self.item), Decimal("300"))
        self.assertFalse(InventoryItem.objects.filter(warehouse=self.branch).exists())

        transfer = receive_transfer(transfer=transfer, received={str(self.item.pk): "195"})
        self.assertEqual(transfer.status, StockTransfer.Status.DELIVERED)
        line = transfer.items.get()
        self.assertEqual(line.received_quantity, Decimal("195"))
        self.assertEqual(line.shortfall, Decimal("5"))
        self.assertEqual(self._stock(line.destination_item), Decimal("195"))

        transfer = complete_transfer(transfer=transfer)
        self.assertEqual(transfer.status, StockTransfer.Status.COMPLETED)
        self.assertIsNotNone(transfer.completed_at)

    def test_steps_must_follow_the_lifecycle(self):
        transfer = self._create()

        with self.assertRaises(TransferStateError):
            dispatch_transfer(transfer=transfer)
        with self.assertRaises(TransferStateError):
            receive_transfer(transfer=transfer)
        self.assertEqual(self._stock(self.item), Decimal("500"))

    def test_receiving_more_than_dispatched_is_rejected(self):
        transfer = self._create()
        approve_transfer(transfer=transfer)
        dispatch_transfer(transfer=transfer)

        with self.assertRaises(ValidationError):
            receive_transfer(transfer=transfer, received={str(self.item.pk): "201"})

        transfer.refresh_from_db()
        self.assertEqual(transfer.status, StockTransfer.Status.IN_TRANSIT)

    def test_approval_rechecks_stock(self):
        transfer = self._create(qty="400")
        record_movement(inventory_item=self.item, movement_type="out", quantity="300")

        with self.assertRaises(InsufficientStockError):
            approve_transfer(transfer=transfer)

        transfer.refresh_from_db()
        self.assertEqual(transfer.status, StockTransfer.Status.PENDING)

    def test_cancel_only_before_dispatch(self):
        pending = self._create()
        with self.assertRaises(ValidationError):
            cancel_transfer(transfer=pending, reason="  ")
        cancelled = cancel_transfer(transfer=pending, reason="Truck unavailable")
        self.assertEqual(cancelled.status, StockTransfer.Status.CANCELLED)

        shipped = self._create()
        approve_transfer(transfer=shipped)
        dispatch_transfer(transfer=shipped)
        with self.assertRaises(TransferStateError):
            cancel_transfer(transfer=shipped, reason="Too late")


class DamageReportTests(TestCase):
    def setUp(self):
        self.warehouse = Warehouse.objects.create(name="Main Godown")
        self.item, _ = get_or_create_inventory_item(
            warehouse=self.warehouse,
            name="Empty Bags",
            defaults={"unit": "pcs", "price": Decimal("25.00")},
        )
        record_movement(inventory_item=self.item, movement_type="in", quantity="200")

    def test_damage_records_out_movement_and_estimated_loss(self):
        report = report_damage(
            inventory_item=self.item,
            quantity="20",
            reason=DamageReport.Reason.WATER,
        )

        self.assertEqual(InventoryItem.objects.get(pk=self.item.pk).current_stock, Decimal("180"))
        self.assertEqual(report.movement.movement_type, StockMovement.MovementType.OUT)
        self.assertEqual(report.movement.reason, "Damage - Water Damage")
        self.assertEqual(report.estimated_loss, Decimal("500.00"))

    def test_damage_above_stock_is_rejected(self):
        with self.assertRaises(InsufficientStockError):
            report_damage(inventory_item=self.item, quantity="500", reason=DamageReport.Reason.FIRE)

        self.assertEqual(DamageReport.objects.count(), 0)

    def test_unknown_reason_is_rejected(self):
        with self.assertRaises(ValidationError):
            report_damage(inventory_item=self.item, quantity="1", reason="Aliens")


class LowStockNotificationTests(TestCase):
    def setUp(self):
        self.warehouse = Warehouse.objects.create(name="Main Godown")
        self.item, _ = get_or_create_inventory_item(
            warehouse=self.warehouse,
            name="Bran",
            defaults={"minimum_stock": Decimal("100")},
        )
        record_movement(inventory_item=self.item, movement_type="in", quantity="150")

    def _low_stock_notifications(self):
        return Notification.objects.filter(type=Notification.Type.LOW_STOCK, inventory_item=self.item)

    def test_notification_raised_once_while_unresolved(self):
        record_movement(inventory_item=self.item, movement_type="out", quantity="60")
        record_movement(inventory_item=self.item, movement_type="out", quantity="10")

        self.assertEqual(self._low_stock_notifications().count(), 1)
        self.assertEqual(self._low_stock_notifications().get().priority, Notification.Priority.HIGH)

    def test_resolved_notification_allows_a_new_one(self):
        record_movement(inventory_item=self.item, movement_type="out", quantity="60")
        notification_service.resolve(self._low_stock_notifications().get())

        record_movement(inventory_item=self.item, movement_type="out", quantity="90")

        self.assertEqual(self._low_stock_notifications().count(), 2)
        latest = self._low_stock_notifications().exclude(status=Notification.Status.RESOLVED).get()
        self.assertEqual(latest.priority, Notification.Priority.CRITICAL)

    def test_incoming_movements_do_not_notify(self):
        record_movement(inventory_item=self.item, movement_type="in", quantity="1")
        self.assertFalse(self._low_stock_notifications().exists())

    @override_settings(INVENTORY_LOW_STOCK_NOTIFICATIONS=False)
    def test_notifications_can_be_disabled(self):
        record_movement(inventory_item=self.item, movement_type="out", quantity="100")
        self.assertFalse(self._low_stock_notifications().exists())

    def test_mark_all_read(self):
        record_movement(inventory_item=self.item, movement_type="out", quantity="60")

        self.assertEqual(notification_service.mark_all_read(), 1)
        self.assertEqual(self._low_stock_notifications().get().status, Notification.Status.READ)
