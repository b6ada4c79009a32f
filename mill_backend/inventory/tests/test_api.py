# inventory/tests/test_api.py

from decimal import Decimal
from io import StringIO

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase
from rest_framework.test import APIClient

from inventory.models import InventoryItem, StockMovement
from inventory.services.ledger import get_or_create_inventory_item, record_movement
from products.models import Product
from warehouses.models import Warehouse

User = get_user_model()


class StockMovementApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()

        self.manager = User.objects.create_user(
            email="wm@example.com",
            password="pass",
            role="warehouse_manager",
        )
        self.cashier = User.objects.create_user(
            email="cashier@example.com",
            password="pass",
            role="cashier",
        )

        self.warehouse = Warehouse.objects.create(name="Main Godown")
        self.wheat = Product.objects.create(
            name="Wheat",
            category=Product.Category.RAW_MATERIALS,
            minimum_stock=Decimal("100"),
        )
        self.item, _ = get_or_create_inventory_item(warehouse=self.warehouse, product=self.wheat)

    def _post_movement(self, **overrides):
        payload = {
            "inventory_item_id": str(self.item.pk),
            "movement_type": "in",
            "quantity": "250.000",
            "reason": "Manual receipt",
            "reference_number": "GRN-1",
        }
        payload.update(overrides)
        return self.client.post("/api/inventory/movements/", payload, format="json")

    def test_record_movement_returns_balance_and_status(self):
        self.client.force_authenticate(self.manager)

        res = self._post_movement()

        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(Decimal(res.data["current_stock"]), Decimal("250"))
        self.assertEqual(res.data["status"], InventoryItem.Status.ACTIVE)
        self.assertEqual(res.data["movement"]["movement_type"], "in")
        self.assertEqual(res.data["movement"]["reference_number"], "GRN-1")

    def test_outgoing_above_balance_returns_400(self):
        self.client.force_authenticate(self.manager)
        self._post_movement(quantity="50")

        res = self._post_movement(movement_type="out", quantity="80")

        self.assertEqual(res.status_code, 400)
        self.assertIn("Insufficient stock", res.data["detail"])
        self.assertEqual(InventoryItem.objects.get(pk=self.item.pk).current_stock, Decimal("50"))

    def test_zero_quantity_returns_400(self):
        self.client.force_authenticate(self.manager)

        res = self._post_movement(quantity="0")

        self.assertEqual(res.status_code, 400)
        self.assertEqual(StockMovement.objects.count(), 0)

    def test_unknown_item_returns_400(self):
        self.client.force_authenticate(self.manager)

        res = self._post_movement(inventory_item_id="00000000-0000-0000-0000-000000000000")

        self.assertEqual(res.status_code, 400)
        self.assertIn("not found", res.data["detail"])

    def test_view_only_role_cannot_record(self):
        self.client.force_authenticate(self.cashier)

        res = self._post_movement()

        self.assertEqual(res.status_code, 403)

    def test_view_only_role_can_list_history(self):
        record_movement(inventory_item=self.item, movement_type="in", quantity="10")
        self.client.force_authenticate(self.cashier)

        res = self.client.get("/api/inventory/movements/", {"inventory_item": str(self.item.pk)})

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["count"], 1)

    def test_anonymous_is_rejected(self):
        res = self._post_movement()
        self.assertEqual(res.status_code, 401)


class InventoryItemApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.manager = User.objects.create_user(
            email="wm@example.com",
            password="pass",
            role="warehouse_manager",
        )
        self.client.force_authenticate(self.manager)
        self.warehouse = Warehouse.objects.create(name="Main Godown")

    def test_create_with_opening_stock_records_movement(self):
        res = self.client.post(
            "/api/inventory/items/",
            {
                "warehouse_id": str(self.warehouse.pk),
                "name": "Bran",
                "unit": "kg",
                "minimum_stock": "50",
                "opening_stock": "20",
            },
            format="json",
        )

        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(Decimal(res.data["current_stock"]), Decimal("20"))
        self.assertEqual(res.data["status"], InventoryItem.Status.LOW_STOCK)

        movement = StockMovement.objects.get(inventory_item_id=res.data["id"])
        self.assertEqual(movement.reason, "Opening Stock")

    def test_create_is_idempotent(self):
        payload = {"warehouse_id": str(self.warehouse.pk), "name": "Bran"}

        first = self.client.post("/api/inventory/items/", payload, format="json")
        second = self.client.post("/api/inventory/items/", payload, format="json")

        self.assertEqual(first.status_code, 201)
        self.assertEqual(second.status_code, 200)
        self.assertEqual(first.data["id"], second.data["id"])

    def test_patch_ignores_current_stock(self):
        item, _ = get_or_create_inventory_item(warehouse=self.warehouse, name="Bran")
        record_movement(inventory_item=item, movement_type="in", quantity="30")

        res = self.client.patch(
            f"/api/inventory/items/{item.pk}/",
            {"current_stock": "9999", "minimum_stock": "40"},
            format="json",
        )

        self.assertEqual(res.status_code, 200, res.data)
        item.refresh_from_db()
        self.assertEqual(item.current_stock, Decimal("30"))
        self.assertEqual(item.status, InventoryItem.Status.LOW_STOCK)

    def test_low_stock_list(self):
        low, _ = get_or_create_inventory_item(
            warehouse=self.warehouse, name="Bran", defaults={"minimum_stock": Decimal("50")}
        )
        healthy, _ = get_or_create_inventory_item(warehouse=self.warehouse, name="Semolina")
        record_movement(inventory_item=low, movement_type="in", quantity="10")
        record_movement(inventory_item=healthy, movement_type="in", quantity="10")

        res = self.client.get("/api/inventory/items/low-stock/")

        self.assertEqual(res.status_code, 200)
        names = [row["name"] for row in res.data["results"]]
        self.assertEqual(names, ["Bran"])

    def test_damage_action(self):
        item, _ = get_or_create_inventory_item(warehouse=self.warehouse, name="Empty Bags")
        record_movement(inventory_item=item, movement_type="in", quantity="100")

        res = self.client.post(
            f"/api/inventory/items/{item.pk}/damage/",
            {"quantity": "5", "reason": "Pest Damage", "severity": "High"},
            format="json",
        )

        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(Decimal(res.data["current_stock"]), Decimal("95"))

    def test_audit_endpoint(self):
        item, _ = get_or_create_inventory_item(warehouse=self.warehouse, name="Bran")
        record_movement(inventory_item=item, movement_type="in", quantity="10")
        InventoryItem.objects.filter(pk=item.pk).update(current_stock=Decimal("12"))

        res = self.client.get("/api/inventory/audit/")

        self.assertEqual(res.status_code, 200)
        self.assertFalse(res.data["consistent"])
        self.assertEqual(Decimal(res.data["results"][0]["expected"]), Decimal("10"))

    def test_audit_endpoint_rejects_nan_epsilon(self):
        res = self.client.get("/api/inventory/audit/?epsilon=NaN")

        self.assertEqual(res.status_code, 400)
        self.assertIn("epsilon", res.data["detail"])

    def test_transfer_endpoint(self):
        other = Warehouse.objects.create(name="Branch Store")
        item, _ = get_or_create_inventory_item(warehouse=self.warehouse, name="Bran")
        record_movement(inventory_item=item, movement_type="in", quantity="10")

        res = self.client.post(
            "/api/inventory/transfers/",
            {
                "from_warehouse_id": str(self.warehouse.pk),
                "to_warehouse_id": str(other.pk),
                "items": [{"inventory_item_id": str(item.pk), "quantity": "4"}],
            },
            format="json",
        )

        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(len(res.data["items"]), 1)
        self.assertEqual(InventoryItem.objects.get(pk=item.pk).current_stock, Decimal("6"))


class TransferLifecycleApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.manager = User.objects.create_user(
            email="wm@example.com",
            password="pass",
            role="warehouse_manager",
        )
        self.employee = User.objects.create_user(
            email="emp@example.com",
            password="pass",
            role="employee",
        )
        self.main = Warehouse.objects.create(name="Main Godown")
        self.branch = Warehouse.objects.create(name="Branch Store")
        self.item, _ = get_or_create_inventory_item(warehouse=self.main, name="Bran")
        record_movement(inventory_item=self.item, movement_type="in", quantity="50")

    def _create_pending(self):
        res = self.client.post(
            "/api/inventory/transfers/",
            {
                "from_warehouse_id": str(self.main.pk),
                "to_warehouse_id": str(self.branch.pk),
                "requires_approval": True,
                "items": [{"inventory_item_id": str(self.item.pk), "quantity": "20"}],
            },
            format="json",
        )
        self.assertEqual(res.status_code, 201, res.data)
        return res.data["id"]

    def _step(self, transfer_id, step, payload=None):
        return self.client.post(f"/api/inventory/transfers/{transfer_id}/{step}/", payload or {}, format="json")

    def test_staged_transfer_through_the_api(self):
        self.client.force_authenticate(self.manager)
        transfer_id = self._create_pending()
        self.assertEqual(InventoryItem.objects.get(pk=self.item.pk).current_stock, Decimal("50"))

        self.assertEqual(self._step(transfer_id, "approve").data["status"], "APPROVED")

        res = self._step(transfer_id, "dispatch")
        self.assertEqual(res.status_code, 200, res.data)
        self.assertEqual(res.data["status"], "IN_TRANSIT")
        self.assertEqual(InventoryItem.objects.get(pk=self.item.pk).current_stock, Decimal("30"))

        res = self._step(
            transfer_id,
            "receive",
            {"items": [{"inventory_item_id": str(self.item.pk), "received_quantity": "18"}]},
        )
        self.assertEqual(res.status_code, 200, res.data)
        self.assertEqual(res.data["status"], "DELIVERED")
        self.assertEqual(Decimal(res.data["items"][0]["shortfall"]), Decimal("2"))
        arrived = InventoryItem.objects.get(warehouse=self.branch, name="Bran")
        self.assertEqual(arrived.current_stock, Decimal("18"))

        res = self._step(transfer_id, "complete")
        self.assertEqual(res.data["status"], "COMPLETED")

    def test_out_of_order_step_returns_400(self):
        self.client.force_authenticate(self.manager)
        transfer_id = self._create_pending()

        res = self._step(transfer_id, "receive")

        self.assertEqual(res.status_code, 400)
        self.assertIn("cannot go from PENDING", res.data["detail"])

    def test_cancel_needs_a_reason(self):
        self.client.force_authenticate(self.manager)
        transfer_id = self._create_pending()

        self.assertEqual(self._step(transfer_id, "cancel").status_code, 400)

        res = self._step(transfer_id, "cancel", {"reason": "Truck unavailable"})
        self.assertEqual(res.status_code, 200, res.data)
        self.assertEqual(res.data["status"], "CANCELLED")
        self.assertEqual(res.data["cancel_reason"], "Truck unavailable")

    def test_view_only_role_cannot_move_a_transfer(self):
        self.client.force_authenticate(self.manager)
        transfer_id = self._create_pending()

        self.client.force_authenticate(self.employee)
        self.assertEqual(self._step(transfer_id, "approve").status_code, 403)
        self.assertEqual(self.client.get(f"/api/inventory/transfers/{transfer_id}/").status_code, 200)


class RepackingApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.manager = User.objects.create_user(
            email="wm@example.com",
            password="pass",
            role="warehouse_manager",
        )
        self.cashier = User.objects.create_user(
            email="cashier@example.com",
            password="pass",
            role="cashier",
        )
        self.warehouse = Warehouse.objects.create(name="Main Godown")
        self.bulk = Product.objects.create(name="Atta (bulk)", category=Product.Category.FINISHED_GOODS)
        self.bagged = Product.objects.create(
            name="Atta 10kg",
            category=Product.Category.FINISHED_GOODS,
            unit=Product.Unit.BAGS,
        )
        self.source, _ = get_or_create_inventory_item(warehouse=self.warehouse, product=self.bulk)
        record_movement(inventory_item=self.source, movement_type="in", quantity="500")

    def _payload(self, **overrides):
        payload = {
            "warehouse_id": str(self.warehouse.pk),
            "source_item_id": str(self.source.pk),
            "source_quantity": "300",
            "targets": [
                {"product_id": str(self.bagged.pk), "quantity": "29", "unit_weight": "10", "bag_type": "ATA"}
            ],
        }
        payload.update(overrides)
        return payload

    def test_repack_bulk_into_bags(self):
        self.client.force_authenticate(self.manager)

        res = self.client.post("/api/inventory/repackings/", self._payload(), format="json")

        self.assertEqual(res.status_code, 201, res.data)
        self.assertTrue(res.data["repacking_number"].startswith("RPK-"))
        self.assertEqual(Decimal(res.data["weight_difference_kg"]), Decimal("10"))
        self.assertEqual(len(res.data["targets"]), 1)
        self.assertEqual(InventoryItem.objects.get(pk=self.source.pk).current_stock, Decimal("200"))
        bags = InventoryItem.objects.get(warehouse=self.warehouse, product=self.bagged)
        self.assertEqual(bags.current_stock, Decimal("29"))

    def test_bag_target_without_unit_weight_returns_400(self):
        self.client.force_authenticate(self.manager)
        payload = self._payload(targets=[{"product_id": str(self.bagged.pk), "quantity": "29"}])

        res = self.client.post("/api/inventory/repackings/", payload, format="json")

        self.assertEqual(res.status_code, 400)
        self.assertIn("unit_weight", res.data["detail"])
        self.assertEqual(InventoryItem.objects.get(pk=self.source.pk).current_stock, Decimal("500"))

    def test_cashier_cannot_repack(self):
        self.client.force_authenticate(self.cashier)

        res = self.client.post("/api/inventory/repackings/", self._payload(), format="json")

        self.assertEqual(res.status_code, 403)
        self.assertEqual(self.client.get("/api/inventory/repackings/").status_code, 200)


class LedgerCommandTests(TestCase):
    def setUp(self):
        self.warehouse = Warehouse.objects.create(name="Main Godown")
        self.item, _ = get_or_create_inventory_item(warehouse=self.warehouse, name="Bran")
        record_movement(inventory_item=self.item, movement_type="in", quantity="10")

    def test_audit_stock_clean(self):
        out = StringIO()
        call_command("audit_stock", "--strict", stdout=out)
        self.assertIn("consistent", out.getvalue())

    def test_audit_stock_strict_fails_on_drift(self):
        InventoryItem.objects.filter(pk=self.item.pk).update(current_stock=Decimal("3"))

        with self.assertRaises(CommandError):
            call_command("audit_stock", "--strict", stdout=StringIO())

    def test_recalculate_stock_repairs_drift(self):
        InventoryItem.objects.filter(pk=self.item.pk).update(current_stock=Decimal("3"))

        out = StringIO()
        call_command("recalculate_stock", "--dry-run", stdout=out)
        self.assertEqual(InventoryItem.objects.get(pk=self.item.pk).current_stock, Decimal("3"))

        call_command("recalculate_stock", stdout=out)
        self.assertEqual(InventoryItem.objects.get(pk=self.item.pk).current_stock, Decimal("10"))

    def test_audit_stock_rejects_nan_epsilon(self):
        with self.assertRaises(CommandError):
            call_command("audit_stock", "--epsilon", "NaN", stdout=StringIO())
