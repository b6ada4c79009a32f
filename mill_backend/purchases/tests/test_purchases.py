# purchases/tests/test_purchases.py

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from inventory.models import InventoryItem, StockMovement
from products.models import Product
from purchases.models import Purchase, Supplier
from purchases.services.purchase_service import PurchaseError, cancel_purchase, create_purchase
from purchases.services.receiving_service import PurchaseReceivingError, receive_purchase
from warehouses.models import Warehouse

User = get_user_model()


class PurchaseReceivingTests(TestCase):
    """
    GUARANTEES:
    - Receiving records exactly one IN movement per line
    - Receiving twice never doubles stock
    - Only DRAFT purchases can be received / cancelled
    """

    def setUp(self):
        self.user = User.objects.create_user(
            email="wm@example.com",
            password="pass",
            role="warehouse_manager",
        )
        self.supplier = Supplier.objects.create(name="Punjab Food Department")
        self.warehouse = Warehouse.objects.create(name="Wheat Silo")
        self.wheat = Product.objects.create(
            name="Wheat",
            category=Product.Category.RAW_MATERIALS,
            purchase_price=Decimal("42.50"),
        )
        self.bags = Product.objects.create(
            name="PP Bags 50kg",
            category=Product.Category.PACKAGING_MATERIALS,
            unit=Product.Unit.PCS,
        )

    def _draft(self, **overrides):
        kwargs = {
            "supplier_id": self.supplier.pk,
            "warehouse_id": self.warehouse.pk,
            "items": [
                {"product_id": self.wheat.pk, "quantity": "1000"},
                {"product_id": self.bags.pk, "quantity": "500", "unit_cost": "12.00"},
            ],
            "user": self.user,
        }
        kwargs.update(overrides)
        return create_purchase(**kwargs)

    def test_draft_computes_totals_without_touching_stock(self):
        purchase = self._draft()

        self.assertEqual(purchase.status, Purchase.STATUS_DRAFT)
        self.assertTrue(purchase.purchase_number.startswith("PUR-"))
        # 1000 * 42.50 (catalog purchase_price) + 500 * 12.00
        self.assertEqual(purchase.total_amount, Decimal("48500.00"))
        self.assertFalse(InventoryItem.objects.exists())

    def test_receive_creates_items_and_in_movements(self):
        purchase = self._draft()

        result = receive_purchase(purchase_id=purchase.pk, user=self.user)

        self.assertEqual(result["status"], Purchase.STATUS_RECEIVED)
        wheat_item = InventoryItem.objects.get(product=self.wheat, warehouse=self.warehouse)
        self.assertEqual(wheat_item.current_stock, Decimal("1000"))

        movements = StockMovement.objects.filter(reference_number=purchase.purchase_number)
        self.assertEqual(movements.count(), 2)
        self.assertEqual(
            set(movements.values_list("reason", flat=True)),
            {f"Purchase - {purchase.purchase_number}"},
        )

    def test_receive_is_idempotent(self):
        purchase = self._draft()

        receive_purchase(purchase_id=purchase.pk, user=self.user)
        again = receive_purchase(purchase_id=purchase.pk, user=self.user)

        self.assertTrue(again["already_received"])
        self.assertEqual(
            InventoryItem.objects.get(product=self.wheat, warehouse=self.warehouse).current_stock,
            Decimal("1000"),
        )
        self.assertEqual(StockMovement.objects.count(), 2)

    def test_receive_adds_to_existing_item(self):
        first = self._draft(items=[{"product_id": self.wheat.pk, "quantity": "300"}])
        second = self._draft(items=[{"product_id": self.wheat.pk, "quantity": "200"}])

        receive_purchase(purchase_id=first.pk)
        receive_purchase(purchase_id=second.pk)

        items = InventoryItem.objects.filter(product=self.wheat, warehouse=self.warehouse)
        self.assertEqual(items.count(), 1)
        self.assertEqual(items.get().current_stock, Decimal("500"))

    def test_cancelled_purchase_cannot_be_received(self):
        purchase = self._draft()
        cancel_purchase(purchase_id=purchase.pk)

        with self.assertRaises(PurchaseReceivingError):
            receive_purchase(purchase_id=purchase.pk)

    def test_received_purchase_cannot_be_cancelled(self):
        purchase = self._draft()
        receive_purchase(purchase_id=purchase.pk)

        with self.assertRaises(PurchaseError):
            cancel_purchase(purchase_id=purchase.pk)

    def test_inactive_warehouse_is_rejected(self):
        self.warehouse.status = Warehouse.Status.INACTIVE
        self.warehouse.save()

        with self.assertRaises(PurchaseError):
            self._draft()


class PurchaseApiTests(TestCase):
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
        self.supplier = Supplier.objects.create(name="Local Farmer")
        self.warehouse = Warehouse.objects.create(name="Wheat Silo")
        self.wheat = Product.objects.create(name="Wheat", category=Product.Category.RAW_MATERIALS)

    def test_create_and_receive_purchase(self):
        self.client.force_authenticate(self.manager)

        res = self.client.post(
            "/api/purchases/",
            {
                "supplier_id": str(self.supplier.pk),
                "warehouse_id": str(self.warehouse.pk),
                "purchase_type": "wheat",
                "items": [{"product_id": str(self.wheat.pk), "quantity": "750", "unit_cost": "40.00"}],
            },
            format="json",
        )
        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(res.data["total_amount"], "30000.00")

        res = self.client.post(f"/api/purchases/{res.data['id']}/receive/")
        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(res.data["status"], "RECEIVED")

        self.assertEqual(
            InventoryItem.objects.get(product=self.wheat, warehouse=self.warehouse).current_stock,
            Decimal("750"),
        )

    def test_cashier_cannot_manage_purchases(self):
        self.client.force_authenticate(self.cashier)

        res = self.client.get("/api/purchases/")

        self.assertEqual(res.status_code, 403)
