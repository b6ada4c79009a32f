# production/tests/test_production.py

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from inventory.models import InventoryItem, Notification, StockMovement
from inventory.services.exceptions import InsufficientStockError
from inventory.services.ledger import get_or_create_inventory_item, record_movement
from production.models import ProductionRun
from production.services.production_service import (
    ProductionError,
    production_summary,
    record_production,
)
from products.models import Product
from warehouses.models import Warehouse

User = get_user_model()


class ProductionFixtureMixin:
    def _setup_mill(self):
        self.silo = Warehouse.objects.create(name="Wheat Silo")
        self.store = Warehouse.objects.create(name="Finished Goods Store")
        self.wheat = Product.objects.create(name="Wheat", category=Product.Category.RAW_MATERIALS)
        self.atta = Product.objects.create(
            name="Fine Atta 20kg",
            category=Product.Category.FINISHED_GOODS,
            unit=Product.Unit.BAGS,
        )
        self.bran = Product.objects.create(name="Bran", category=Product.Category.FINISHED_GOODS)
        self.wheat_item, _ = get_or_create_inventory_item(warehouse=self.silo, product=self.wheat)
        record_movement(inventory_item=self.wheat_item, movement_type="in", quantity="5000")


class ProductionServiceTests(ProductionFixtureMixin, TestCase):
    """
    GUARANTEES:
    - Raw material OUT from source, outputs IN to destination, same batch reference
    - Outputs plus wastage never exceed the raw material input
    - Failures leave stock untouched
    """

    def setUp(self):
        self.user = User.objects.create_user(
            email="pm@example.com",
            password="pass",
            role="production_manager",
        )
        self._setup_mill()

    def _run(self, **overrides):
        kwargs = {
            "source_warehouse_id": self.silo.pk,
            "destination_warehouse_id": self.store.pk,
            "raw_material_id": self.wheat.pk,
            "raw_material_quantity": "1000",
            "outputs": [
                {"product_id": self.atta.pk, "quantity": "40", "unit_weight": "20"},
                {"product_id": self.bran.pk, "quantity": "150"},
            ],
            "wastage_quantity": "20",
            "user": self.user,
        }
        kwargs.update(overrides)
        return record_production(**kwargs)

    def test_run_moves_stock_between_warehouses(self):
        run = self._run()

        self.assertTrue(run.batch_number.startswith("PRD-BATCH-"))
        self.assertEqual(run.status, ProductionRun.STATUS_COMPLETED)
        self.assertEqual(InventoryItem.objects.get(pk=self.wheat_item.pk).current_stock, Decimal("4000"))

        atta_item = InventoryItem.objects.get(product=self.atta, warehouse=self.store)
        bran_item = InventoryItem.objects.get(product=self.bran, warehouse=self.store)
        self.assertEqual(atta_item.current_stock, Decimal("40"))
        self.assertEqual(bran_item.current_stock, Decimal("150"))

        movements = StockMovement.objects.filter(reference_number=run.batch_number)
        self.assertEqual(movements.filter(movement_type="out").count(), 1)
        self.assertEqual(movements.filter(movement_type="in").count(), 2)
        self.assertEqual(
            set(movements.values_list("reason", flat=True)),
            {f"Production - {run.batch_number}"},
        )
        self.assertTrue(Notification.objects.filter(type=Notification.Type.PRODUCTION).exists())

    def test_destination_defaults_to_source(self):
        run = self._run(destination_warehouse_id=None)

        self.assertEqual(run.destination_warehouse_id, self.silo.pk)
        self.assertTrue(InventoryItem.objects.filter(product=self.bran, warehouse=self.silo).exists())

    def test_output_plus_wastage_cannot_exceed_input(self):
        with self.assertRaises(ProductionError):
            self._run(
                outputs=[{"product_id": self.atta.pk, "quantity": "50", "unit_weight": "20"}],
                wastage_quantity="1",
            )

        self.assertFalse(ProductionRun.objects.exists())
        self.assertEqual(InventoryItem.objects.get(pk=self.wheat_item.pk).current_stock, Decimal("5000"))

    def test_bag_output_requires_unit_weight(self):
        with self.assertRaises(ProductionError):
            self._run(outputs=[{"product_id": self.atta.pk, "quantity": "10"}])

    def test_insufficient_raw_material_is_rejected(self):
        with self.assertRaises(InsufficientStockError):
            self._run(
                raw_material_quantity="6000",
                outputs=[{"product_id": self.bran.pk, "quantity": "100"}],
            )

        self.assertEqual(StockMovement.objects.filter(movement_type="out").count(), 0)

    def test_raw_material_cannot_be_an_output(self):
        with self.assertRaises(ProductionError):
            self._run(outputs=[{"product_id": self.wheat.pk, "quantity": "10"}])

    def test_summary_totals(self):
        self._run()
        self._run(outputs=[{"product_id": self.bran.pk, "quantity": "50"}], wastage_quantity="0")

        summary = production_summary()

        self.assertEqual(summary["run_count"], 2)
        self.assertEqual(summary["raw_material_kg"], Decimal("2000"))
        self.assertEqual(summary["wastage_quantity"], Decimal("20"))
        bran = next(row for row in summary["outputs"] if row["product_name"] == "Bran")
        self.assertEqual(bran["quantity"], Decimal("200"))

    def test_summary_reports_raw_material_in_kg_across_units(self):
        bulk = Product.objects.create(
            name="Wheat (bulk)",
            category=Product.Category.RAW_MATERIALS,
            unit=Product.Unit.TONS,
        )
        bulk_item, _ = get_or_create_inventory_item(warehouse=self.silo, product=bulk)
        record_movement(inventory_item=bulk_item, movement_type="in", quantity="10")

        self._run(raw_material_quantity="500", outputs=[{"product_id": self.bran.pk, "quantity": "400"}])
        tons_run = self._run(
            raw_material_id=bulk.pk,
            raw_material_quantity="2",
            outputs=[{"product_id": self.bran.pk, "quantity": "1900"}],
        )

        self.assertEqual(tons_run.raw_material_kg, Decimal("2000"))

        summary = production_summary()

        self.assertEqual(summary["raw_material_kg"], Decimal("2500"))
        by_name = {row["product_name"]: row for row in summary["raw_materials"]}
        self.assertEqual(by_name["Wheat"]["quantity"], Decimal("500"))
        self.assertEqual(by_name["Wheat (bulk)"]["unit"], "tons")
        self.assertEqual(by_name["Wheat (bulk)"]["quantity"], Decimal("2"))
        self.assertEqual(by_name["Wheat (bulk)"]["kg"], Decimal("2000"))


class ProductionApiTests(ProductionFixtureMixin, TestCase):
    def setUp(self):
        self.client = APIClient()
        self.manager = User.objects.create_user(
            email="pm@example.com",
            password="pass",
            role="production_manager",
        )
        self.cashier = User.objects.create_user(
            email="cashier@example.com",
            password="pass",
            role="cashier",
        )
        self._setup_mill()

    def test_manager_records_run(self):
        self.client.force_authenticate(self.manager)

        res = self.client.post(
            "/api/production/runs/",
            {
                "source_warehouse_id": str(self.silo.pk),
                "destination_warehouse_id": str(self.store.pk),
                "raw_material_id": str(self.wheat.pk),
                "raw_material_quantity": "500",
                "wastage_quantity": "5",
                "outputs": [{"product_id": str(self.bran.pk), "quantity": "495"}],
            },
            format="json",
        )

        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(len(res.data["outputs"]), 1)

        res = self.client.get("/api/production/runs/summary/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["run_count"], 1)

    def test_cashier_cannot_record_run(self):
        self.client.force_authenticate(self.cashier)

        res = self.client.post("/api/production/runs/", {}, format="json")

        self.assertEqual(res.status_code, 403)
