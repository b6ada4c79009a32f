# inventory/tests/test_repacking.py

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase

from inventory.models import InventoryItem, Repacking, StockMovement
from inventory.services.exceptions import InsufficientStockError, MovementReferenceError
from inventory.services.ledger import get_or_create_inventory_item, record_movement
from inventory.services.repacking import repack_stock
from products.models import Product
from warehouses.models import Warehouse


class RepackingTests(TestCase):
    """
    GUARANTEES:
    - one OUT from the source, one IN per target, same reference
    - packed weight never exceeds source weight
    - any failure leaves every balance untouched
    """

    def setUp(self):
        self.warehouse = Warehouse.objects.create(name="Packing Hall")
        self.bulk = Product.objects.create(name="Maida (bulk)", category=Product.Category.FINISHED_GOODS)
        self.bag_10 = Product.objects.create(
            name="Maida 10kg",
            category=Product.Category.FINISHED_GOODS,
            unit=Product.Unit.BAGS,
        )
        self.bag_5 = Product.objects.create(
            name="Maida 5kg",
            category=Product.Category.FINISHED_GOODS,
            unit=Product.Unit.BAGS,
        )
        self.source, _ = get_or_create_inventory_item(warehouse=self.warehouse, product=self.bulk)
        record_movement(inventory_item=self.source, movement_type="in", quantity="1000")

    def _stock(self, item):
        return InventoryItem.objects.get(pk=item.pk).current_stock

    def test_one_out_and_one_in_per_target(self):
        repacking = repack_stock(
            warehouse=self.warehouse,
            source_item=self.source,
            source_quantity="400",
            targets=[
                {"product_id": self.bag_10.pk, "quantity": "20", "unit_weight": "10", "bag_type": "MAIDA"},
                {"product_id": self.bag_5.pk, "quantity": "39", "unit_weight": "5", "bag_size": "5kg"},
            ],
            reason="Retail order",
        )

        self.assertEqual(self._stock(self.source), Decimal("600"))
        bag_10 = InventoryItem.objects.get(warehouse=self.warehouse, product=self.bag_10)
        bag_5 = InventoryItem.objects.get(warehouse=self.warehouse, product=self.bag_5)
        self.assertEqual(bag_10.current_stock, Decimal("20"))
        self.assertEqual(bag_5.current_stock, Decimal("39"))

        self.assertEqual(repacking.pre_weight_kg, Decimal("400"))
        self.assertEqual(repacking.post_weight_kg, Decimal("395"))
        self.assertEqual(repacking.weight_difference_kg, Decimal("5"))
        self.assertEqual(repacking.targets.count(), 2)

        movements = StockMovement.objects.filter(reference_number=repacking.repacking_number)
        self.assertEqual(movements.filter(movement_type="out").count(), 1)
        self.assertEqual(movements.filter(movement_type="in").count(), 2)
        self.assertEqual(
            set(movements.values_list("reason", flat=True)),
            {f"Repacking - {repacking.repacking_number}"},
        )

    def test_bag_size_change_uses_source_unit_weight(self):
        big, _ = get_or_create_inventory_item(warehouse=self.warehouse, product=self.bag_10)
        record_movement(inventory_item=big, movement_type="in", quantity="10")

        repack_stock(
            warehouse=self.warehouse,
            source_item=big,
            source_quantity="4",
            source_unit_weight="10",
            repacking_type=Repacking.RepackingType.BAG_SIZE_CHANGE,
            targets=[{"product_id": self.bag_5.pk, "quantity": "8", "unit_weight": "5"}],
        )

        self.assertEqual(self._stock(big), Decimal("6"))
        bag_5 = InventoryItem.objects.get(warehouse=self.warehouse, product=self.bag_5)
        self.assertEqual(bag_5.current_stock, Decimal("8"))

    def test_packed_weight_above_source_is_rejected(self):
        with self.assertRaises(ValidationError):
            repack_stock(
                warehouse=self.warehouse,
                source_item=self.source,
                source_quantity="100",
                targets=[{"product_id": self.bag_10.pk, "quantity": "11", "unit_weight": "10"}],
            )

        self.assertEqual(self._stock(self.source), Decimal("1000"))
        self.assertFalse(Repacking.objects.exists())

    def test_count_unit_without_weight_is_rejected(self):
        with self.assertRaises(ValidationError):
            repack_stock(
                warehouse=self.warehouse,
                source_item=self.source,
                source_quantity="100",
                targets=[{"product_id": self.bag_10.pk, "quantity": "5"}],
            )

    def test_insufficient_source_stock_rolls_back(self):
        with self.assertRaises(InsufficientStockError):
            repack_stock(
                warehouse=self.warehouse,
                source_item=self.source,
                source_quantity="1500",
                targets=[{"product_id": self.bag_10.pk, "quantity": "100", "unit_weight": "10"}],
            )

        self.assertEqual(self._stock(self.source), Decimal("1000"))
        self.assertFalse(InventoryItem.objects.filter(product=self.bag_10, current_stock__gt=0).exists())
        self.assertFalse(Repacking.objects.exists())

    def test_source_cannot_be_a_target(self):
        with self.assertRaises(ValidationError):
            repack_stock(
                warehouse=self.warehouse,
                source_item=self.source,
                source_quantity="10",
                targets=[{"inventory_item_id": self.source.pk, "quantity": "10"}],
            )

    def test_target_from_another_warehouse_is_rejected(self):
        other = Warehouse.objects.create(name="Branch Store")
        foreign, _ = get_or_create_inventory_item(warehouse=other, product=self.bag_10)

        with self.assertRaises(MovementReferenceError):
            repack_stock(
                warehouse=self.warehouse,
                source_item=self.source,
                source_quantity="10",
                targets=[{"inventory_item_id": foreign.pk, "quantity": "1", "unit_weight": "10"}],
            )
