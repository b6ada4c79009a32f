# sales/tests/test_sales.py

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from inventory.models import InventoryItem, StockMovement
from inventory.services.exceptions import InsufficientStockError
from inventory.services.ledger import get_or_create_inventory_item, record_movement
from products.models import Product
from sales.models import Customer, Sale
from sales.services.sale_lifecycle import InvalidSaleTransitionError
from sales.services.sale_service import SaleError, cancel_sale, create_sale, record_payment
from warehouses.models import Warehouse

User = get_user_model()


class SalesFixtureMixin:
    def _setup_stock(self):
        self.warehouse = Warehouse.objects.create(name="Finished Goods Store")
        self.flour = Product.objects.create(
            name="Fine Atta 20kg",
            category=Product.Category.FINISHED_GOODS,
            unit=Product.Unit.BAGS,
            price=Decimal("1500.00"),
        )
        self.bran = Product.objects.create(
            name="Bran",
            category=Product.Category.FINISHED_GOODS,
            price=Decimal("60.00"),
        )
        self.flour_item, _ = get_or_create_inventory_item(warehouse=self.warehouse, product=self.flour)
        self.bran_item, _ = get_or_create_inventory_item(warehouse=self.warehouse, product=self.bran)
        record_movement(inventory_item=self.flour_item, movement_type="in", quantity="100")
        record_movement(inventory_item=self.bran_item, movement_type="in", quantity="500")

    def _stock(self, item):
        return InventoryItem.objects.get(pk=item.pk).current_stock


class SaleServiceTests(SalesFixtureMixin, TestCase):
    """
    GUARANTEES:
    - One OUT movement per line, referencing the invoice
    - All lines are checked before any stock leaves
    - Cancel restores stock exactly once
    """

    def setUp(self):
        self.user = User.objects.create_user(
            email="cashier@example.com",
            password="pass",
            role="cashier",
        )
        self._setup_stock()

    def test_sale_deducts_stock_and_records_movements(self):
        sale = create_sale(
            warehouse_id=self.warehouse.pk,
            items=[
                {"product_id": self.flour.pk, "quantity": "10"},
                {"product_id": self.bran.pk, "quantity": "50", "unit_price": "55.00"},
            ],
            user=self.user,
        )

        self.assertTrue(sale.invoice_number.startswith("INV-"))
        self.assertEqual(sale.total_amount, Decimal("17750.00"))
        self.assertEqual(sale.payment_status, Sale.PAYMENT_PAID)
        self.assertEqual(self._stock(self.flour_item), Decimal("90"))
        self.assertEqual(self._stock(self.bran_item), Decimal("450"))

        movements = StockMovement.objects.filter(reference_number=sale.invoice_number)
        self.assertEqual(movements.count(), 2)
        self.assertEqual(
            set(movements.values_list("reason", flat=True)),
            {f"Sale - Invoice {sale.invoice_number}"},
        )

    def test_insufficient_stock_on_any_line_rejects_whole_sale(self):
        with self.assertRaises(InsufficientStockError):
            create_sale(
                warehouse_id=self.warehouse.pk,
                items=[
                    {"product_id": self.bran.pk, "quantity": "10"},
                    {"product_id": self.flour.pk, "quantity": "101"},
                ],
            )

        self.assertFalse(Sale.objects.exists())
        self.assertEqual(self._stock(self.bran_item), Decimal("500"))
        self.assertEqual(StockMovement.objects.filter(movement_type="out").count(), 0)

    def test_duplicate_lines_are_checked_together(self):
        with self.assertRaises(InsufficientStockError):
            create_sale(
                warehouse_id=self.warehouse.pk,
                items=[
                    {"product_id": self.flour.pk, "quantity": "60"},
                    {"product_id": self.flour.pk, "quantity": "60"},
                ],
            )
        self.assertEqual(self._stock(self.flour_item), Decimal("100"))

    def test_product_not_stocked_in_warehouse_is_rejected(self):
        other = Warehouse.objects.create(name="Branch Store")

        with self.assertRaises(InsufficientStockError):
            create_sale(warehouse_id=other.pk, items=[{"product_id": self.flour.pk, "quantity": "1"}])

    def test_payment_status_is_derived(self):
        customer = Customer.objects.create(name="Al-Madina Traders", customer_type=Customer.TYPE_DEALER)

        partial = create_sale(
            warehouse_id=self.warehouse.pk,
            customer_id=customer.pk,
            items=[{"product_id": self.flour.pk, "quantity": "2"}],
            paid_amount="1000.00",
        )
        credit = create_sale(
            warehouse_id=self.warehouse.pk,
            customer_id=customer.pk,
            items=[{"product_id": self.flour.pk, "quantity": "1"}],
            payment_method=Sale.METHOD_CREDIT,
        )

        self.assertEqual(partial.payment_status, Sale.PAYMENT_PARTIAL)
        self.assertEqual(partial.customer_name, "Al-Madina Traders")
        self.assertEqual(credit.payment_status, Sale.PAYMENT_PENDING)

        credit = record_payment(sale_id=credit.pk, amount="1500.00")
        self.assertEqual(credit.payment_status, Sale.PAYMENT_PAID)

        with self.assertRaises(SaleError):
            record_payment(sale_id=credit.pk, amount="1.00")

    def test_discount_cannot_exceed_subtotal(self):
        with self.assertRaises(SaleError):
            create_sale(
                warehouse_id=self.warehouse.pk,
                items=[{"product_id": self.bran.pk, "quantity": "1"}],
                discount_amount="61.00",
            )

    def test_cancel_restores_stock_once(self):
        sale = create_sale(
            warehouse_id=self.warehouse.pk,
            items=[{"product_id": self.flour.pk, "quantity": "25"}],
        )

        cancelled = cancel_sale(sale_id=sale.pk, user=self.user, reason="Customer returned")

        self.assertEqual(cancelled.status, Sale.STATUS_CANCELLED)
        self.assertIsNotNone(cancelled.cancelled_at)
        self.assertEqual(self._stock(self.flour_item), Decimal("100"))
        self.assertTrue(
            StockMovement.objects.filter(
                reason=f"Sale Cancelled - Invoice {sale.invoice_number}",
                movement_type="in",
            ).exists()
        )

        with self.assertRaises(InvalidSaleTransitionError):
            cancel_sale(sale_id=sale.pk)
        self.assertEqual(self._stock(self.flour_item), Decimal("100"))

    def test_financial_fields_are_immutable(self):
        sale = create_sale(
            warehouse_id=self.warehouse.pk,
            items=[{"product_id": self.bran.pk, "quantity": "1"}],
        )
        sale.total_amount = Decimal("1.00")

        with self.assertRaises(ValueError):
            sale.save()


class SaleApiTests(SalesFixtureMixin, TestCase):
    def setUp(self):
        self.client = APIClient()
        self.cashier = User.objects.create_user(
            email="cashier@example.com",
            password="pass",
            role="cashier",
        )
        self.sales_manager = User.objects.create_user(
            email="sm@example.com",
            password="pass",
            role="sales_manager",
        )
        self.employee = User.objects.create_user(
            email="emp@example.com",
            password="pass",
            role="employee",
        )
        self._setup_stock()

    def _create(self, quantity="5"):
        return self.client.post(
            "/api/sales/",
            {
                "warehouse_id": str(self.warehouse.pk),
                "customer_name": "Walk-in",
                "items": [{"product_id": str(self.flour.pk), "quantity": quantity}],
            },
            format="json",
        )

    def test_cashier_can_sell(self):
        self.client.force_authenticate(self.cashier)

        res = self._create()

        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(res.data["total_amount"], "7500.00")
        self.assertEqual(res.data["payment_status"], "Paid")
        self.assertEqual(len(res.data["items"]), 1)
        self.assertEqual(self._stock(self.flour_item), Decimal("95"))

    def test_oversell_returns_400(self):
        self.client.force_authenticate(self.cashier)

        res = self._create(quantity="500")

        self.assertEqual(res.status_code, 400)
        self.assertIn("Insufficient stock", res.data["detail"])

    def test_credit_sale_is_settled_through_payments(self):
        self.client.force_authenticate(self.cashier)
        res = self.client.post(
            "/api/sales/",
            {
                "warehouse_id": str(self.warehouse.pk),
                "payment_method": "credit",
                "items": [{"product_id": str(self.flour.pk), "quantity": "2"}],
            },
            format="json",
        )
        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(res.data["payment_status"], "Pending")
        sale_id = res.data["id"]

        res = self.client.post(f"/api/sales/{sale_id}/payments/", {"amount": "1000.00"}, format="json")
        self.assertEqual(res.status_code, 200, res.data)
        self.assertEqual(res.data["payment_status"], "Partial")
        self.assertEqual(res.data["balance_due"], "2000.00")

        res = self.client.post(f"/api/sales/{sale_id}/payments/", {"amount": "2500.00"}, format="json")
        self.assertEqual(res.status_code, 400)

    def test_cashier_cannot_cancel(self):
        self.client.force_authenticate(self.cashier)
        sale_id = self._create().data["id"]

        res = self.client.post(f"/api/sales/{sale_id}/cancel/", {}, format="json")

        self.assertEqual(res.status_code, 403)

    def test_sales_manager_can_cancel(self):
        self.client.force_authenticate(self.sales_manager)
        sale_id = self._create().data["id"]

        res = self.client.post(f"/api/sales/{sale_id}/cancel/", {"reason": "wrong item"}, format="json")

        self.assertEqual(res.status_code, 200, res.data)
        self.assertEqual(res.data["status"], "CANCELLED")

        again = self.client.post(f"/api/sales/{sale_id}/cancel/", {}, format="json")
        self.assertEqual(again.status_code, 400)

    def test_employee_cannot_see_sales(self):
        self.client.force_authenticate(self.employee)

        self.assertEqual(self.client.get("/api/sales/").status_code, 403)

    def test_customers_route_is_not_shadowed(self):
        self.client.force_authenticate(self.cashier)

        res = self.client.post("/api/sales/customers/", {"name": "City Bakery"}, format="json")
        self.assertEqual(res.status_code, 201, res.data)

        res = self.client.get("/api/sales/customers/")
        self.assertEqual(res.status_code, 200)
