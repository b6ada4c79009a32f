import uuid
from decimal import Decimal

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("code", models.CharField(blank=True, max_length=32, unique=True)),
                ("name", models.CharField(db_index=True, max_length=255)),
                (
                    "category",
                    models.CharField(
                        choices=[
                            ("Raw Materials", "Raw Materials"),
                            ("Finished Goods", "Finished Goods"),
                            ("Packaging Materials", "Packaging Materials"),
                        ],
                        max_length=32,
                    ),
                ),
                ("subcategory", models.CharField(blank=True, default="", max_length=100)),
                (
                    "unit",
                    models.CharField(
                        choices=[("kg", "Kilogram"), ("tons", "Tons"), ("bags", "Bags"), ("pcs", "Pieces")],
                        default="kg",
                        max_length=10,
                    ),
                ),
                ("price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("purchase_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                (
                    "minimum_stock",
                    models.DecimalField(
                        decimal_places=3,
                        default=Decimal("0"),
                        help_text="Default low-stock threshold copied onto new inventory items.",
                        max_digits=14,
                    ),
                ),
                ("description", models.TextField(blank=True, default="")),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["name"],
                "indexes": [models.Index(fields=["category"], name="product_category_idx")],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("price__gte", Decimal("0.00"))),
                        name="product_price_nonnegative",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("purchase_price__gte", Decimal("0.00"))),
                        name="product_purchase_price_nonnegative",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("minimum_stock__gte", Decimal("0"))),
                        name="product_minimum_stock_nonnegative",
                    ),
                ],
            },
        ),
    ]
