import uuid
from decimal import Decimal

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("inventory", "0001_initial"),
        ("products", "0001_initial"),
        ("warehouses", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="ProductionRun",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("batch_number", models.CharField(blank=True, max_length=32, unique=True)),
                ("raw_material_quantity", models.DecimalField(decimal_places=3, max_digits=14)),
                ("wastage_quantity", models.DecimalField(decimal_places=3, default=Decimal("0"), max_digits=14)),
                (
                    "wastage_reason",
                    models.CharField(
                        choices=[
                            ("Processing Loss", "Processing Loss"),
                            ("Quality Issue", "Quality Issue"),
                            ("Machine Error", "Machine Error"),
                            ("Human Error", "Human Error"),
                            ("Other", "Other"),
                        ],
                        default="Processing Loss",
                        max_length=32,
                    ),
                ),
                (
                    "status",
                    models.CharField(choices=[("COMPLETED", "Completed")], default="COMPLETED", max_length=16),
                ),
                ("production_date", models.DateField(default=django.utils.timezone.localdate)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="production_runs",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "destination_warehouse",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="production_runs_in",
                        to="warehouses.warehouse",
                    ),
                ),
                (
                    "raw_material",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="production_runs",
                        to="products.product",
                    ),
                ),
                (
                    "raw_material_item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="production_runs",
                        to="inventory.inventoryitem",
                    ),
                ),
                (
                    "source_warehouse",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="production_runs_out",
                        to="warehouses.warehouse",
                    ),
                ),
            ],
            options={
                "ordering": ["-production_date", "-created_at"],
                "indexes": [models.Index(fields=["production_date"], name="production_date_idx")],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("raw_material_quantity__gt", Decimal("0"))),
                        name="production_raw_qty_gt_zero",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("wastage_quantity__gte", Decimal("0"))),
                        name="production_wastage_nonnegative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ProductionOutput",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("quantity", models.DecimalField(decimal_places=3, max_digits=14)),
                ("unit_weight", models.DecimalField(blank=True, decimal_places=3, max_digits=10, null=True)),
                (
                    "inventory_item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="production_outputs",
                        to="inventory.inventoryitem",
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="production_outputs",
                        to="products.product",
                    ),
                ),
                (
                    "run",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="outputs",
                        to="production.productionrun",
                    ),
                ),
            ],
            options={
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("quantity__gt", Decimal("0"))),
                        name="production_output_qty_gt_zero",
                    ),
                ],
            },
        ),
    ]
