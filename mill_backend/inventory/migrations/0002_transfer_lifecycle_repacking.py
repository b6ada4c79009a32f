import uuid
from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


def _actor_fk():
    return models.ForeignKey(
        blank=True,
        null=True,
        on_delete=django.db.models.deletion.SET_NULL,
        related_name="+",
        to=settings.AUTH_USER_MODEL,
    )


class Migration(migrations.Migration):

    dependencies = [
        ("inventory", "0001_initial"),
        ("warehouses", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        # ------------------------------------------------------------
        # Transfer lifecycle
        # ------------------------------------------------------------
        migrations.AlterField(
            model_name="stocktransfer",
            name="status",
            field=models.CharField(
                choices=[
                    ("PENDING", "Pending"),
                    ("APPROVED", "Approved"),
                    ("IN_TRANSIT", "In Transit"),
                    ("DELIVERED", "Delivered"),
                    ("COMPLETED", "Completed"),
                    ("CANCELLED", "Cancelled"),
                ],
                default="PENDING",
                max_length=20,
            ),
        ),
        migrations.AddField(model_name="stocktransfer", name="approved_by", field=_actor_fk()),
        migrations.AddField(
            model_name="stocktransfer",
            name="approved_at",
            field=models.DateTimeField(blank=True, null=True),
        ),
        migrations.AddField(model_name="stocktransfer", name="dispatched_by", field=_actor_fk()),
        migrations.AddField(
            model_name="stocktransfer",
            name="dispatched_at",
            field=models.DateTimeField(blank=True, null=True),
        ),
        migrations.AddField(model_name="stocktransfer", name="received_by", field=_actor_fk()),
        migrations.AddField(
            model_name="stocktransfer",
            name="received_at",
            field=models.DateTimeField(blank=True, null=True),
        ),
        migrations.AddField(
            model_name="stocktransfer",
            name="completed_at",
            field=models.DateTimeField(blank=True, null=True),
        ),
        migrations.AddField(model_name="stocktransfer", name="cancelled_by", field=_actor_fk()),
        migrations.AddField(
            model_name="stocktransfer",
            name="cancelled_at",
            field=models.DateTimeField(blank=True, null=True),
        ),
        migrations.AddField(
            model_name="stocktransfer",
            name="cancel_reason",
            field=models.CharField(blank=True, default="", max_length=255),
        ),
        migrations.AddIndex(
            model_name="stocktransfer",
            index=models.Index(fields=["status"], name="stock_transfer_status_idx"),
        ),
        migrations.AlterField(
            model_name="stocktransferitem",
            name="destination_item",
            field=models.ForeignKey(
                blank=True,
                null=True,
                on_delete=django.db.models.deletion.PROTECT,
                related_name="+",
                to="inventory.inventoryitem",
            ),
        ),
        migrations.AddField(
            model_name="stocktransferitem",
            name="received_quantity",
            field=models.DecimalField(blank=True, decimal_places=3, max_digits=14, null=True),
        ),
        migrations.AddConstraint(
            model_name="stocktransferitem",
            constraint=models.CheckConstraint(
                condition=models.Q(("received_quantity__isnull", True))
                | models.Q(
                    ("received_quantity__gte", Decimal("0")),
                    ("received_quantity__lte", models.F("quantity")),
                ),
                name="stock_transfer_item_received_in_range",
            ),
        ),
        # ------------------------------------------------------------
        # Repacking
        # ------------------------------------------------------------
        migrations.CreateModel(
            name="Repacking",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("repacking_number", models.CharField(blank=True, max_length=32, unique=True)),
                ("source_quantity", models.DecimalField(decimal_places=3, max_digits=14)),
                (
                    "repacking_type",
                    models.CharField(
                        choices=[
                            ("Bulk to Bags", "Bulk to Bags"),
                            ("Bag Size Change", "Bag Size Change"),
                            ("Quality Separation", "Quality Separation"),
                            ("Custom", "Custom"),
                        ],
                        default="Bulk to Bags",
                        max_length=32,
                    ),
                ),
                ("reason", models.CharField(blank=True, default="", max_length=255)),
                ("pre_weight_kg", models.DecimalField(decimal_places=3, max_digits=14)),
                ("post_weight_kg", models.DecimalField(decimal_places=3, max_digits=14)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="repackings",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "source_item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="repackings_out",
                        to="inventory.inventoryitem",
                    ),
                ),
                (
                    "warehouse",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="repackings",
                        to="warehouses.warehouse",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("source_quantity__gt", Decimal("0"))),
                        name="repacking_source_qty_gt_zero",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("post_weight_kg__lte", models.F("pre_weight_kg"))),
                        name="repacking_post_weight_lte_pre",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="RepackingTarget",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("quantity", models.DecimalField(decimal_places=3, max_digits=14)),
                ("unit_weight", models.DecimalField(blank=True, decimal_places=3, max_digits=10, null=True)),
                (
                    "bag_type",
                    models.CharField(
                        choices=[
                            ("ATA", "Ata"),
                            ("MAIDA", "Maida"),
                            ("SUJI", "Suji"),
                            ("FINE", "Fine"),
                            ("CUSTOM", "Custom"),
                        ],
                        default="CUSTOM",
                        max_length=10,
                    ),
                ),
                ("bag_size", models.CharField(blank=True, default="", max_length=20)),
                (
                    "inventory_item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="repackings_in",
                        to="inventory.inventoryitem",
                    ),
                ),
                (
                    "repacking",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="targets",
                        to="inventory.repacking",
                    ),
                ),
            ],
            options={
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("quantity__gt", Decimal("0"))),
                        name="repacking_target_qty_gt_zero",
                    ),
                ],
            },
        ),
    ]
