from decimal import Decimal

from django.db import migrations, models

KG_PER_UNIT = {"kg": Decimal("1"), "tons": Decimal("1000")}


def fill_raw_material_kg(apps, schema_editor):
    ProductionRun = apps.get_model("production", "ProductionRun")
    for run in ProductionRun.objects.select_related("raw_material").iterator():
        factor = KG_PER_UNIT.get(run.raw_material.unit, Decimal("1"))
        run.raw_material_kg = run.raw_material_quantity * factor
        run.save(update_fields=["raw_material_kg"])


class Migration(migrations.Migration):

    dependencies = [
        ("production", "0001_initial"),
        ("products", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="productionrun",
            name="raw_material_kg",
            field=models.DecimalField(decimal_places=3, default=Decimal("0"), max_digits=14),
        ),
        migrations.RunPython(fill_raw_material_kg, migrations.RunPython.noop),
    ]
