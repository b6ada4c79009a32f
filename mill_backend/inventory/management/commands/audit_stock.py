# inventory/management/commands/audit_stock.py

from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError

from inventory.services.exceptions import error_detail
from inventory.services.ledger import audit_consistency


class Command(BaseCommand):
    help = "Compare every inventory item's stock with its movement ledger (read-only)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--epsilon",
            default=None,
            help="Allowed difference before an item counts as drifted (default: INVENTORY_AUDIT_EPSILON).",
        )
        parser.add_argument(
            "--strict",
            action="store_true",
            help="Exit with status 1 when drift is found (for cron / CI).",
        )

    def handle(self, *args, **options):
        try:
            drift = audit_consistency(epsilon=options["epsilon"])
        except ValidationError as exc:
            raise CommandError(error_detail(exc))

        if not drift:
            self.stdout.write(self.style.SUCCESS("Stock ledger is consistent."))
            return

        for d in drift:
            self.stdout.write(
                f"  {d.item_name} [{d.item_id}] recorded={d.recorded} expected={d.expected} drift={d.drift}"
            )

        message = f"{len(drift)} item(s) drifted from the ledger. Run recalculate_stock to repair."
        if options["strict"]:
            raise CommandError(message, returncode=1)

        self.stdout.write(self.style.WARNING(message))
