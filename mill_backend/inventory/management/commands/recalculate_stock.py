# inventory/management/commands/recalculate_stock.py

from django.core.management.base import BaseCommand

from inventory.services.ledger import recalculate_all


class Command(BaseCommand):
    help = (
        "Replay the whole stock ledger: reset every inventory item to 0, fold all "
        "movements in creation order and persist the results. Run with writers stopped."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Report what would change without writing.",
        )

    def handle(self, *args, **options):
        dry_run = options["dry_run"]

        self.stdout.write(self.style.WARNING("Replaying stock ledger" + (" (dry run)..." if dry_run else "...")))

        summary = recalculate_all(dry_run=dry_run)

        for c in summary.corrections:
            self.stdout.write(f"  {c.item_name} [{c.item_id}]: {c.before} -> {c.after}")

        if summary.negative_items:
            self.stdout.write(
                self.style.ERROR(
                    f"{len(summary.negative_items)} item(s) replay to a negative balance: "
                    + ", ".join(summary.negative_items)
                )
            )

        if summary.movements_skipped:
            self.stdout.write(
                self.style.WARNING(f"Skipped {summary.movements_skipped} movement(s) with no inventory item.")
            )

        verb = "would be corrected" if dry_run else "corrected"
        self.stdout.write(
            self.style.SUCCESS(
                f"Items: {summary.items_processed}, movements replayed: {summary.movements_replayed}, "
                f"{len(summary.corrections)} {verb}."
            )
        )
