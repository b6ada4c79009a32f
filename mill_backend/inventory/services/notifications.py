# inventory/services/notifications.py

"""
NOTIFICATIONS

- Raised after an outgoing movement leaves an item Low / Out of Stock.
- At most one unresolved low-stock notification per item at a time.
- Low-stock alerts are turned off with settings.INVENTORY_LOW_STOCK_NOTIFICATIONS = False.
- Other flows (production runs) raise their alerts through notify().
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from inventory.models import InventoryItem, Notification

logger = logging.getLogger(__name__)


def notify_if_low_stock(item: InventoryItem) -> Notification | None:
    if not getattr(settings, "INVENTORY_LOW_STOCK_NOTIFICATIONS", True):
        return None

    if item.status not in {InventoryItem.Status.LOW_STOCK, InventoryItem.Status.OUT_OF_STOCK}:
        return None

    open_exists = (
        Notification.objects.filter(
            type=Notification.Type.LOW_STOCK,
            inventory_item_id=item.pk,
        )
        .exclude(status=Notification.Status.RESOLVED)
        .exists()
    )
    if open_exists:
        return None

    out = item.status == InventoryItem.Status.OUT_OF_STOCK
    warehouse_name = getattr(item.warehouse, "name", "warehouse")

    notification = Notification.objects.create(
        type=Notification.Type.LOW_STOCK,
        priority=Notification.Priority.CRITICAL if out else Notification.Priority.HIGH,
        title=f"{'Out of stock' if out else 'Low stock'}: {item.name}",
        message=(
            f"{item.name} at {warehouse_name} is at {item.current_stock} {item.unit} "
            f"(minimum {item.minimum_stock} {item.unit})."
        ),
        inventory_item=item,
    )

    logger.info(
        "low stock notification raised",
        extra={"inventory_item_id": str(item.pk), "notification_id": str(notification.pk)},
    )
    return notification


def notify(
    *,
    type: str,
    title: str,
    message: str = "",
    priority: str = Notification.Priority.MEDIUM,
    inventory_item: InventoryItem | None = None,
) -> Notification:
    """Raise a flow notification (production finished, large sale, ...)."""
    return Notification.objects.create(
        type=type,
        priority=priority,
        title=title[:255],
        message=message,
        inventory_item=inventory_item,
    )


def mark_read(notification: Notification) -> Notification:
    if notification.status == Notification.Status.UNREAD:
        notification.status = Notification.Status.READ
        notification.save(update_fields=["status", "updated_at"])
    return notification


@transaction.atomic
def mark_all_read() -> int:
    return Notification.objects.filter(status=Notification.Status.UNREAD).update(
        status=Notification.Status.READ,
        updated_at=timezone.now(),
    )


def resolve(notification: Notification) -> Notification:
    if notification.status != Notification.Status.RESOLVED:
        notification.status = Notification.Status.RESOLVED
        notification.save(update_fields=["status", "updated_at"])
    return notification
