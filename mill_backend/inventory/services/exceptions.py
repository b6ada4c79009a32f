# inventory/services/exceptions.py

"""
STOCK LEDGER ERRORS

Taxonomy:
- Validation problems (bad quantity, unknown movement type) are raised as
  django.core.exceptions.ValidationError.
- Referential problems (unknown item / warehouse, mismatched warehouse)
  raise MovementReferenceError.
- Outgoing quantity above current stock raises InsufficientStockError.

Consistency drift is never raised inline; it is reported by the audit.
"""


class LedgerError(ValueError):
    """Base class for stock-ledger failures that must reach the caller."""


class MovementReferenceError(LedgerError):
    pass


class InsufficientStockError(LedgerError):
    def __init__(self, *, item_name: str, available, requested):
        self.item_name = item_name
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for {item_name}: available={available}, requested={requested}"
        )


class CapacityExceededError(LedgerError):
    pass


class TransferStateError(LedgerError):
    """Transfer action not allowed from its current status."""


def error_detail(exc: Exception) -> str:
    """
    Flatten a service error into the {"detail": ...} text views return.
    Django ValidationError str() is a list repr, so join its messages instead.
    """
    messages = getattr(exc, "messages", None)
    if messages:
        return "; ".join(str(m) for m in messages)
    return str(exc)
