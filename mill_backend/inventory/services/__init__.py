"""
PATH: inventory/services/__init__.py

Inventory services package.

Import from the concrete modules (ledger, transfers, damage, notifications).
Models import services.exceptions, so this package must stay import-free.
"""
