from .warehouse import WarehouseViewSet

__all__ = ["WarehouseViewSet"]
