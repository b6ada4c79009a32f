from .warehouse import WarehouseSerializer

__all__ = ["WarehouseSerializer"]
