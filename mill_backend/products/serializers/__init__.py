from .product import ProductSerializer

__all__ = ["ProductSerializer"]
