from .customer import CustomerSerializer
from .sale import (
    PaymentInputSerializer,
    SaleCancelSerializer,
    SaleCreateSerializer,
    SaleItemSerializer,
    SaleLineInputSerializer,
    SaleSerializer,
)

__all__ = [
    "CustomerSerializer",
    "PaymentInputSerializer",
    "SaleCancelSerializer",
    "SaleCreateSerializer",
    "SaleItemSerializer",
    "SaleLineInputSerializer",
    "SaleSerializer",
]
