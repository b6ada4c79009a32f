# sales/models/customer.py

import uuid

from django.core.exceptions import ValidationError
from django.db import models


class Customer(models.Model):
    """
    Buyer master (dealers, retailers, walk-in regulars).
    """

    TYPE_DEALER = "dealer"
    TYPE_RETAILER = "retailer"
    TYPE_INDIVIDUAL = "individual"

    TYPES = [
        (TYPE_DEALER, "Dealer"),
        (TYPE_RETAILER, "Retailer"),
        (TYPE_INDIVIDUAL, "Individual"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=200)
    customer_type = models.CharField(max_length=16, choices=TYPES, default=TYPE_INDIVIDUAL)
    phone = models.CharField(max_length=50, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    address = models.TextField(blank=True, default="")

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]
        indexes = [
            models.Index(fields=["name"], name="customer_name_idx"),
        ]

    def clean(self):
        if not (self.name or "").strip():
            raise ValidationError({"name": "name is required"})

    def save(self, *args, **kwargs):
        self.name = (self.name or "").strip()
        self.full_clean()
        return super().save(*args, **kwargs)

    def __str__(self):
        return self.name
