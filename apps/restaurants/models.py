from django.core.validators import MinValueValidator
from django.db import models

from apps.common.models import BaseModel


class Restaurant(BaseModel):
    ZONE_CAPITAL = "capital"
    ZONE_INTERIOR = "interior"
    ZONE_CHOICES = [(ZONE_CAPITAL, "Capital"), (ZONE_INTERIOR, "Interior")]

    name = models.CharField(max_length=160)
    address = models.CharField(max_length=255, blank=True)
    phone = models.CharField(max_length=20, blank=True)
    email = models.EmailField(blank=True)
    latitude = models.DecimalField(max_digits=10, decimal_places=7, null=True, blank=True)
    longitude = models.DecimalField(max_digits=10, decimal_places=7, null=True, blank=True)
    zone = models.CharField(max_length=10, choices=ZONE_CHOICES, default=ZONE_CAPITAL)
    schedule = models.JSONField(default=dict, blank=True)
    is_active = models.BooleanField(default=True)
    delivery_active = models.BooleanField(default=True)
    pickup_active = models.BooleanField(default=True)
    # minutes
    estimated_pickup_time = models.PositiveIntegerField(default=15, validators=[MinValueValidator(1)])
    estimated_delivery_time = models.PositiveIntegerField(default=35, validators=[MinValueValidator(1)])
    delivery_fee_cents = models.IntegerField(default=0, validators=[MinValueValidator(0)])
    minimum_order_cents = models.IntegerField(default=0, validators=[MinValueValidator(0)])

    class Meta:
        ordering = ["name"]
        indexes = [models.Index(fields=["is_active", "zone"], name="restaurant_active_zone_idx")]

    def __str__(self):
        return self.name

    def accepts(self, service_type: str) -> bool:
        if not self.is_active:
            return False
        if service_type == "delivery":
            return self.delivery_active
        if service_type == "pickup":
            return self.pickup_active
        return False

    def estimated_minutes(self, service_type: str) -> int:
        return self.estimated_delivery_time if service_type == "delivery" else self.estimated_pickup_time
