from datetime import timedelta

from django.contrib.auth.hashers import check_password, make_password
from django.db import models
from django.utils import timezone

from apps.common.models import BaseModel

ACTIVE_DELIVERY_STATUS = "out_for_delivery"
ONLINE_WINDOW = timedelta(minutes=5)


class DriverQuerySet(models.QuerySet):
    def active(self):
        return self.filter(is_active=True)

    def available(self):
        return self.filter(is_active=True, is_available=True)

    def for_restaurant(self, restaurant):
        return self.filter(restaurant=restaurant)

    def without_active_order(self):
        return self.exclude(orders__status=ACTIVE_DELIVERY_STATUS)


class Driver(BaseModel):
    restaurant = models.ForeignKey("restaurants.Restaurant", on_delete=models.CASCADE, related_name="drivers")
    name = models.CharField(max_length=160)
    email = models.EmailField(unique=True)
    phone = models.CharField(max_length=20, blank=True)
    password = models.CharField(max_length=128, blank=True)
    is_active = models.BooleanField(default=True)
    is_available = models.BooleanField(default=False)
    current_latitude = models.DecimalField(max_digits=11, decimal_places=8, null=True, blank=True)
    current_longitude = models.DecimalField(max_digits=11, decimal_places=8, null=True, blank=True)
    last_location_update = models.DateTimeField(null=True, blank=True)
    last_login_at = models.DateTimeField(null=True, blank=True)
    last_activity_at = models.DateTimeField(null=True, blank=True)

    objects = DriverQuerySet.as_manager()

    class Meta:
        ordering = ["name"]
        indexes = [models.Index(fields=["restaurant", "is_active", "is_available"], name="driver_availability_idx")]

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        if self.email:
            self.email = self.email.strip().lower()
        super().save(*args, **kwargs)

    def set_password(self, raw: str) -> None:
        self.password = make_password(raw)

    def check_password(self, raw: str) -> bool:
        if not self.password:
            return False
        return check_password(raw, self.password)

    def has_active_order(self) -> bool:
        return self.orders.filter(status=ACTIVE_DELIVERY_STATUS).exists()

    @property
    def is_online(self) -> bool:
        return bool(self.last_activity_at and timezone.now() - self.last_activity_at <= ONLINE_WINDOW)

    @property
    def status(self) -> str:
        if not self.is_active:
            return "inactive"
        if self.has_active_order():
            return "busy"
        return "available" if self.is_available else "offline"

    def go_online(self) -> None:
        self.is_available = True
        self.last_activity_at = timezone.now()
        self.save(update_fields=["is_available", "last_activity_at", "updated_at"])

    def go_offline(self) -> None:
        self.is_available = False
        self.last_activity_at = timezone.now()
        self.save(update_fields=["is_available", "last_activity_at", "updated_at"])

    def update_location(self, lat, lng) -> None:
        now = timezone.now()
        self.current_latitude = lat
        self.current_longitude = lng
        self.last_location_update = now
        self.last_activity_at = now
        self.save(update_fields=["current_latitude", "current_longitude", "last_location_update", "last_activity_at", "updated_at"])

    def touch(self) -> None:
        self.last_activity_at = timezone.now()
        type(self).objects.filter(pk=self.pk).update(last_activity_at=self.last_activity_at)
