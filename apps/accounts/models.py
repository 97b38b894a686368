from django.contrib.auth.models import AbstractUser
from django.db import models

from apps.common.models import BaseModel


class User(BaseModel, AbstractUser):
    """Custom User with UUID primary key and timestamps.

    Staff of a single restaurant carry ``restaurant``; they only see and act
    on that restaurant's orders and drivers. ``is_staff`` users manage the
    shared menu and every driver.
    """

    email = models.EmailField("email address", blank=True)
    restaurant = models.ForeignKey(
        "restaurants.Restaurant",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="staff",
    )

    def save(self, *args, **kwargs):
        if self.email:
            self.email = str(self.email).strip().lower()
        return super().save(*args, **kwargs)

    @property
    def is_restaurant_staff(self) -> bool:
        return self.is_active and self.restaurant_id is not None
