from django.core.validators import MinValueValidator
from django.db import models

from apps.common.codes import order_number
from apps.common.models import BaseModel


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pendiente"
    CONFIRMED = "confirmed", "Confirmada"
    PREPARING = "preparing", "En preparación"
    READY = "ready", "Lista"
    OUT_FOR_DELIVERY = "out_for_delivery", "En camino"
    DELIVERED = "delivered", "Entregada"
    COMPLETED = "completed", "Completada"
    CANCELLED = "cancelled", "Cancelada"


class ServiceType(models.TextChoices):
    PICKUP = "pickup", "Para llevar"
    DELIVERY = "delivery", "A domicilio"


class ActorType(models.TextChoices):
    USER = "user", "Restaurante"
    CUSTOMER = "customer", "Cliente"
    DRIVER = "driver", "Repartidor"
    SYSTEM = "system", "Sistema"


class Order(BaseModel):
    PAYMENT_STATUS_CHOICES = [("pending", "Pendiente"), ("paid", "Pagado"), ("refunded", "Reembolsado")]
    PAYMENT_METHOD_CHOICES = [("cash", "Efectivo"), ("card", "Tarjeta"), ("online", "En línea")]

    restaurant = models.ForeignKey("restaurants.Restaurant", on_delete=models.PROTECT, related_name="orders")
    order_number = models.CharField(max_length=20, unique=True)
    status = models.CharField(max_length=20, choices=OrderStatus.choices, default=OrderStatus.PENDING)
    service_type = models.CharField(max_length=10, choices=ServiceType.choices)
    zone = models.CharField(max_length=10, default="capital")
    payment_status = models.CharField(max_length=10, choices=PAYMENT_STATUS_CHOICES, default="pending")
    payment_method = models.CharField(max_length=10, choices=PAYMENT_METHOD_CHOICES, default="cash")
    customer_name = models.CharField(max_length=160)
    customer_phone = models.CharField(max_length=20, blank=True)
    customer_email = models.EmailField(blank=True)
    delivery_address = models.JSONField(blank=True, null=True)
    notes = models.TextField(blank=True)
    subtotal_cents = models.IntegerField(validators=[MinValueValidator(0)])
    delivery_fee_cents = models.IntegerField(default=0, validators=[MinValueValidator(0)])
    discount_cents = models.IntegerField(default=0, validators=[MinValueValidator(0)])
    total_cents = models.IntegerField(validators=[MinValueValidator(0)])
    driver = models.ForeignKey("drivers.Driver", on_delete=models.SET_NULL, null=True, blank=True, related_name="orders")
    estimated_ready_at = models.DateTimeField(null=True, blank=True)
    ready_at = models.DateTimeField(null=True, blank=True)
    assigned_to_driver_at = models.DateTimeField(null=True, blank=True)
    picked_up_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.CharField(max_length=255, blank=True)
    version = models.PositiveIntegerField(default=1)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["restaurant", "status", "created_at"], name="order_restaurant_status_idx"),
            models.Index(fields=["driver", "status"], name="order_driver_status_idx"),
        ]

    def __str__(self):
        return self.order_number or str(self.pk)

    def save(self, *args, **kwargs):
        if not self.order_number:
            self.order_number = order_number(lambda code: type(self).objects.filter(order_number=code).exists())
        super().save(*args, **kwargs)

    @property
    def is_delivery(self) -> bool:
        return self.service_type == ServiceType.DELIVERY

    @property
    def is_pickup(self) -> bool:
        return self.service_type == ServiceType.PICKUP

    def delivery_point(self):
        """(lat, lng) from the address snapshot, or None."""
        addr = self.delivery_address or {}
        lat, lng = addr.get("latitude"), addr.get("longitude")
        if lat in (None, "") or lng in (None, ""):
            return None
        return lat, lng


class OrderItem(BaseModel):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey("menu.Product", on_delete=models.SET_NULL, null=True, blank=True, related_name="+")
    variant = models.ForeignKey("menu.ProductVariant", on_delete=models.SET_NULL, null=True, blank=True, related_name="+")
    combo = models.ForeignKey("menu.Combo", on_delete=models.SET_NULL, null=True, blank=True, related_name="+")
    product_snapshot = models.JSONField(default=dict)
    quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    unit_price_cents = models.IntegerField(validators=[MinValueValidator(0)])
    options_price_cents = models.IntegerField(default=0)
    total_price_cents = models.IntegerField(validators=[MinValueValidator(0)])
    selected_options = models.JSONField(default=list, blank=True)
    notes = models.CharField(max_length=255, blank=True)

    class Meta:
        ordering = ["created_at"]

    @property
    def name(self) -> str:
        snap = self.product_snapshot or {}
        variant = snap.get("variant")
        return f"{snap.get('name', '')} {variant}".strip() if variant else snap.get("name", "")


class OrderStatusHistory(models.Model):
    """Append-only log; the auto id keeps rows in write order."""

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="status_history")
    previous_status = models.CharField(max_length=20, choices=OrderStatus.choices, blank=True)
    status = models.CharField(max_length=20, choices=OrderStatus.choices)
    changed_by_type = models.CharField(max_length=10, choices=ActorType.choices)
    changed_by_id = models.CharField(max_length=64, blank=True)
    notes = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["id"]
        verbose_name_plural = "order status history"
        indexes = [
            models.Index(fields=["order", "created_at"], name="order_history_idx"),
        ]
