import django.core.validators
import django.db.models.deletion
import uuid
from django.db import migrations, models


STATUS_CHOICES = [
    ("pending", "Pendiente"),
    ("confirmed", "Confirmada"),
    ("preparing", "En preparación"),
    ("ready", "Lista"),
    ("out_for_delivery", "En camino"),
    ("delivered", "Entregada"),
    ("completed", "Completada"),
    ("cancelled", "Cancelada"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("restaurants", "0001_initial"),
        ("drivers", "0001_initial"),
        ("menu", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Order",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("order_number", models.CharField(max_length=20, unique=True)),
                ("status", models.CharField(choices=STATUS_CHOICES, default="pending", max_length=20)),
                ("service_type", models.CharField(choices=[("pickup", "Para llevar"), ("delivery", "A domicilio")], max_length=10)),
                ("zone", models.CharField(default="capital", max_length=10)),
                ("payment_status", models.CharField(choices=[("pending", "Pendiente"), ("paid", "Pagado"), ("refunded", "Reembolsado")], default="pending", max_length=10)),
                ("payment_method", models.CharField(choices=[("cash", "Efectivo"), ("card", "Tarjeta"), ("online", "En línea")], default="cash", max_length=10)),
                ("customer_name", models.CharField(max_length=160)),
                ("customer_phone", models.CharField(blank=True, max_length=20)),
                ("customer_email", models.EmailField(blank=True, max_length=254)),
                ("delivery_address", models.JSONField(blank=True, null=True)),
                ("notes", models.TextField(blank=True)),
                ("subtotal_cents", models.IntegerField(validators=[django.core.validators.MinValueValidator(0)])),
                ("delivery_fee_cents", models.IntegerField(default=0, validators=[django.core.validators.MinValueValidator(0)])),
                ("discount_cents", models.IntegerField(default=0, validators=[django.core.validators.MinValueValidator(0)])),
                ("total_cents", models.IntegerField(validators=[django.core.validators.MinValueValidator(0)])),
                ("estimated_ready_at", models.DateTimeField(blank=True, null=True)),
                ("ready_at", models.DateTimeField(blank=True, null=True)),
                ("assigned_to_driver_at", models.DateTimeField(blank=True, null=True)),
                ("picked_up_at", models.DateTimeField(blank=True, null=True)),
                ("delivered_at", models.DateTimeField(blank=True, null=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("cancellation_reason", models.CharField(blank=True, max_length=255)),
                ("version", models.PositiveIntegerField(default=1)),
                ("driver", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="orders", to="drivers.driver")),
                ("restaurant", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="orders", to="restaurants.restaurant")),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["restaurant", "status", "created_at"], name="order_restaurant_status_idx"),
                    models.Index(fields=["driver", "status"], name="order_driver_status_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="OrderItem",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("product_snapshot", models.JSONField(default=dict)),
                ("quantity", models.PositiveIntegerField(default=1, validators=[django.core.validators.MinValueValidator(1)])),
                ("unit_price_cents", models.IntegerField(validators=[django.core.validators.MinValueValidator(0)])),
                ("options_price_cents", models.IntegerField(default=0)),
                ("total_price_cents", models.IntegerField(validators=[django.core.validators.MinValueValidator(0)])),
                ("selected_options", models.JSONField(blank=True, default=list)),
                ("notes", models.CharField(blank=True, max_length=255)),
                ("combo", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to="menu.combo")),
                ("order", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="items", to="orders.order")),
                ("product", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to="menu.product")),
                ("variant", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to="menu.productvariant")),
            ],
            options={"ordering": ["created_at"]},
        ),
        migrations.CreateModel(
            name="OrderStatusHistory",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("previous_status", models.CharField(blank=True, choices=STATUS_CHOICES, max_length=20)),
                ("status", models.CharField(choices=STATUS_CHOICES, max_length=20)),
                ("changed_by_type", models.CharField(choices=[("user", "Restaurante"), ("customer", "Cliente"), ("driver", "Repartidor"), ("system", "Sistema")], max_length=10)),
                ("changed_by_id", models.CharField(blank=True, max_length=64)),
                ("notes", models.CharField(blank=True, max_length=255)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("order", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="status_history", to="orders.order")),
            ],
            options={
                "ordering": ["id"],
                "verbose_name_plural": "order status history",
                "indexes": [models.Index(fields=["order", "created_at"], name="order_history_idx")],
            },
        ),
    ]
