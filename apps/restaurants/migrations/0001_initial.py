import django.core.validators
import uuid
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Restaurant",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=160)),
                ("address", models.CharField(blank=True, max_length=255)),
                ("phone", models.CharField(blank=True, max_length=20)),
                ("email", models.EmailField(blank=True, max_length=254)),
                ("latitude", models.DecimalField(blank=True, decimal_places=7, max_digits=10, null=True)),
                ("longitude", models.DecimalField(blank=True, decimal_places=7, max_digits=10, null=True)),
                ("zone", models.CharField(choices=[("capital", "Capital"), ("interior", "Interior")], default="capital", max_length=10)),
                ("schedule", models.JSONField(blank=True, default=dict)),
                ("is_active", models.BooleanField(default=True)),
                ("delivery_active", models.BooleanField(default=True)),
                ("pickup_active", models.BooleanField(default=True)),
                ("estimated_pickup_time", models.PositiveIntegerField(default=15, validators=[django.core.validators.MinValueValidator(1)])),
                ("estimated_delivery_time", models.PositiveIntegerField(default=35, validators=[django.core.validators.MinValueValidator(1)])),
                ("delivery_fee_cents", models.IntegerField(default=0, validators=[django.core.validators.MinValueValidator(0)])),
                ("minimum_order_cents", models.IntegerField(default=0, validators=[django.core.validators.MinValueValidator(0)])),
            ],
            options={
                "ordering": ["name"],
                "indexes": [models.Index(fields=["is_active", "zone"], name="restaurant_active_zone_idx")],
            },
        ),
    ]
