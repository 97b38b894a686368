import django.db.models.deletion
import uuid
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("restaurants", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Driver",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=160)),
                ("email", models.EmailField(max_length=254, unique=True)),
                ("phone", models.CharField(blank=True, max_length=20)),
                ("password", models.CharField(blank=True, max_length=128)),
                ("is_active", models.BooleanField(default=True)),
                ("is_available", models.BooleanField(default=False)),
                ("current_latitude", models.DecimalField(blank=True, decimal_places=8, max_digits=11, null=True)),
                ("current_longitude", models.DecimalField(blank=True, decimal_places=8, max_digits=11, null=True)),
                ("last_location_update", models.DateTimeField(blank=True, null=True)),
                ("last_login_at", models.DateTimeField(blank=True, null=True)),
                ("last_activity_at", models.DateTimeField(blank=True, null=True)),
                ("restaurant", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="drivers", to="restaurants.restaurant")),
            ],
            options={
                "ordering": ["name"],
                "indexes": [models.Index(fields=["restaurant", "is_active", "is_available"], name="driver_availability_idx")],
            },
        ),
    ]
