import django.db.models.deletion
import django.utils.timezone
import uuid
from django.db import migrations, models


CHANNEL_CHOICES = [("sms", "SMS"), ("email", "Email")]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("orders", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Notification",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("event", models.CharField(blank=True, max_length=40)),
                ("channel", models.CharField(choices=CHANNEL_CHOICES, max_length=10)),
                ("recipient", models.CharField(max_length=200)),
                ("template", models.CharField(max_length=80)),
                ("context", models.JSONField(blank=True, default=dict)),
                (
                    "status",
                    models.CharField(
                        choices=[("queued", "En cola"), ("sending", "Enviando"), ("sent", "Enviada"), ("failed", "Fallida")],
                        db_index=True,
                        default="queued",
                        max_length=20,
                    ),
                ),
                ("provider", models.CharField(blank=True, choices=[("twilio", "Twilio"), ("sendgrid", "SendGrid"), ("dev", "Desarrollo")], max_length=20)),
                ("provider_message_id", models.CharField(blank=True, max_length=120)),
                ("error", models.TextField(blank=True)),
                ("tries", models.PositiveIntegerField(default=0)),
                ("dedupe_key", models.CharField(blank=True, max_length=120, null=True, unique=True)),
                ("sent_at", models.DateTimeField(blank=True, null=True)),
                (
                    "order",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="notifications",
                        to="orders.order",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["status", "created_at"], name="notif_status_created_idx")],
            },
        ),
        migrations.CreateModel(
            name="DeliveryAttempt",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("started_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("finished_at", models.DateTimeField(blank=True, null=True)),
                ("ok", models.BooleanField(default=False)),
                ("response", models.JSONField(blank=True, default=dict)),
                ("error", models.TextField(blank=True)),
                (
                    "notification",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="delivery_attempts",
                        to="notifications.notification",
                    ),
                ),
            ],
        ),
        migrations.CreateModel(
            name="MessageTemplate",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("code", models.CharField(max_length=80)),
                ("channel", models.CharField(choices=CHANNEL_CHOICES, max_length=10)),
                ("subject", models.CharField(blank=True, max_length=200)),
                ("body_text", models.TextField(blank=True)),
                ("body_html", models.TextField(blank=True)),
            ],
            options={
                "constraints": [models.UniqueConstraint(fields=("code", "channel"), name="uniq_message_template")],
            },
        ),
    ]
