from django.db import models
from django.utils import timezone

from apps.common.models import BaseModel


class Channel(models.TextChoices):
    SMS = "sms", "SMS"
    EMAIL = "email", "Email"


class Notification(BaseModel):
    """Outbox row for one customer or driver message; sent by ``tasks.send_notification``."""

    class Status(models.TextChoices):
        QUEUED = "queued", "En cola"
        SENDING = "sending", "Enviando"
        SENT = "sent", "Enviada"
        FAILED = "failed", "Fallida"

    PROVIDER_CHOICES = [("twilio", "Twilio"), ("sendgrid", "SendGrid"), ("dev", "Desarrollo")]

    order = models.ForeignKey("orders.Order", on_delete=models.SET_NULL, null=True, blank=True, related_name="notifications")
    event = models.CharField(max_length=40, blank=True)
    channel = models.CharField(max_length=10, choices=Channel.choices)
    recipient = models.CharField(max_length=200)
    template = models.CharField(max_length=80)
    context = models.JSONField(default=dict, blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.QUEUED, db_index=True)
    provider = models.CharField(max_length=20, choices=PROVIDER_CHOICES, blank=True)
    provider_message_id = models.CharField(max_length=120, blank=True)
    error = models.TextField(blank=True)
    tries = models.PositiveIntegerField(default=0)
    dedupe_key = models.CharField(max_length=120, blank=True, null=True, unique=True)
    sent_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "created_at"], name="notif_status_created_idx"),
        ]

    def __str__(self):
        return f"{self.channel}:{self.template} -> {self.recipient}"

    def mark_sent(self, provider: str, message_id: str = ""):
        self.status = self.Status.SENT
        self.provider = provider
        self.provider_message_id = message_id or ""
        self.sent_at = timezone.now()
        self.save(update_fields=["status", "provider", "provider_message_id", "sent_at", "updated_at"])

    def mark_failed(self, error: str):
        self.status = self.Status.FAILED
        self.error = error
        self.save(update_fields=["status", "error", "updated_at"])


class DeliveryAttempt(BaseModel):
    notification = models.ForeignKey(Notification, on_delete=models.CASCADE, related_name="delivery_attempts")
    started_at = models.DateTimeField(default=timezone.now)
    finished_at = models.DateTimeField(blank=True, null=True)
    ok = models.BooleanField(default=False)
    response = models.JSONField(default=dict, blank=True)
    error = models.TextField(blank=True)

    def finish(self, *, ok: bool, response: dict | None = None, error: str = ""):
        self.ok = ok
        self.response = response or {}
        self.error = error
        self.finished_at = timezone.now()
        self.save()


class MessageTemplate(BaseModel):
    """Admin-editable override of a built-in message; blank fields keep the default."""

    code = models.CharField(max_length=80)
    channel = models.CharField(max_length=10, choices=Channel.choices)
    subject = models.CharField(max_length=200, blank=True)
    body_text = models.TextField(blank=True)
    body_html = models.TextField(blank=True)

    class Meta:
        constraints = [models.UniqueConstraint(fields=["code", "channel"], name="uniq_message_template")]

    def __str__(self):
        return f"{self.code} ({self.channel})"
