import json
import logging

import requests
from celery import shared_task
from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.serializers.json import DjangoJSONEncoder
from django.core.validators import validate_email
from django.db import transaction
from django.template import Context, Template
from django.utils import timezone

from apps.common.phone import to_e164

from .models import Channel, DeliveryAttempt, MessageTemplate, Notification

log = logging.getLogger(__name__)


class TransientError(Exception):
    """Provider hiccup; the task is retried with backoff."""


class PermanentError(Exception):
    """The message can never be sent as is; the notification is failed."""


BUILTIN_TEMPLATES = {
    (Channel.SMS, "order_status"): {
        "body_text": "{% if message %}{{ message }}{% else %}Orden {{ order_number }}: {{ status_label }}.{% endif %}",
    },
    (Channel.SMS, "driver_assigned"): {
        "body_text": "Nueva orden asignada: {{ order_number }} en {{ restaurant }}. Recógela cuando esté lista.",
    },
    (Channel.EMAIL, "order_received"): {
        "subject": "Recibimos tu orden {{ order_number }}",
        "body_text": "Hola {{ name }}, recibimos tu orden {{ order_number }} por {{ total }}. Te avisaremos cuando esté lista.",
        "body_html": (
            "<p>Hola {{ name }},</p>"
            "<p>Recibimos tu orden <strong>{{ order_number }}</strong> por <strong>{{ total }}</strong>.</p>"
            "<p>Te avisaremos cuando esté lista.</p>"
        ),
    },
}


def render_message(template: str, channel: str, context: dict) -> dict:
    """Render subject/text/html for ``template``, preferring non-blank admin overrides."""
    override = MessageTemplate.objects.filter(code=template, channel=channel).first()
    builtin = BUILTIN_TEMPLATES.get((channel, template), {})
    ctx = Context(context or {})
    parts = ("body_text",) if channel == Channel.SMS else ("subject", "body_text", "body_html")
    out = {}
    for part in parts:
        source = (getattr(override, part, "") or "").strip() or builtin.get(part, "")
        out[part] = Template(source).render(ctx)
    return out


def _raise_for_status(provider: str, resp) -> None:
    if resp.status_code == 429 or resp.status_code >= 500:
        raise TransientError(f"{provider} answered {resp.status_code}")
    if resp.status_code >= 400:
        raise PermanentError(f"{provider} rejected the message: {resp.text[:300]}")


def _post(provider: str, url: str, **kwargs):
    try:
        resp = requests.post(url, timeout=20, **kwargs)
    except requests.RequestException as e:
        raise TransientError(f"{provider} unreachable: {e}") from e
    _raise_for_status(provider, resp)
    return resp


def send_sms(to: str, text: str) -> tuple[str, str, dict]:
    sid, token, sender = settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN, settings.TWILIO_FROM
    if not (sid and token and sender):
        raise TransientError("Twilio not configured")
    resp = _post(
        "Twilio",
        f"https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json",
        data={"From": sender, "To": to, "Body": text[:1500]},
        auth=(sid, token),
    )
    body = resp.json()
    return "twilio", body.get("sid") or "", body


def send_email(to: str, subject: str, text: str, html: str) -> tuple[str, str, dict]:
    api_key, sender = settings.SENDGRID_API_KEY, settings.SENDGRID_FROM
    if not (api_key and sender):
        raise TransientError("SendGrid not configured")
    payload = {
        "personalizations": [{"to": [{"email": to}]}],
        "from": {"email": sender},
        "subject": subject,
        "content": [{"type": "text/plain", "value": text}, {"type": "text/html", "value": html or text}],
    }
    resp = _post(
        "SendGrid",
        "https://api.sendgrid.com/v3/mail/send",
        headers={"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"},
        data=json.dumps(payload),
    )
    message_id = resp.headers.get("X-Message-Id", "")
    return "sendgrid", message_id, {"message_id": message_id}


def dispatch(n: Notification) -> tuple[str, str, dict]:
    """Send ``n``; returns (provider, provider message id, raw response)."""
    if n.channel == Channel.SMS:
        try:
            to = to_e164(n.recipient)
        except ValueError as e:
            raise PermanentError("invalid phone") from e
        text = render_message(n.template, Channel.SMS, n.context)["body_text"]
        if settings.NOTIF_DEV_MODE:
            log.info("[dev] sms to %s (%s): %s", to, n.template, text)
            return "dev", "DEV", {}
        return send_sms(to, text)
    if n.channel == Channel.EMAIL:
        try:
            validate_email(n.recipient)
        except ValidationError as e:
            raise PermanentError("invalid email") from e
        parts = render_message(n.template, Channel.EMAIL, n.context)
        if settings.NOTIF_DEV_MODE:
            log.info("[dev] email to %s (%s): %s", n.recipient, n.template, parts["subject"])
            return "dev", "DEV", {}
        return send_email(n.recipient, parts["subject"], parts["body_text"], parts["body_html"])
    raise PermanentError(f"unknown channel {n.channel!r}")


@shared_task(bind=True, max_retries=5, autoretry_for=(TransientError,), retry_backoff=True, retry_backoff_max=3600)
def send_notification(self, notification_id: str):
    with transaction.atomic():
        n = Notification.objects.select_for_update().filter(pk=notification_id).first()
        if n is None:
            log.warning("notification %s not found", notification_id)
            return
        if n.status not in (Notification.Status.QUEUED, Notification.Status.SENDING):
            return
        n.status = Notification.Status.SENDING
        n.tries += 1
        n.save(update_fields=["status", "tries", "updated_at"])

    attempt = DeliveryAttempt(notification=n)
    try:
        provider, message_id, response = dispatch(n)
    except TransientError as e:
        attempt.finish(ok=False, error=str(e))
        raise
    except PermanentError as e:
        attempt.finish(ok=False, error=str(e))
        n.mark_failed(str(e))
        log.warning("notification %s failed: %s", n.pk, e)
        return
    n.mark_sent(provider, message_id)
    attempt.finish(ok=True, response=json.loads(json.dumps(response, cls=DjangoJSONEncoder)))


@shared_task(bind=True, max_retries=3, autoretry_for=(TransientError,), retry_backoff=True, retry_backoff_max=60)
def publish_order_update(self, order_id: str, event: str):
    from redis.exceptions import RedisError

    from apps.orders.models import Order
    from apps.orders.serializers import serialize_order_summary

    from . import realtime

    order = Order.objects.select_related("driver").filter(pk=order_id).first()
    if order is None:
        log.warning("order %s vanished before its update was published", order_id)
        return
    try:
        realtime.publish(realtime.restaurant_channel(order.restaurant_id), {"event": event, "order": serialize_order_summary(order)})
    except RedisError as e:
        raise TransientError(f"redis publish failed: {e}") from e


def build_ticket(order) -> dict:
    """Kitchen ticket ("comanda") body understood by the print service."""
    return {
        "order_number": order.order_number,
        "created_at": timezone.localtime(order.created_at).strftime("%d/%m/%Y %H:%M"),
        "service_type": order.get_service_type_display(),
        "customer": {"name": order.customer_name, "phone": order.customer_phone},
        "delivery_address": order.delivery_address,
        "items": [
            {
                "name": item.name,
                "quantity": item.quantity,
                "options": item.selected_options,
                "notes": item.notes,
                "total_cents": item.total_price_cents,
            }
            for item in order.items.all()
        ],
        "notes": order.notes,
        "total_cents": order.total_cents,
        "payment_method": order.get_payment_method_display(),
    }


@shared_task(bind=True, max_retries=5, autoretry_for=(TransientError,), retry_backoff=True, retry_backoff_max=600)
def print_order_ticket(self, order_id: str):
    from apps.orders.models import Order

    url = settings.PRINT_SERVICE_URL
    if not url:
        log.info("print service not configured; skipping ticket for %s", order_id)
        return
    order = Order.objects.filter(pk=order_id).prefetch_related("items").first()
    if order is None:
        log.warning("order %s not found for printing", order_id)
        return
    headers = {"Content-Type": "application/json"}
    if settings.PRINT_SERVICE_TOKEN:
        headers["Authorization"] = f"Bearer {settings.PRINT_SERVICE_TOKEN}"
    body = {"restaurant_id": str(order.restaurant_id), "ticket": build_ticket(order)}
    try:
        resp = requests.post(url, headers=headers, data=json.dumps(body, cls=DjangoJSONEncoder), timeout=settings.PRINT_SERVICE_TIMEOUT)
    except requests.RequestException as e:
        raise TransientError(f"print service unreachable: {e}") from e
    try:
        _raise_for_status("Print service", resp)
    except PermanentError as e:
        log.error("ticket for %s rejected: %s", order.order_number, e)
        return
    log.info("ticket for %s sent to printer", order.order_number)
