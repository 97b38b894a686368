"""Side effects of order changes, run after the transaction commits.

Dispatch is best effort: a failure here is logged and never reaches the
caller, whose transition is already committed.
"""
import logging

from apps.common.templatetags.currency import quetzales
from apps.notifications.api import Message, push_order_update, queue, request_ticket_print

from .models import Order

log = logging.getLogger(__name__)

CUSTOMER_MESSAGES = {
    "accept": "Tu orden {number} fue aceptada y está en preparación.",
    "mark_ready:pickup": "Tu orden {number} está lista para recoger.",
    "mark_ready:delivery": "Tu orden {number} está lista y pronto saldrá a entrega.",
    "pick_up": "Tu orden {number} va en camino.",
    "deliver": "Tu orden {number} fue entregada. ¡Buen provecho!",
    "cancel": "Tu orden {number} fue cancelada. Motivo: {reason}",
}


def customer_message(order: Order, event: str) -> str | None:
    template = CUSTOMER_MESSAGES.get(f"{event}:{order.service_type}") or CUSTOMER_MESSAGES.get(event)
    if not template:
        return None
    return template.format(number=order.order_number, reason=order.cancellation_reason or "-")


def _notifications_for(order: Order, event: str) -> list:
    out = []
    message = customer_message(order, event)
    if message and order.customer_phone:
        out.append(
            Message(
                channel="sms",
                recipient=order.customer_phone,
                template="order_status",
                context={
                    "message": message,
                    "order_number": order.order_number,
                    "status_label": order.get_status_display(),
                },
                order_id=order.pk,
                event=event,
                dedupe_key=f"order:{order.pk}:{event}:{order.version}",
            )
        )
    if event == "assign_driver" and order.driver_id and order.driver.phone:
        out.append(
            Message(
                channel="sms",
                recipient=order.driver.phone,
                template="driver_assigned",
                context={"order_number": order.order_number, "restaurant": order.restaurant.name},
                order_id=order.pk,
                event=event,
                dedupe_key=f"order:{order.pk}:driver:{order.driver_id}",
            )
        )
    return out


def order_changed(order_id, event: str, previous_status: str) -> None:
    order = Order.objects.select_related("restaurant", "driver").filter(pk=order_id).first()
    if order is None:
        return
    try:
        push_order_update(order.pk, event)
    except Exception:
        log.exception("order update push failed for %s", order.order_number)
    try:
        queue(_notifications_for(order, event))
    except Exception:
        log.exception("notification enqueue failed for %s (%s)", order.order_number, event)


def order_created(order_id) -> None:
    order = Order.objects.select_related("restaurant").filter(pk=order_id).first()
    if order is None:
        return
    try:
        push_order_update(order.pk, "created")
    except Exception:
        log.exception("order update push failed for %s", order.order_number)
    try:
        request_ticket_print(order.pk)
    except Exception:
        log.exception("ticket print request failed for %s", order.order_number)
    if order.customer_email:
        try:
            queue(
                [
                    Message(
                        channel="email",
                        recipient=order.customer_email,
                        template="order_received",
                        context={
                            "name": order.customer_name,
                            "order_number": order.order_number,
                            "total": quetzales(order.total_cents),
                        },
                        order_id=order.pk,
                        event="created",
                        dedupe_key=f"order:{order.pk}:received",
                    )
                ]
            )
        except Exception:
            log.exception("receipt enqueue failed for %s", order.order_number)
