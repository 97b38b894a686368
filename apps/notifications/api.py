"""Entry points other apps use to hand work to the notification workers.

Everything here only queues; sending happens in :mod:`apps.notifications.tasks`
once the surrounding transaction commits.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from functools import partial
from typing import Iterable, Optional

from django.conf import settings
from django.db import transaction

from .models import Notification
from .tasks import print_order_ticket, publish_order_update, send_notification


@dataclass
class Message:
    channel: str
    recipient: str
    template: str
    context: dict = field(default_factory=dict)
    order_id: Optional[str] = None
    event: str = ""
    dedupe_key: Optional[str] = None


def queue(messages: Iterable[Optional[Message]]) -> list[Notification]:
    """Store each message in the outbox; a ``dedupe_key`` seen before is skipped."""
    created = []
    for m in messages:
        if m is None:
            continue
        if m.dedupe_key and Notification.objects.filter(dedupe_key=m.dedupe_key).exists():
            continue
        n = Notification.objects.create(
            channel=m.channel,
            recipient=m.recipient,
            template=m.template,
            context=m.context,
            order_id=m.order_id,
            event=m.event,
            dedupe_key=m.dedupe_key,
        )
        transaction.on_commit(partial(send_notification.delay, str(n.pk)))
        created.append(n)
    return created


def push_order_update(order_id, event: str) -> None:
    if not settings.ORDER_UPDATES_ENABLED:
        return
    publish_order_update.delay(str(order_id), event)


def request_ticket_print(order_id) -> None:
    if not (settings.AUTO_PRINT_NEW_ORDERS and settings.PRINT_SERVICE_URL):
        return
    print_order_ticket.delay(str(order_id))
