"""Order status state machine.

Every status change goes through :func:`apply`, which locks the order row,
re-checks the transition against the table below, bumps ``version``, appends a
history row and schedules notifications for after the commit. Views and
templates ask :func:`allowed` / :func:`flags` instead of comparing statuses.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Mapping, Optional

from django.db import transaction
from django.utils import timezone

from . import events
from .models import ActorType, Order, OrderStatus, OrderStatusHistory, ServiceType

log = logging.getLogger(__name__)

S = OrderStatus


class InvalidTransition(Exception):
    def __init__(self, message: str, *, event: str = "", status: str = ""):
        super().__init__(message)
        self.message = message
        self.event = event
        self.status = status


class StaleOrder(InvalidTransition):
    pass


def _both(*states) -> dict[str, frozenset]:
    return {ServiceType.PICKUP: frozenset(states), ServiceType.DELIVERY: frozenset(states)}


def _delivery(*states) -> dict[str, frozenset]:
    return {ServiceType.DELIVERY: frozenset(states)}


@dataclass(frozen=True)
class Transition:
    event: str
    label: str
    # service type -> allowed source statuses; a missing service type forbids the event
    sources: Mapping[str, frozenset]
    # None keeps the current status
    target: Optional[str]
    stamp: Optional[str] = None

    def sources_for(self, service_type: str) -> frozenset:
        return self.sources.get(service_type, frozenset())


TRANSITIONS: dict[str, Transition] = {
    t.event: t
    for t in [
        Transition("confirm", "Confirmar", _both(S.PENDING), S.CONFIRMED),
        Transition("accept", "Aceptar", _both(S.PENDING, S.CONFIRMED), S.PREPARING),
        Transition("mark_ready", "Marcar lista", _both(S.PREPARING), S.READY, stamp="ready_at"),
        Transition("assign_driver", "Asignar repartidor", _delivery(S.READY), None, stamp="assigned_to_driver_at"),
        Transition("pick_up", "Recoger", _delivery(S.READY), S.OUT_FOR_DELIVERY, stamp="picked_up_at"),
        Transition("deliver", "Marcar entregada", _delivery(S.OUT_FOR_DELIVERY), S.DELIVERED, stamp="delivered_at"),
        Transition(
            "complete",
            "Completar",
            {ServiceType.PICKUP: frozenset({S.READY}), ServiceType.DELIVERY: frozenset({S.DELIVERED})},
            S.COMPLETED,
            stamp="completed_at",
        ),
        Transition("cancel", "Cancelar", _both(S.PENDING, S.CONFIRMED), S.CANCELLED, stamp="cancelled_at"),
    ]
}

TERMINAL = frozenset({S.COMPLETED, S.CANCELLED})

_STATUS_ERRORS = {
    "accept": "Solo se pueden aceptar órdenes pendientes o confirmadas.",
    "mark_ready": "Solo se pueden marcar como listas las órdenes en preparación.",
    "assign_driver": "Solo se puede asignar repartidor a órdenes a domicilio listas.",
    "pick_up": "La orden no está lista para ser recogida.",
    "deliver": "Solo se pueden entregar órdenes en camino.",
    "complete": "Esta orden no se puede completar en su estado actual.",
    "cancel": "Solo se pueden cancelar órdenes pendientes o confirmadas.",
}


def get_transition(event: str) -> Transition:
    try:
        return TRANSITIONS[event]
    except KeyError:
        raise InvalidTransition(f"Acción desconocida: {event}", event=event)


def check(order: Order, event: str) -> Transition:
    """Raise InvalidTransition unless ``event`` may fire on ``order`` now."""
    t = get_transition(event)
    if order.status not in t.sources_for(order.service_type):
        message = _STATUS_ERRORS.get(event, "Transición no permitida.")
        raise InvalidTransition(message, event=event, status=order.status)
    if event == "assign_driver" and order.driver_id:
        raise InvalidTransition("La orden ya tiene un repartidor asignado.", event=event, status=order.status)
    if event == "pick_up" and not order.driver_id:
        raise InvalidTransition("La orden no tiene repartidor asignado.", event=event, status=order.status)
    return t


def allowed(order: Order, event: str) -> bool:
    try:
        check(order, event)
    except InvalidTransition:
        return False
    return True


def available_events(order: Order) -> list[str]:
    return [event for event in TRANSITIONS if allowed(order, event)]


def flags(order: Order) -> dict[str, bool]:
    """Button switches for the restaurant screens."""
    return {
        "can_accept": allowed(order, "accept"),
        "can_mark_ready": allowed(order, "mark_ready"),
        "can_assign_driver": allowed(order, "assign_driver"),
        "can_mark_completed": order.is_pickup and allowed(order, "complete"),
        "can_mark_delivered": allowed(order, "deliver"),
        "can_cancel": allowed(order, "cancel"),
    }


def _sync(target: Order, source: Order) -> None:
    for f in Order._meta.concrete_fields:
        setattr(target, f.attname, getattr(source, f.attname))
    target._state.fields_cache.pop("driver", None)


def apply(
    order: Order,
    event: str,
    *,
    actor_type: str = ActorType.SYSTEM,
    actor_id: Any = "",
    notes: str = "",
    expected_version: Optional[int] = None,
    changes: Optional[dict] = None,
    guard: Optional[Callable[[Order], None]] = None,
    at=None,
) -> Order:
    """Fire ``event`` on ``order`` in one transaction.

    ``guard`` runs with the row locked, after the table check, and may raise
    InvalidTransition. ``changes`` are extra field values written with the
    new status. The passed instance is refreshed with the saved state.
    """
    at = at or timezone.now()
    with transaction.atomic():
        locked = Order.objects.select_for_update().get(pk=order.pk)
        if expected_version is not None and int(expected_version) != locked.version:
            raise StaleOrder(
                "La orden fue modificada por otra persona. Recarga la página.",
                event=event,
                status=locked.status,
            )
        t = check(locked, event)
        if guard is not None:
            guard(locked)

        previous = locked.status
        fields = ["version", "updated_at"]
        if t.target is not None:
            locked.status = t.target
            fields.append("status")
        if t.stamp:
            setattr(locked, t.stamp, at)
            fields.append(t.stamp)
        for name, value in (changes or {}).items():
            setattr(locked, name, value)
            fields.append(name)
        locked.version += 1
        locked.save(update_fields=fields)

        OrderStatusHistory.objects.create(
            order=locked,
            previous_status=previous,
            status=locked.status,
            changed_by_type=actor_type,
            changed_by_id=str(actor_id or ""),
            notes=(notes or "")[:255],
        )
        transaction.on_commit(partial(events.order_changed, locked.pk, event, previous))

    log.info("order %s: %s %s -> %s by %s", locked.order_number, event, previous, locked.status, actor_type)
    _sync(order, locked)
    return order
