import logging
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from apps.common.geo import haversine_m
from apps.drivers.models import Driver

from . import workflow
from .models import ActorType, Order, OrderStatus
from .workflow import InvalidTransition

log = logging.getLogger(__name__)


class DriverHasActiveOrder(InvalidTransition):
    pass


class DeliveryTooFar(InvalidTransition):
    def __init__(self, distance_m: float, max_m: int):
        super().__init__(
            f"Estás a {int(distance_m)} m de la dirección de entrega (máximo {max_m} m).",
            event="deliver",
            status=OrderStatus.OUT_FOR_DELIVERY,
        )
        self.distance_m = distance_m
        self.max_m = max_m


def _user_id(user) -> str:
    return str(user.pk) if user is not None else ""


def confirm(order: Order, *, actor_type=ActorType.SYSTEM, actor_id="", expected_version=None) -> Order:
    return workflow.apply(order, "confirm", actor_type=actor_type, actor_id=actor_id, expected_version=expected_version)


def accept(order: Order, *, user=None, expected_version=None) -> Order:
    minutes = order.restaurant.estimated_minutes(order.service_type)
    now = timezone.now()
    return workflow.apply(
        order,
        "accept",
        actor_type=ActorType.USER,
        actor_id=_user_id(user),
        notes=f"Tiempo estimado: {minutes} min",
        expected_version=expected_version,
        changes={"estimated_ready_at": now + timedelta(minutes=minutes)},
        at=now,
    )


def mark_ready(order: Order, *, user=None, expected_version=None) -> Order:
    return workflow.apply(order, "mark_ready", actor_type=ActorType.USER, actor_id=_user_id(user), expected_version=expected_version)


def assign_driver(order: Order, driver: Driver, *, user=None, expected_version=None) -> Order:
    with transaction.atomic():
        driver = Driver.objects.select_for_update().get(pk=driver.pk)

        def _guard(locked: Order):
            if driver.restaurant_id != locked.restaurant_id:
                raise InvalidTransition("El repartidor no pertenece a este restaurante.", event="assign_driver", status=locked.status)
            if not (driver.is_active and driver.is_available):
                raise InvalidTransition("El repartidor no está disponible.", event="assign_driver", status=locked.status)

        workflow.apply(
            order,
            "assign_driver",
            actor_type=ActorType.USER,
            actor_id=_user_id(user),
            notes=f"Repartidor asignado: {driver.name}",
            expected_version=expected_version,
            changes={"driver": driver},
            guard=_guard,
        )
        driver.is_available = False
        driver.save(update_fields=["is_available", "updated_at"])
    return order


def complete(order: Order, *, actor_type=ActorType.USER, actor_id="", notes="", expected_version=None) -> Order:
    return workflow.apply(order, "complete", actor_type=actor_type, actor_id=actor_id, notes=notes, expected_version=expected_version)


def deliver(order: Order, *, actor_type=ActorType.USER, actor_id="", notes="", expected_version=None, guard=None) -> Order:
    """Mark delivered and complete in one transaction; frees the driver."""
    with transaction.atomic():
        workflow.apply(
            order,
            "deliver",
            actor_type=actor_type,
            actor_id=actor_id,
            notes=notes,
            expected_version=expected_version,
            guard=guard,
        )
        if order.driver_id:
            Driver.objects.filter(pk=order.driver_id).update(is_available=True, last_activity_at=timezone.now())
        workflow.apply(order, "complete", actor_type=ActorType.SYSTEM, notes="Completada al entregar")
    return order


def cancel(order: Order, *, reason: str, user=None, actor_type=ActorType.USER, actor_id="", expected_version=None) -> Order:
    reason = (reason or "").strip()
    if not reason:
        raise InvalidTransition("Indica el motivo de la cancelación.", event="cancel", status=order.status)
    return workflow.apply(
        order,
        "cancel",
        actor_type=actor_type,
        actor_id=_user_id(user) if user is not None else actor_id,
        notes=reason,
        expected_version=expected_version,
        changes={"cancellation_reason": reason[:255]},
    )


def pick_up(order: Order, driver: Driver) -> Order:
    """The assigned driver takes the order out for delivery."""
    with transaction.atomic():
        Driver.objects.select_for_update().filter(pk=driver.pk).first()

        def _guard(locked: Order):
            if locked.driver_id != driver.pk:
                raise InvalidTransition("Esta orden no está asignada a ti.", event="pick_up", status=locked.status)
            busy = Order.objects.filter(driver=driver, status=OrderStatus.OUT_FOR_DELIVERY).exclude(pk=locked.pk)
            if busy.exists():
                raise DriverHasActiveOrder("Ya tienes una orden en camino. Entrégala antes de aceptar otra.", event="pick_up", status=locked.status)

        workflow.apply(order, "pick_up", actor_type=ActorType.DRIVER, actor_id=driver.pk, guard=_guard)
    return order


def driver_deliver(order: Order, driver: Driver, *, latitude, longitude, notes: str = "") -> Order:
    max_m = settings.DRIVER_MAX_DELIVERY_DISTANCE_M

    def _guard(locked: Order):
        if locked.driver_id != driver.pk:
            raise InvalidTransition("Esta orden no está asignada a ti.", event="deliver", status=locked.status)
        point = locked.delivery_point()
        if point is None:
            return
        distance = haversine_m(latitude, longitude, *point)
        if distance > max_m:
            log.info("driver %s too far from %s: %.0f m", driver.pk, locked.order_number, distance)
            raise DeliveryTooFar(distance, max_m)

    deliver(order, actor_type=ActorType.DRIVER, actor_id=driver.pk, notes=notes, guard=_guard)
    driver.update_location(latitude, longitude)
    return order
