import logging
from datetime import timedelta

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from .models import ACTIVE_DELIVERY_STATUS, Driver

log = logging.getLogger(__name__)


class DriverAuthError(Exception):
    def __init__(self, message: str, status: int = 401):
        super().__init__(message)
        self.message = message
        self.status = status


class DriverBusy(Exception):
    pass


def login(email: str, password: str) -> Driver:
    email = (email or "").strip().lower()
    driver = Driver.objects.filter(email=email).select_related("restaurant").first()
    if driver is None or not driver.check_password(password or ""):
        log.info("driver login failed for %s", email)
        raise DriverAuthError("Credenciales inválidas.")
    if not driver.is_active:
        raise DriverAuthError("Tu cuenta de repartidor está desactivada.", status=403)
    now = timezone.now()
    driver.last_login_at = now
    driver.last_activity_at = now
    driver.save(update_fields=["last_login_at", "last_activity_at", "updated_at"])
    return driver


def set_availability(driver: Driver, available: bool) -> Driver:
    """Going offline is refused while an order is on the way."""
    with transaction.atomic():
        driver = Driver.objects.select_for_update().get(pk=driver.pk)
        if not available and driver.has_active_order():
            raise DriverBusy("No puedes desconectarte con una orden en camino.")
        if available:
            driver.go_online()
        else:
            driver.go_offline()
    log.info("driver %s is now %s", driver.pk, "available" if available else "offline")
    return driver


def toggle_active(driver: Driver) -> bool:
    driver.is_active = not driver.is_active
    fields = ["is_active", "updated_at"]
    if not driver.is_active:
        driver.is_available = False
        fields.append("is_available")
    driver.save(update_fields=fields)
    return driver.is_active


def expire_idle(minutes: int) -> int:
    """Mark available drivers with no activity for ``minutes`` as offline."""
    cutoff = timezone.now() - timedelta(minutes=minutes)
    qs = (
        Driver.objects.filter(Q(last_activity_at__lt=cutoff) | Q(last_activity_at__isnull=True), is_available=True)
        .exclude(orders__status=ACTIVE_DELIVERY_STATUS)
    )
    return Driver.objects.filter(pk__in=list(qs.values_list("pk", flat=True))).update(is_available=False)


def stats(qs) -> dict[str, int]:
    return {
        "total": qs.count(),
        "active": qs.filter(is_active=True).count(),
        "available": qs.filter(is_active=True, is_available=True).count(),
        "busy": qs.filter(orders__status=ACTIVE_DELIVERY_STATUS).distinct().count(),
    }
