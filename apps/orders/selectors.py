from __future__ import annotations

from datetime import date, datetime, time, timedelta

from django.db.models import Count
from django.utils import timezone

from .models import Order, OrderStatus


def day_bounds(day: date) -> tuple[datetime, datetime]:
    tz = timezone.get_current_timezone()
    start = timezone.make_aware(datetime.combine(day, time.min), tz)
    return start, start + timedelta(days=1)


def restaurant_orders(restaurant, *, day: date | None = None, status: str = "", service_type: str = ""):
    qs = Order.objects.filter(restaurant=restaurant).select_related("driver")
    if day is not None:
        start, end = day_bounds(day)
        qs = qs.filter(created_at__gte=start, created_at__lt=end)
    if status:
        qs = qs.filter(status=status)
    if service_type:
        qs = qs.filter(service_type=service_type)
    return qs.order_by("-created_at")


def status_counts(restaurant, *, day: date | None = None) -> dict[str, int]:
    qs = restaurant_orders(restaurant, day=day).order_by()
    counts = {value: 0 for value, _ in OrderStatus.choices}
    for row in qs.values("status").annotate(n=Count("id")):
        counts[row["status"]] = row["n"]
    counts["total"] = sum(counts.values())
    return counts


def driver_orders(driver):
    """Orders assigned to ``driver`` that still need them: ready (pending pick-up) and on the way."""
    qs = Order.objects.filter(driver=driver).select_related("restaurant").prefetch_related("items")
    pending = qs.filter(status=OrderStatus.READY).order_by("assigned_to_driver_at")
    active = qs.filter(status=OrderStatus.OUT_FOR_DELIVERY).order_by("picked_up_at")
    return pending, active
