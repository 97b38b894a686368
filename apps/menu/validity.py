"""Validity windows shared by promotions, promotion items and badges.

A window is evaluated against one moment in restaurant local time. Each bound
is optional; an unset bound never excludes. Date and time bounds are inclusive
and ``weekdays`` uses ISO numbering (1 = Monday ... 7 = Sunday).
"""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Iterable, Optional

from django.utils import timezone

PERMANENT = "permanent"
DATE_RANGE = "date_range"
TIME_RANGE = "time_range"
DATE_TIME_RANGE = "date_time_range"
WEEKDAYS = "weekdays"

VALIDITY_CHOICES = [
    (PERMANENT, "Permanente"),
    (DATE_RANGE, "Rango de fechas"),
    (TIME_RANGE, "Horario"),
    (DATE_TIME_RANGE, "Fechas y horario"),
    (WEEKDAYS, "Días de la semana"),
]

WEEKDAY_CHOICES = [
    (1, "Lunes"),
    (2, "Martes"),
    (3, "Miércoles"),
    (4, "Jueves"),
    (5, "Viernes"),
    (6, "Sábado"),
    (7, "Domingo"),
]

# Fields each validity type keeps; the rest are cleared when the window is saved.
FIELDS_BY_TYPE = {
    PERMANENT: (),
    DATE_RANGE: ("valid_from", "valid_until"),
    TIME_RANGE: ("time_from", "time_until"),
    DATE_TIME_RANGE: ("valid_from", "valid_until", "time_from", "time_until"),
    WEEKDAYS: ("weekdays",),
}
WINDOW_FIELDS = ("valid_from", "valid_until", "time_from", "time_until", "weekdays")


@dataclass(frozen=True)
class ValidityWindow:
    is_active: bool = True
    validity_type: str = PERMANENT
    valid_from: Optional[dt.date] = None
    valid_until: Optional[dt.date] = None
    time_from: Optional[dt.time] = None
    time_until: Optional[dt.time] = None
    weekdays: frozenset = field(default_factory=frozenset)


def normalize_weekdays(values: Iterable | None) -> frozenset:
    """Coerce ``values`` to a frozenset of ISO weekdays; raises ValueError on junk."""
    days = set()
    for v in values or ():
        try:
            day = int(v)
        except (TypeError, ValueError):
            raise ValueError(f"Día inválido: {v!r}")
        if not 1 <= day <= 7:
            raise ValueError(f"Día inválido: {v!r}")
        days.add(day)
    return frozenset(days)


def local_moment(moment: dt.datetime | None = None) -> dt.datetime:
    if moment is None:
        return timezone.localtime()
    if timezone.is_aware(moment):
        return timezone.localtime(moment)
    return moment


def is_valid_at(window: ValidityWindow, moment: dt.datetime | None = None) -> bool:
    if not window.is_active:
        return False
    local = local_moment(moment)
    today = local.date()
    if window.valid_from and today < window.valid_from:
        return False
    if window.valid_until and today > window.valid_until:
        return False
    now = local.time().replace(microsecond=0)
    if window.time_from and now < window.time_from:
        return False
    if window.time_until and now > window.time_until:
        return False
    if window.weekdays and local.isoweekday() not in window.weekdays:
        return False
    return True


def status_at(window: ValidityWindow, moment: dt.datetime | None = None) -> str:
    """Label for admin screens: active, inactive, upcoming, expired or off_schedule."""
    if not window.is_active:
        return "inactive"
    if is_valid_at(window, moment):
        return "active"
    today = local_moment(moment).date()
    if window.valid_from and today < window.valid_from:
        return "upcoming"
    if window.valid_until and today > window.valid_until:
        return "expired"
    return "off_schedule"


def clean_window_fields(validity_type: str, values: dict) -> dict:
    """Return ``values`` with the fields foreign to ``validity_type`` cleared."""
    keep = FIELDS_BY_TYPE.get(validity_type, ())
    cleaned = dict(values)
    for name in WINDOW_FIELDS:
        if name not in keep:
            cleaned[name] = [] if name == "weekdays" else None
    return cleaned
