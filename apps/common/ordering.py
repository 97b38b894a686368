"""Sort-order maintenance for drag-and-drop lists.

Every sortable scope (categories, products of a category, options of a
section, ...) keeps ``sort_order`` as the contiguous sequence ``1..n``. A
reorder batch must name exactly the rows currently in the scope; anything else
is rejected before a single row is written.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Max, QuerySet

log = logging.getLogger(__name__)


class ReorderError(ValueError):
    """The submitted batch does not describe a permutation of the scope."""


@dataclass(frozen=True)
class ReorderEntry:
    id: str
    sort_order: int


def parse_entries(items: Any) -> list[ReorderEntry]:
    """Turn ``[{"id": ..., "sort_order": ...}, ...]`` into entries.

    A bare list of ids is accepted too and ranked by position.
    """
    if not isinstance(items, list) or not items:
        raise ReorderError("La lista de elementos está vacía.")
    entries: list[ReorderEntry] = []
    for position, raw in enumerate(items, start=1):
        if isinstance(raw, dict):
            ident = raw.get("id")
            order = raw.get("sort_order", position)
        else:
            ident, order = raw, position
        if ident in (None, ""):
            raise ReorderError("Cada elemento necesita un id.")
        try:
            order = int(order)
        except (TypeError, ValueError):
            raise ReorderError(f"Orden inválido para {ident}.")
        if order < 0:
            raise ReorderError(f"Orden inválido para {ident}.")
        entries.append(ReorderEntry(id=str(ident), sort_order=order))
    return entries


def next_sort_order(queryset: QuerySet) -> int:
    return (queryset.aggregate(m=Max("sort_order"))["m"] or 0) + 1


def compact(queryset: QuerySet) -> int:
    """Rewrite the scope as 1..n keeping the current relative order."""
    with transaction.atomic():
        rows = list(queryset.select_for_update().order_by("sort_order", "created_at"))
        changed = _assign_positions(rows)
        if changed:
            queryset.model._default_manager.bulk_update(changed, ["sort_order"])
    return len(changed)


def reorder(queryset: QuerySet, entries: Iterable[ReorderEntry]) -> list:
    """Apply a reorder batch to ``queryset`` atomically.

    Rows are ranked by the submitted ``sort_order`` (ties keep submission
    order) and rewritten as 1..n. Returns the rows in their new order.
    """
    entries = list(entries)
    pk_field = queryset.model._meta.pk
    submitted: list[str] = []
    for entry in entries:
        try:
            submitted.append(str(pk_field.to_python(entry.id)))
        except ValidationError:
            raise ReorderError(f"Id inválido: {entry.id}")

    if len(set(submitted)) != len(submitted):
        raise ReorderError("La lista contiene elementos repetidos.")

    with transaction.atomic():
        current = {str(row.pk): row for row in queryset.select_for_update()}
        unknown = set(submitted) - set(current)
        missing = set(current) - set(submitted)
        if unknown:
            raise ReorderError("La lista contiene elementos que no pertenecen a este grupo.")
        if missing:
            raise ReorderError("La lista no incluye todos los elementos del grupo.")

        ranked = sorted(range(len(entries)), key=lambda i: (entries[i].sort_order, i))
        rows = [current[submitted[i]] for i in ranked]
        changed = _assign_positions(rows)
        if changed:
            queryset.model._default_manager.bulk_update(changed, ["sort_order"])

    log.info("reordered %s: %s rows, %s changed", queryset.model._meta.label, len(rows), len(changed))
    return rows


def _assign_positions(rows: list) -> list:
    changed = []
    for position, row in enumerate(rows, start=1):
        if row.sort_order != position:
            row.sort_order = position
            changed.append(row)
    return changed
