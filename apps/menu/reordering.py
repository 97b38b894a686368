from dataclasses import dataclass
from typing import Optional, Type

from django.core.exceptions import ValidationError
from django.db import models

from apps.common.ordering import ReorderEntry, ReorderError, reorder

from .models import (
    BadgeType,
    BundlePromotionItem,
    Category,
    Combo,
    ComboItem,
    Product,
    ProductSection,
    ProductVariant,
    Section,
    SectionOption,
)


@dataclass(frozen=True)
class Scope:
    model: Type[models.Model]
    parent_field: Optional[str] = None


SCOPES = {
    "categories": Scope(Category),
    "products": Scope(Product, "category"),
    "variants": Scope(ProductVariant, "product"),
    "sections": Scope(Section),
    "section-options": Scope(SectionOption, "section"),
    "product-sections": Scope(ProductSection, "product"),
    "combos": Scope(Combo),
    "combo-items": Scope(ComboItem, "combo"),
    "badge-types": Scope(BadgeType),
    "bundle-items": Scope(BundlePromotionItem, "promotion"),
}


def scope_queryset(name: str, parent_id=None):
    scope = SCOPES.get(name)
    if scope is None:
        raise ReorderError(f"Lista desconocida: {name}")
    qs = scope.model._default_manager.all()
    if scope.parent_field:
        if not parent_id:
            raise ReorderError("Falta parent_id para esta lista.")
        parent_model = scope.model._meta.get_field(scope.parent_field).related_model
        try:
            parent_pk = parent_model._meta.pk.to_python(parent_id)
        except (ValidationError, ValueError):
            raise ReorderError("parent_id inválido.")
        if not parent_model._default_manager.filter(pk=parent_pk).exists():
            raise ReorderError("El elemento padre no existe.")
        qs = qs.filter(**{scope.parent_field: parent_pk})
    return qs


def reorder_scope(name: str, entries: list[ReorderEntry], parent_id=None) -> list:
    return reorder(scope_queryset(name, parent_id), entries)
