from django.conf import settings
from django.db.models import Count, Prefetch, Q
from django.views.decorators.http import require_GET

from apps.common.http import json_data, json_error

from .models import Category, Combo, ComboItem, ItemBadge, Product, ProductSection, ProductVariant, Promotion
from .serializers import (
    serialize_category,
    serialize_category_summary,
    serialize_combo,
    serialize_product,
    serialize_promotion,
)
from .validity import local_moment


def _truthy(value) -> bool:
    return str(value or "").lower() in {"1", "true", "yes", "on"}


def _products_queryset():
    return (
        Product.objects.filter(is_active=True)
        .select_related("category")
        .prefetch_related(
            Prefetch("variants", queryset=ProductVariant.objects.filter(is_active=True)),
            Prefetch("product_sections", queryset=ProductSection.objects.select_related("section").prefetch_related("section__options")),
            Prefetch("badges", queryset=ItemBadge.objects.select_related("badge_type")),
        )
    )


def _combos_queryset():
    return Combo.objects.filter(is_active=True).prefetch_related(
        Prefetch("items", queryset=ComboItem.objects.select_related("product", "variant").prefetch_related("options__product", "options__variant")),
        Prefetch("badges", queryset=ItemBadge.objects.select_related("badge_type")),
    )


def _combos_category():
    return Category.objects.filter(is_combo_category=True, is_active=True).first()


@require_GET
def menu(request):
    moment = local_moment()
    if _truthy(request.GET.get("lite")):
        categories = (
            Category.objects.filter(is_active=True, is_combo_category=False)
            .annotate(products_count=Count("products", filter=Q(products__is_active=True)))
        )
        combos = [c for c in _combos_queryset() if c.is_available()]
        prices = [c.price_pickup_capital_cents for c in combos]
        return json_data(
            {
                "price_disclaimer": settings.MENU_PRICE_DISCLAIMER,
                "categories": [
                    dict(serialize_category_summary(c), products_count=c.products_count) for c in categories
                ],
                "combos_category": serialize_category_summary(_combos_category()),
                "combos_summary": {
                    "count": len(combos),
                    "price_range": {"min": min(prices, default=0), "max": max(prices, default=0)},
                },
            }
        )

    products_by_category: dict = {}
    for product in _products_queryset().filter(category__is_active=True, category__is_combo_category=False):
        products_by_category.setdefault(product.category_id, []).append(product)
    categories = Category.objects.filter(is_active=True, is_combo_category=False)
    combos = [c for c in _combos_queryset() if c.is_available()]
    return json_data(
        {
            "price_disclaimer": settings.MENU_PRICE_DISCLAIMER,
            "categories": [serialize_category(c, products_by_category.get(c.id, []), moment) for c in categories],
            "combos_category": serialize_category_summary(_combos_category()),
            "combos": [serialize_combo(c, moment) for c in combos],
        }
    )


@require_GET
def product_detail(request, id):
    product = _products_queryset().filter(pk=id, category__is_active=True).first()
    if product is None:
        return json_error("Producto no encontrado", status=404)
    return json_data({"product": serialize_product(product, local_moment(), detail=True)})


@require_GET
def combo_detail(request, id):
    combo = _combos_queryset().filter(pk=id).first()
    if combo is None or not combo.is_available():
        return json_error("Combo no encontrado", status=404)
    return json_data({"combo": serialize_combo(combo, local_moment())})


@require_GET
def promotions(request):
    moment = local_moment()
    qs = Promotion.objects.filter(is_active=True).prefetch_related(
        "items", "bundle_items__options__product"
    )
    kind = request.GET.get("type")
    if kind:
        qs = qs.filter(type=kind)
    valid = [p for p in qs if p.is_valid_now(moment) and (not p.is_bundle or p.bundle_is_available())]
    return json_data({"promotions": [serialize_promotion(p, moment) for p in valid]})
