"""Unit prices for products and combos per zone and service type.

``quote`` picks the base price column and then the best promotional price
valid at the given moment. Two-for-one promotions never lower a quoted unit
price: they are settled over the whole cart with ``two_for_one_promotion`` and
``split_two_for_one``.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from django.db.models import Q

from .models import Combo, Product, ProductVariant, Promotion, PromotionItem, price_field
from .validity import local_moment


@dataclass(frozen=True)
class Quote:
    base_cents: int
    final_cents: int
    promotion_id: Optional[str] = None
    promotion_name: str = ""
    promotion_type: str = ""

    @property
    def discount_cents(self) -> int:
        return self.base_cents - self.final_cents

    @property
    def is_promotional(self) -> bool:
        return self.final_cents < self.base_cents


def price_for(entity, zone: str, service_type: str) -> int:
    return getattr(entity, price_field(zone, service_type))


def apply_percentage(cents: int, percentage) -> int:
    pct = Decimal(str(percentage))
    discounted = Decimal(cents) * (Decimal(100) - pct) / Decimal(100)
    return int(discounted.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def _candidate_items(product: Product, variant: ProductVariant | None, service_type: str):
    target = Q(product=product) | Q(category_id=product.category_id)
    if variant is not None:
        target |= Q(variant=variant)
    return (
        PromotionItem.objects.filter(target, promotion__is_active=True)
        .exclude(promotion__type__in=[Promotion.TYPE_TWO_FOR_ONE, Promotion.TYPE_BUNDLE])
        .filter(service_type__in=[PromotionItem.SERVICE_BOTH, service_type])
        .select_related("promotion")
    )


def _item_price(item: PromotionItem, base: int, zone: str, service_type: str) -> int | None:
    special = item.special_price_cents(zone, service_type)
    if special is not None:
        return special
    if item.discount_percentage is not None:
        return apply_percentage(base, item.discount_percentage)
    return None


def quote(
    product: Product,
    *,
    variant: ProductVariant | None = None,
    zone: str,
    service_type: str,
    moment=None,
) -> Quote:
    moment = local_moment(moment)
    source = variant if variant is not None else product
    base = price_for(source, zone, service_type)
    best = Quote(base_cents=base, final_cents=base)

    if variant is not None and variant.is_daily_special_on(moment.isoweekday()):
        special = variant.daily_special_price_cents(zone, service_type)
        if special is not None and special < best.final_cents:
            best = Quote(base, special, promotion_type=Promotion.TYPE_DAILY_SPECIAL, promotion_name="Sub del Día")

    for item in _candidate_items(product, variant, service_type):
        if item.variant_id and (variant is None or item.variant_id != variant.pk):
            continue
        if not item.is_valid_now(moment):
            continue
        price = _item_price(item, base, zone, service_type)
        if price is not None and price < best.final_cents:
            best = Quote(
                base,
                price,
                promotion_id=str(item.promotion_id),
                promotion_name=item.promotion.name,
                promotion_type=item.promotion.type,
            )
    return best


def quote_combo(combo: Combo, *, zone: str, service_type: str, moment=None) -> Quote:
    base = price_for(combo, zone, service_type)
    best = Quote(base_cents=base, final_cents=base)
    items = PromotionItem.objects.filter(combo=combo, promotion__is_active=True).select_related("promotion")
    for item in items:
        if not item.applies_to_service(service_type) or not item.is_valid_now(moment):
            continue
        price = _item_price(item, base, zone, service_type)
        if price is not None and price < best.final_cents:
            best = Quote(base, price, promotion_id=str(item.promotion_id), promotion_name=item.promotion.name, promotion_type=item.promotion.type)
    return best


def two_for_one_promotion(
    product: Product,
    *,
    variant: ProductVariant | None = None,
    service_type: str,
    moment=None,
) -> Promotion | None:
    """First 2x1 promotion valid for ``product`` right now, if any."""
    moment = local_moment(moment)
    target = Q(product=product) | Q(category_id=product.category_id)
    if variant is not None:
        target |= Q(variant=variant)
    items = (
        PromotionItem.objects.filter(target, promotion__is_active=True, promotion__type=Promotion.TYPE_TWO_FOR_ONE)
        .filter(service_type__in=[PromotionItem.SERVICE_BOTH, service_type])
        .select_related("promotion")
        .order_by("promotion__created_at", "created_at")
    )
    for item in items:
        if item.variant_id and (variant is None or item.variant_id != variant.pk):
            continue
        if item.is_valid_now(moment):
            return item.promotion
    return None


def split_two_for_one(lines: list[tuple[int, int]]) -> list[tuple[int, int]]:
    """Share a 2x1 among ``(normal unit price, quantity)`` lines.

    Units are taken cheapest first. ``n // 2`` pairs enter the promotion and
    one unit of every pair is free. Returns ``(paired units, free units)`` per
    line in the given order; units left out keep their own quoted price.
    """
    total = sum(qty for _, qty in lines)
    free_total = total // 2
    paired_total = free_total * 2
    result = [(0, 0)] * len(lines)
    paired_so_far = free_so_far = 0
    for index in sorted(range(len(lines)), key=lambda i: lines[i][0]):
        qty = lines[index][1]
        paired = min(qty, paired_total - paired_so_far)
        free = min(paired, free_total - free_so_far)
        paired_so_far += paired
        free_so_far += free
        result[index] = (paired, free)
    return result
