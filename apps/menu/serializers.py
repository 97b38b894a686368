from __future__ import annotations

from typing import Any

from . import pricing
from .models import (
    Category,
    Combo,
    ItemBadge,
    Product,
    ProductVariant,
    Promotion,
    Section,
    ZONES,
    SERVICE_TYPES,
)
from .validity import is_valid_at


def _image_url(field) -> str | None:
    name = getattr(field, "name", "") if field else ""
    if not name:
        return None
    return field.url


def _iso(value):
    return value.isoformat() if value else None


def serialize_badge(badge: ItemBadge) -> dict[str, Any]:
    bt = badge.badge_type
    return {
        "id": str(badge.id),
        "badge_type_id": str(bt.id),
        "name": bt.name,
        "color": bt.color,
        "text_color": bt.text_color,
        "validity_type": badge.validity_type,
        "valid_from": _iso(badge.valid_from),
        "valid_until": _iso(badge.valid_until),
        "weekdays": sorted(badge.weekdays or []),
    }


def active_badges(obj, moment=None) -> list[dict[str, Any]]:
    return [serialize_badge(b) for b in obj.badges.all() if b.is_valid_now(moment)]


def _discounted_prices(product: Product, variant: ProductVariant | None, moment) -> tuple[dict, pricing.Quote | None]:
    prices: dict[str, int] = {}
    promo: pricing.Quote | None = None
    for zone in ZONES:
        for service in SERVICE_TYPES:
            q = pricing.quote(product, variant=variant, zone=zone, service_type=service, moment=moment)
            prices[f"{service}_{zone}"] = q.final_cents
            if q.is_promotional and promo is None:
                promo = q
    return prices, promo


def _promotion_block(prices: dict, promo: pricing.Quote | None) -> dict[str, Any] | None:
    if promo is None:
        return None
    return {
        "id": promo.promotion_id,
        "type": promo.promotion_type,
        "name": promo.promotion_name,
        "discounted_prices": prices,
    }


def serialize_variant(variant: ProductVariant, moment=None) -> dict[str, Any]:
    prices, promo = _discounted_prices(variant.product, variant, moment)
    return {
        "id": str(variant.id),
        "sku": variant.sku,
        "name": variant.name,
        "size": variant.size,
        "price": variant.price_pickup_capital_cents,
        "prices": variant.prices(),
        "is_daily_special": variant.is_daily_special,
        "daily_special_days": sorted(variant.daily_special_days or []),
        "sort_order": variant.sort_order,
        "active_promotion": _promotion_block(prices, promo),
    }


def serialize_section(section: Section) -> dict[str, Any]:
    return {
        "id": str(section.id),
        "title": section.title,
        "description": section.description,
        "is_required": section.is_required,
        "allow_multiple": section.allow_multiple,
        "min_selections": section.min_selections,
        "max_selections": section.max_selections,
        "options": [
            {
                "id": str(opt.id),
                "name": opt.name,
                "is_extra": opt.is_extra,
                "price_modifier": opt.price_modifier_cents,
                "sort_order": opt.sort_order,
            }
            for opt in section.options.all()
            if opt.is_active
        ],
    }


def serialize_product(product: Product, moment=None, *, detail: bool = False) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": str(product.id),
        "name": product.name,
        "description": product.description,
        "image_url": _image_url(product.image),
        "category_id": str(product.category_id),
        "has_variants": product.has_variants,
        "sort_order": product.sort_order,
        "badges": active_badges(product, moment),
    }
    if product.has_variants:
        data["variants"] = [serialize_variant(v, moment) for v in product.variants.all() if v.is_active]
    else:
        prices, promo = _discounted_prices(product, None, moment)
        data["price"] = product.price_pickup_capital_cents
        data["prices"] = product.prices()
        data["active_promotion"] = _promotion_block(prices, promo)
    sections = [ps.section for ps in product.product_sections.all() if ps.section.is_active]
    data["sections"] = [serialize_section(s) for s in sections]
    if detail:
        data["category_name"] = product.category.name
    return data


def _combo_choice(opt) -> dict[str, Any]:
    return {
        "id": str(opt.id),
        "product_id": str(opt.product_id),
        "product_name": opt.product.name,
        "variant_id": str(opt.variant_id) if opt.variant_id else None,
        "variant_name": opt.variant.name if opt.variant_id else None,
        "sort_order": opt.sort_order,
    }


def serialize_combo(combo: Combo, moment=None) -> dict[str, Any]:
    items = []
    for item in combo.items.all():
        entry: dict[str, Any] = {
            "id": str(item.id),
            "is_choice_group": item.is_choice_group,
            "quantity": item.quantity,
            "sort_order": item.sort_order,
        }
        if item.is_choice_group:
            entry["choice_label"] = item.choice_label
            entry["options"] = [_combo_choice(o) for o in item.options.all() if o.product.is_active]
        else:
            entry["product_id"] = str(item.product_id)
            entry["product_name"] = item.product.name
            entry["variant_id"] = str(item.variant_id) if item.variant_id else None
            entry["variant_name"] = item.variant.name if item.variant_id else None
        items.append(entry)
    return {
        "id": str(combo.id),
        "name": combo.name,
        "description": combo.description,
        "image_url": _image_url(combo.image),
        "price": combo.price_pickup_capital_cents,
        "prices": combo.prices(),
        "sort_order": combo.sort_order,
        "items": items,
        "badges": active_badges(combo, moment),
    }


def serialize_category(category: Category, products, moment=None) -> dict[str, Any]:
    return {
        "id": str(category.id),
        "name": category.name,
        "description": category.description,
        "image_url": _image_url(category.image),
        "uses_variants": category.uses_variants,
        "sort_order": category.sort_order,
        "products": [serialize_product(p, moment) for p in products],
    }


def serialize_category_summary(category: Category | None) -> dict[str, Any] | None:
    if category is None:
        return None
    return {
        "id": str(category.id),
        "name": category.name,
        "image_url": _image_url(category.image),
        "sort_order": category.sort_order,
    }


def serialize_promotion(promotion: Promotion, moment=None) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": str(promotion.id),
        "name": promotion.name,
        "description": promotion.description,
        "type": promotion.type,
        "validity_type": promotion.validity_type,
        "valid_from": _iso(promotion.valid_from),
        "valid_until": _iso(promotion.valid_until),
        "time_from": _iso(promotion.time_from),
        "time_until": _iso(promotion.time_until),
        "weekdays": sorted(promotion.weekdays or []),
    }
    if promotion.is_bundle:
        data["bundle_prices"] = {
            "capital": promotion.special_bundle_price_capital_cents,
            "interior": promotion.special_bundle_price_interior_cents,
        }
        data["bundle_items"] = [
            {
                "id": str(b.id),
                "is_choice_group": b.is_choice_group,
                "choice_label": b.choice_label,
                "quantity": b.quantity,
                "product_id": str(b.product_id) if b.product_id else None,
                "variant_id": str(b.variant_id) if b.variant_id else None,
                "options": [_combo_choice(o) for o in b.options.all() if o.product.is_active],
                "sort_order": b.sort_order,
            }
            for b in promotion.bundle_items.all()
        ]
    else:
        data["items"] = [
            {
                "id": str(i.id),
                "product_id": str(i.product_id) if i.product_id else None,
                "variant_id": str(i.variant_id) if i.variant_id else None,
                "category_id": str(i.category_id) if i.category_id else None,
                "combo_id": str(i.combo_id) if i.combo_id else None,
                "service_type": i.service_type,
                "discount_percentage": float(i.discount_percentage) if i.discount_percentage is not None else None,
                "special_prices": {
                    f"{service}_{zone}": i.special_price_cents(zone, service)
                    for zone in ZONES
                    for service in SERVICE_TYPES
                },
            }
            for i in promotion.items.all()
            if is_valid_at(i.validity_window(is_active=promotion.is_active), moment)
        ]
    return data
