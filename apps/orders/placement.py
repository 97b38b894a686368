"""Turns a customer cart into a pending order with server-side prices."""
import logging
from dataclasses import dataclass, field
from functools import partial

from django.core.exceptions import ValidationError
from django.db import transaction

from apps.common.http import form_errors
from apps.menu import pricing
from apps.menu.models import Combo, ComboItemOption, Product, ProductVariant, Promotion, SectionOption
from apps.restaurants.models import Restaurant

from . import events
from .forms import CustomerOrderForm, DeliveryAddressForm, OrderLineForm
from .models import ActorType, Order, OrderItem, OrderStatus, OrderStatusHistory, ServiceType

log = logging.getLogger(__name__)


class OrderValidationError(Exception):
    def __init__(self, message: str, errors: dict | None = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or {}


@dataclass
class _Line:
    snapshot: dict
    quantity: int
    base_cents: int
    unit_cents: int
    options_cents: int = 0
    selected: list = field(default_factory=list)
    notes: str = ""
    product: Product | None = None
    variant: ProductVariant | None = None
    combo: Combo | None = None
    # units inside a 2x1 pay the normal price, one in every pair is free
    paired: int = 0
    free: int = 0

    @property
    def total_cents(self) -> int:
        rest = self.quantity - self.paired
        return self.base_cents * (self.paired - self.free) + self.unit_cents * rest + self.options_cents * self.quantity

    @property
    def discount_cents(self) -> int:
        return self.base_cents * self.free + (self.base_cents - self.unit_cents) * (self.quantity - self.paired)


def _section_options(product: Product, option_ids: list, index: int) -> tuple[list, int]:
    """Validate chosen options against the product's sections; returns (groups, unit extra)."""
    try:
        wanted = {str(o) for o in option_ids}
    except TypeError:
        raise OrderValidationError("Opciones inválidas.", {f"items.{index}": ["Opciones inválidas."]})
    options = {
        str(o.pk): o
        for o in SectionOption.objects.filter(
            pk__in=[w for w in wanted if _is_uuid(w)],
            is_active=True,
            section__is_active=True,
            section__product_sections__product=product,
        ).select_related("section")
    }
    if len(options) != len(wanted):
        raise OrderValidationError("Hay opciones que no pertenecen al producto.", {f"items.{index}": ["Opción no disponible."]})

    groups, extra = [], 0
    for ps in product.product_sections.select_related("section").order_by("sort_order"):
        section = ps.section
        if not section.is_active:
            continue
        chosen = [o for o in options.values() if o.section_id == section.pk]
        chosen.sort(key=lambda o: o.sort_order)
        minimum = max(section.min_selections, 1 if section.is_required else 0)
        maximum = section.max_selections if section.allow_multiple else 1
        if len(chosen) < minimum:
            raise OrderValidationError(f"Selecciona una opción en «{section.title}».", {f"items.{index}": [section.title]})
        if maximum is not None and len(chosen) > maximum:
            raise OrderValidationError(f"Demasiadas opciones en «{section.title}».", {f"items.{index}": [section.title]})
        if not chosen:
            continue
        extra += sum(o.price_modifier_cents for o in chosen)
        groups.append(
            {
                "section_id": str(section.pk),
                "section": section.title,
                "options": [{"id": str(o.pk), "name": o.name, "price": o.price_modifier_cents} for o in chosen],
            }
        )
    return groups, extra


def _is_uuid(value: str) -> bool:
    try:
        SectionOption._meta.pk.to_python(value)
    except ValidationError:
        return False
    return True


def _product_line(data: dict, raw: dict, restaurant: Restaurant, service_type: str, index: int) -> _Line:
    product = Product.objects.filter(pk=data["product_id"], is_active=True, category__is_active=True).select_related("category").first()
    if product is None:
        raise OrderValidationError("Producto no disponible.", {f"items.{index}": ["Producto no disponible."]})
    variant = None
    if data.get("variant_id"):
        variant = ProductVariant.objects.filter(pk=data["variant_id"], product=product, is_active=True).first()
        if variant is None:
            raise OrderValidationError("Variante no disponible.", {f"items.{index}": ["Variante no disponible."]})
    elif product.has_variants:
        raise OrderValidationError(f"Elige una variante de {product.name}.", {f"items.{index}": ["Variante requerida."]})

    q = pricing.quote(product, variant=variant, zone=restaurant.zone, service_type=service_type)
    groups, extra = _section_options(product, raw.get("options") or [], index)
    return _Line(
        snapshot={"name": product.name, "variant": variant.name if variant else None, "category": product.category.name},
        quantity=data["quantity"],
        base_cents=q.base_cents,
        unit_cents=q.final_cents,
        options_cents=extra,
        selected=groups,
        notes=data.get("notes") or "",
        product=product,
        variant=variant,
    )


def _choice_ids(raw: dict, index: int) -> set[str]:
    choices = raw.get("choices") or []
    if not isinstance(choices, list):
        raise OrderValidationError("Opciones inválidas.", {f"items.{index}": ["Opciones inválidas."]})
    return {str(c) for c in choices}


def _combo_line(data: dict, raw: dict, restaurant: Restaurant, service_type: str, index: int) -> _Line:
    combo = Combo.objects.filter(pk=data["combo_id"]).prefetch_related("items__options__product", "items__product").first()
    if combo is None or not combo.is_available():
        raise OrderValidationError("Combo no disponible.", {f"items.{index}": ["Combo no disponible."]})
    choices = _choice_ids(raw, index)
    picked = []
    for item in combo.items.all():
        if not item.is_choice_group:
            picked.append({"item": str(item), "product": item.product.name, "quantity": item.quantity})
            continue
        matches = [o for o in item.options.all() if str(o.pk) in choices and o.product.is_active]
        if len(matches) != 1:
            raise OrderValidationError(
                f"Elige una opción en «{item.choice_label or 'Opción'}».", {f"items.{index}": [item.choice_label or "Opción"]}
            )
        opt: ComboItemOption = matches[0]
        picked.append({"item": item.choice_label, "product": opt.product.name, "option_id": str(opt.pk), "quantity": item.quantity})

    q = pricing.quote_combo(combo, zone=restaurant.zone, service_type=service_type)
    return _Line(
        snapshot={"name": combo.name, "variant": None, "category": "Combos", "combo": picked},
        quantity=data["quantity"],
        base_cents=q.base_cents,
        unit_cents=q.final_cents,
        selected=[{"section": "Combo", "options": picked}],
        notes=data.get("notes") or "",
        combo=combo,
    )


def _bundle_line(data: dict, raw: dict, restaurant: Restaurant, index: int) -> _Line:
    """A "Combinado": fixed price per zone, choice groups resolved like combos."""
    promotion = (
        Promotion.objects.filter(pk=data["bundle_id"], type=Promotion.TYPE_BUNDLE)
        .prefetch_related("bundle_items__options__product", "bundle_items__product")
        .first()
    )
    price = promotion.bundle_price_cents(restaurant.zone) if promotion else None
    if promotion is None or price is None or not promotion.is_valid_now() or not promotion.bundle_is_available():
        raise OrderValidationError("Combinado no disponible.", {f"items.{index}": ["Combinado no disponible."]})
    choices = _choice_ids(raw, index)
    picked = []
    for item in promotion.bundle_items.all():
        if not item.is_choice_group:
            picked.append({"item": item.product.name, "product": item.product.name, "quantity": item.quantity})
            continue
        matches = [o for o in item.options.all() if str(o.pk) in choices and o.product.is_active]
        if len(matches) != 1:
            label = item.choice_label or "Opción"
            raise OrderValidationError(f"Elige una opción en «{label}».", {f"items.{index}": [label]})
        picked.append({"item": item.choice_label, "product": matches[0].product.name, "option_id": str(matches[0].pk), "quantity": item.quantity})

    return _Line(
        snapshot={"name": promotion.name, "variant": None, "category": "Combinados", "bundle": picked, "promotion_id": str(promotion.pk)},
        quantity=data["quantity"],
        base_cents=price,
        unit_cents=price,
        selected=[{"section": "Combinado", "options": picked}],
        notes=data.get("notes") or "",
    )


def _apply_two_for_one(lines: list[_Line], service_type: str) -> None:
    """Settle 2x1 promotions over the product lines of the cart, in place."""
    groups: dict[str, list[_Line]] = {}
    names = {}
    for line in lines:
        if line.product is None:
            continue
        promotion = pricing.two_for_one_promotion(line.product, variant=line.variant, service_type=service_type)
        if promotion is None:
            continue
        groups.setdefault(str(promotion.pk), []).append(line)
        names[str(promotion.pk)] = promotion.name
    for promotion_id, members in groups.items():
        shares = pricing.split_two_for_one([(line.base_cents, line.quantity) for line in members])
        for line, (paired, free) in zip(members, shares):
            line.paired, line.free = paired, free
            if paired:
                line.snapshot["promotion"] = {"id": promotion_id, "name": names[promotion_id], "type": Promotion.TYPE_TWO_FOR_ONE}


def _lines(payload: dict, restaurant: Restaurant, service_type: str) -> list[_Line]:
    raw_items = payload.get("items")
    if not isinstance(raw_items, list) or not raw_items:
        raise OrderValidationError("El pedido no tiene productos.", {"items": ["Agrega al menos un producto."]})
    lines = []
    for index, raw in enumerate(raw_items):
        form = OrderLineForm(raw if isinstance(raw, dict) else {})
        if not form.is_valid():
            raise OrderValidationError("Revisa los productos del pedido.", {f"items.{index}": form_errors(form)})
        data = form.cleaned_data
        if data.get("combo_id"):
            lines.append(_combo_line(data, raw, restaurant, service_type, index))
        elif data.get("bundle_id"):
            lines.append(_bundle_line(data, raw, restaurant, index))
        else:
            lines.append(_product_line(data, raw, restaurant, service_type, index))
    _apply_two_for_one(lines, service_type)
    return lines


def place_order(payload: dict) -> Order:
    """Validate ``payload`` and create a pending order; raises OrderValidationError."""
    header = CustomerOrderForm(payload)
    if not header.is_valid():
        raise OrderValidationError("Revisa los datos del pedido.", form_errors(header))
    data = header.cleaned_data

    restaurant = Restaurant.objects.filter(pk=data["restaurant_id"], is_active=True).first()
    if restaurant is None:
        raise OrderValidationError("Restaurante no disponible.", {"restaurant_id": ["Restaurante no disponible."]})
    service_type = data["service_type"]
    if not restaurant.accepts(service_type):
        label = dict(ServiceType.choices)[service_type]
        raise OrderValidationError(f"El restaurante no acepta pedidos {label.lower()} ahora.", {"service_type": ["No disponible."]})

    address = None
    if service_type == ServiceType.DELIVERY:
        addr_form = DeliveryAddressForm(payload.get("delivery_address") if isinstance(payload.get("delivery_address"), dict) else {})
        if not addr_form.is_valid():
            raise OrderValidationError("Indica la dirección de entrega.", {"delivery_address": form_errors(addr_form)})
        address = addr_form.snapshot()

    lines = _lines(payload, restaurant, service_type)
    subtotal = sum(line.total_cents + line.discount_cents for line in lines)
    discount = sum(line.discount_cents for line in lines)
    fee = restaurant.delivery_fee_cents if service_type == ServiceType.DELIVERY else 0
    if subtotal - discount < restaurant.minimum_order_cents:
        raise OrderValidationError("El pedido no alcanza el monto mínimo.", {"items": ["Monto mínimo no alcanzado."]})

    with transaction.atomic():
        order = Order.objects.create(
            restaurant=restaurant,
            status=OrderStatus.PENDING,
            service_type=service_type,
            zone=restaurant.zone,
            payment_method=data["payment_method"],
            customer_name=data["customer_name"],
            customer_phone=data["customer_phone"],
            customer_email=data.get("customer_email") or "",
            delivery_address=address,
            notes=data.get("notes") or "",
            subtotal_cents=subtotal,
            delivery_fee_cents=fee,
            discount_cents=discount,
            total_cents=subtotal - discount + fee,
        )
        OrderItem.objects.bulk_create(
            [
                OrderItem(
                    order=order,
                    product=line.product,
                    variant=line.variant,
                    combo=line.combo,
                    product_snapshot=line.snapshot,
                    quantity=line.quantity,
                    unit_price_cents=line.unit_cents,
                    options_price_cents=line.options_cents,
                    total_price_cents=line.total_cents,
                    selected_options=line.selected,
                    notes=line.notes,
                )
                for line in lines
            ]
        )
        OrderStatusHistory.objects.create(
            order=order,
            previous_status="",
            status=OrderStatus.PENDING,
            changed_by_type=ActorType.CUSTOMER,
            notes="Orden recibida",
        )
        transaction.on_commit(partial(events.order_created, order.pk))

    log.info("order %s placed at %s (%s, %s items)", order.order_number, restaurant.pk, service_type, len(lines))
    return order
