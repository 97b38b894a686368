import json

import pytest
from django.urls import reverse

from apps.menu.models import (
    BundlePromotionItem,
    BundlePromotionItemOption,
    Combo,
    ComboItem,
    ComboItemOption,
    Product,
    ProductSection,
    Promotion,
    PromotionItem,
    Section,
    SectionOption,
)
from apps.notifications.models import Notification
from apps.orders.models import Order


@pytest.fixture
def bread(product):
    section = Section.objects.create(title="Pan", is_required=True)
    blanco = SectionOption.objects.create(section=section, name="Blanco")
    avena = SectionOption.objects.create(section=section, name="Avena", price_modifier_cents=500)
    ProductSection.objects.create(product=product, section=section)
    return blanco, avena


def _payload(restaurant, items, **extra):
    body = {
        "restaurant_id": str(restaurant.pk),
        "service_type": "pickup",
        "customer_name": "Carla Méndez",
        "customer_phone": "5555 1234",
        "customer_email": "carla@example.com",
        "items": items,
    }
    body.update(extra)
    return body


def _post(client, body):
    return client.post(reverse("orders_api:create"), data=json.dumps(body), content_type="application/json")


@pytest.mark.django_db
def test_place_pickup_order_prices_on_server(client, restaurant, product, bread):
    _, avena = bread
    body = _payload(restaurant, [{"product_id": str(product.pk), "quantity": 2, "options": [str(avena.pk)], "notes": "Sin cebolla"}])

    resp = _post(client, body)

    assert resp.status_code == 201
    data = resp.json()["data"]["order"]
    assert data["status"] == "pending"
    assert data["customer_phone"] == "+50255551234"
    order = Order.objects.get(pk=data["id"])
    assert order.subtotal_cents == 7000
    assert order.total_cents == 7000
    assert order.delivery_fee_cents == 0
    item = order.items.get()
    assert item.unit_price_cents == 3000
    assert item.options_price_cents == 500
    assert item.selected_options[0]["options"][0]["name"] == "Avena"
    assert list(order.status_history.values_list("status", "changed_by_type")) == [("pending", "customer")]


@pytest.mark.django_db
def test_delivery_order_adds_fee_and_needs_address(client, restaurant, product, bread):
    blanco, _ = bread
    items = [{"product_id": str(product.pk), "quantity": 1, "options": [str(blanco.pk)]}]

    resp = _post(client, _payload(restaurant, items, service_type="delivery"))
    assert resp.status_code == 422
    assert "delivery_address" in resp.json()["errors"]

    address = {"address": "6a Calle 5-20, Zona 1", "latitude": 14.6407, "longitude": -90.5133}
    resp = _post(client, _payload(restaurant, items, service_type="delivery", delivery_address=address))
    assert resp.status_code == 201
    order = Order.objects.get()
    assert order.delivery_fee_cents == 1500
    assert order.total_cents == 3500 + 1500
    assert order.delivery_point() == (14.6407, -90.5133)


@pytest.mark.django_db
def test_required_section_must_be_chosen(client, restaurant, product, bread):
    resp = _post(client, _payload(restaurant, [{"product_id": str(product.pk), "quantity": 1}]))
    assert resp.status_code == 422
    assert "Pan" in resp.json()["message"]
    assert not Order.objects.exists()


@pytest.mark.django_db
def test_rejects_inactive_product_and_closed_service(client, restaurant, product):
    product.is_active = False
    product.save()
    resp = _post(client, _payload(restaurant, [{"product_id": str(product.pk), "quantity": 1}]))
    assert resp.status_code == 422

    product.is_active = True
    product.save()
    restaurant.pickup_active = False
    restaurant.save()
    resp = _post(client, _payload(restaurant, [{"product_id": str(product.pk), "quantity": 1}]))
    assert resp.status_code == 422
    assert "service_type" in resp.json()["errors"]


@pytest.mark.django_db
def test_variant_required_for_products_with_variants(client, restaurant, variant):
    product = variant.product
    resp = _post(client, _payload(restaurant, [{"product_id": str(product.pk), "quantity": 1}]))
    assert resp.status_code == 422

    resp = _post(client, _payload(restaurant, [{"product_id": str(product.pk), "variant_id": str(variant.pk), "quantity": 1}]))
    assert resp.status_code == 201
    item = Order.objects.get().items.get()
    assert item.unit_price_cents == 4500
    assert item.name == "Sub de pollo 30 cm"


@pytest.mark.django_db
def test_combo_needs_a_choice_per_group(client, restaurant, product, category, price_columns):
    drink = Product.objects.create(category=category, name="Bebida", **price_columns(800))
    combo = Combo.objects.create(name="Combo 1", **price_columns(4000))
    ComboItem.objects.create(combo=combo, product=product)
    group = ComboItem.objects.create(combo=combo, is_choice_group=True, choice_label="Bebida")
    option = ComboItemOption.objects.create(combo_item=group, product=drink)

    resp = _post(client, _payload(restaurant, [{"combo_id": str(combo.pk), "quantity": 1}]))
    assert resp.status_code == 422

    resp = _post(client, _payload(restaurant, [{"combo_id": str(combo.pk), "quantity": 1, "choices": [str(option.pk)]}]))
    assert resp.status_code == 201
    item = Order.objects.get().items.get()
    assert item.combo_id == combo.pk
    assert item.total_price_cents == 4000


@pytest.mark.django_db
def test_bad_payloads(client, restaurant):
    resp = client.post(reverse("orders_api:create"), data="[1, 2]", content_type="application/json")
    assert resp.status_code == 400

    resp = _post(client, _payload(restaurant, []))
    assert resp.status_code == 422
    assert "items" in resp.json()["errors"]

    resp = _post(client, _payload(restaurant, [{"quantity": 1}], customer_phone="123"))
    assert resp.status_code == 422
    assert "customer_phone" in resp.json()["errors"]


@pytest.mark.django_db
def test_combo_choices_must_be_a_list(client, restaurant, product, price_columns):
    combo = Combo.objects.create(name="Combo 1", **price_columns(4000))
    ComboItem.objects.create(combo=combo, product=product)

    resp = _post(client, _payload(restaurant, [{"combo_id": str(combo.pk), "quantity": 1, "choices": 5}]))

    assert resp.status_code == 422
    assert "items.0" in resp.json()["errors"]
    assert not Order.objects.exists()


@pytest.mark.django_db
def test_new_order_sends_receipt_after_commit(client, restaurant, product, bread, django_capture_on_commit_callbacks):
    blanco, _ = bread
    body = _payload(restaurant, [{"product_id": str(product.pk), "quantity": 1, "options": [str(blanco.pk)]}])
    with django_capture_on_commit_callbacks(execute=True):
        resp = _post(client, body)
    assert resp.status_code == 201
    n = Notification.objects.get(template="order_received")
    assert n.recipient == "carla@example.com"
    assert str(n.order_id) == resp.json()["data"]["order"]["id"]
    assert n.status == "sent"
    assert n.provider == "dev"


@pytest.mark.django_db
def test_options_of_inactive_sections_are_rejected(client, restaurant, product, bread):
    blanco, _ = bread
    extras = Section.objects.create(title="Extras", is_active=False)
    queso = SectionOption.objects.create(section=extras, name="Queso", price_modifier_cents=700)
    ProductSection.objects.create(product=product, section=extras)

    body = _payload(restaurant, [{"product_id": str(product.pk), "quantity": 1, "options": [str(blanco.pk), str(queso.pk)]}])
    resp = _post(client, body)

    assert resp.status_code == 422
    assert not Order.objects.exists()


@pytest.mark.django_db
def test_two_for_one_charges_one_unit_per_pair(client, restaurant, category, price_columns):
    sub = Product.objects.create(category=category, name="Sub de atún", **price_columns(1000))
    promo = Promotion.objects.create(name="2x1 Subs", type=Promotion.TYPE_TWO_FOR_ONE)
    PromotionItem.objects.create(promotion=promo, product=sub)

    resp = _post(client, _payload(restaurant, [{"product_id": str(sub.pk), "quantity": 2}]))

    assert resp.status_code == 201
    order = Order.objects.get()
    assert (order.subtotal_cents, order.discount_cents, order.total_cents) == (2000, 1000, 1000)
    item = order.items.get()
    assert item.total_price_cents == 1000
    assert item.product_snapshot["promotion"]["name"] == "2x1 Subs"


@pytest.mark.django_db
def test_two_for_one_pairs_across_lines_and_leftover_keeps_daily_special(client, restaurant, variant, price_columns):
    for name, value in price_columns(2900, prefix="daily_special_price").items():
        setattr(variant, name, value)
    variant.is_daily_special = True
    variant.daily_special_days = [1, 2, 3, 4, 5, 6, 7]
    variant.save()
    promo = Promotion.objects.create(name="2x1", type=Promotion.TYPE_TWO_FOR_ONE)
    PromotionItem.objects.create(promotion=promo, product=variant.product)
    line = {"product_id": str(variant.product_id), "variant_id": str(variant.pk)}

    resp = _post(client, _payload(restaurant, [dict(line, quantity=2), dict(line, quantity=1)]))

    assert resp.status_code == 201
    order = Order.objects.get()
    # one pair at the normal 4500 plus one leftover at the 2900 daily special
    assert order.subtotal_cents == 3 * 4500
    assert order.total_cents == 4500 + 2900
    assert sorted(order.items.values_list("total_price_cents", flat=True)) == [2900, 4500]


@pytest.mark.django_db
def test_bundle_line_uses_zone_price(client, restaurant, product, category, price_columns):
    drink = Product.objects.create(category=category, name="Bebida", **price_columns(800))
    bundle = Promotion.objects.create(name="Combinado familiar", type=Promotion.TYPE_BUNDLE, special_bundle_price_capital_cents=5500)
    BundlePromotionItem.objects.create(promotion=bundle, product=product, quantity=2)
    group = BundlePromotionItem.objects.create(promotion=bundle, is_choice_group=True, choice_label="Bebida")
    option = BundlePromotionItemOption.objects.create(bundle_item=group, product=drink)

    resp = _post(client, _payload(restaurant, [{"bundle_id": str(bundle.pk), "quantity": 1}]))
    assert resp.status_code == 422

    resp = _post(client, _payload(restaurant, [{"bundle_id": str(bundle.pk), "quantity": 1, "choices": [str(option.pk)]}]))
    assert resp.status_code == 201
    item = Order.objects.get().items.get()
    assert item.total_price_cents == 5500
    assert item.product_snapshot["bundle"][1]["product"] == "Bebida"

    resp = _post(client, _payload(restaurant, [{"bundle_id": str(bundle.pk), "product_id": str(product.pk), "quantity": 1}]))
    assert resp.status_code == 422
