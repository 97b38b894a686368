import pytest
from django.urls import reverse

from apps.menu.models import BadgeType, Category, Combo, ComboItem, ItemBadge, Product, Promotion, PromotionItem
from apps.restaurants.models import Restaurant


@pytest.mark.django_db
def test_menu_uses_data_envelope_and_hides_inactive(client, product, category, price_columns):
    Product.objects.create(category=category, name="Oculto", is_active=False, **price_columns(100))
    Category.objects.create(name="Vacía", is_active=False)

    resp = client.get(reverse("menu_api:menu"))

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert [c["name"] for c in data["categories"]] == ["Subs"]
    assert [p["name"] for p in data["categories"][0]["products"]] == ["Sub de pollo"]
    assert data["categories"][0]["products"][0]["prices"]["delivery_capital"] == 3500


@pytest.mark.django_db
def test_menu_lite_counts_products(client, product):
    resp = client.get(reverse("menu_api:menu"), {"lite": "1"})
    data = resp.json()["data"]
    assert data["categories"][0]["products_count"] == 1
    assert data["combos_summary"]["count"] == 0


@pytest.mark.django_db
def test_product_detail_404_when_inactive(client, product):
    url = reverse("menu_api:product_detail", args=[product.pk])
    assert client.get(url).json()["data"]["product"]["category_name"] == "Subs"

    product.is_active = False
    product.save()
    resp = client.get(url)
    assert resp.status_code == 404
    assert resp.json()["message"]


@pytest.mark.django_db
def test_combo_detail_404_when_a_product_is_inactive(client, product, price_columns):
    combo = Combo.objects.create(name="Combo 1", **price_columns(4000))
    ComboItem.objects.create(combo=combo, product=product)
    url = reverse("menu_api:combo_detail", args=[combo.pk])
    assert client.get(url).status_code == 200

    product.is_active = False
    product.save()
    assert client.get(url).status_code == 404


@pytest.mark.django_db
def test_product_exposes_active_promotion_and_badges(client, product):
    promo = Promotion.objects.create(name="Mitad", type=Promotion.TYPE_PERCENTAGE)
    PromotionItem.objects.create(promotion=promo, product=product, discount_percentage=50)
    ItemBadge.objects.create(badge_type=BadgeType.objects.create(name="Nuevo"), product=product)
    hidden = BadgeType.objects.create(name="Viejo", is_active=False)
    ItemBadge.objects.create(badge_type=hidden, product=product)

    data = client.get(reverse("menu_api:product_detail", args=[product.pk])).json()["data"]["product"]

    assert data["active_promotion"]["name"] == "Mitad"
    assert data["active_promotion"]["discounted_prices"]["pickup_capital"] == 1500
    assert [b["name"] for b in data["badges"]] == ["Nuevo"]


@pytest.mark.django_db
def test_promotions_only_valid_ones(client, product):
    live = Promotion.objects.create(name="Vigente", type=Promotion.TYPE_PERCENTAGE)
    PromotionItem.objects.create(promotion=live, product=product, discount_percentage=10)
    past = Promotion.objects.create(name="Vencida", type=Promotion.TYPE_PERCENTAGE)
    PromotionItem.objects.create(
        promotion=past, product=product, discount_percentage=10, validity_type="date_range", valid_from="2020-01-01", valid_until="2020-01-31"
    )

    resp = client.get(reverse("menu_api:promotions"))
    assert [p["name"] for p in resp.json()["data"]["promotions"]] == ["Vigente"]
    resp = client.get(reverse("menu_api:promotions"), {"type": "two_for_one"})
    assert resp.json()["data"]["promotions"] == []


@pytest.mark.django_db
def test_restaurants_sorted_by_distance(client, restaurant, other_restaurant):
    Restaurant.objects.create(name="Cerrado", is_active=False)

    # near Quetzaltenango
    resp = client.get(reverse("restaurants_api:list"), {"lat": "14.84", "lng": "-91.52"})

    names = [r["name"] for r in resp.json()["data"]["restaurants"]]
    assert names == ["Sucursal Xela", "Sucursal Zona 10"]
    assert resp.json()["data"]["restaurants"][0]["distance_km"] < 5


@pytest.mark.django_db
def test_restaurants_filter_by_service(client, restaurant, other_restaurant):
    other_restaurant.delivery_active = False
    other_restaurant.save()
    resp = client.get(reverse("restaurants_api:list"), {"delivery_active": "true"})
    assert [r["name"] for r in resp.json()["data"]["restaurants"]] == ["Sucursal Zona 10"]


@pytest.mark.django_db
def test_restaurant_detail_404_when_inactive(client, restaurant):
    url = reverse("restaurants_api:detail", args=[restaurant.pk])
    assert client.get(url).json()["data"]["restaurant"]["name"] == restaurant.name
    restaurant.is_active = False
    restaurant.save()
    assert client.get(url).status_code == 404
