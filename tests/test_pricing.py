import datetime as dt

import pytest
from django.utils import timezone

from apps.menu import pricing
from apps.menu.models import Combo, ComboItem, ComboItemOption, Product, Promotion, PromotionItem

# Wednesday, local time
WEDNESDAY = timezone.make_aware(dt.datetime(2024, 5, 15, 12, 0))


def test_apply_percentage_rounds_half_up():
    assert pricing.apply_percentage(1999, 10) == 1799
    assert pricing.apply_percentage(1005, 50) == 503


@pytest.mark.django_db
def test_price_for_picks_zone_and_service_column(product):
    assert pricing.price_for(product, "capital", "pickup") == 3000
    assert pricing.price_for(product, "capital", "delivery") == 3500
    assert pricing.price_for(product, "interior", "delivery") == 3700


@pytest.mark.django_db
def test_quote_without_promotions_is_base_price(product):
    q = pricing.quote(product, zone="capital", service_type="pickup", moment=WEDNESDAY)
    assert q.base_cents == q.final_cents == 3000
    assert not q.is_promotional


@pytest.mark.django_db
def test_daily_special_applies_only_on_its_day(variant, price_columns):
    for name, value in price_columns(2900, prefix="daily_special_price").items():
        setattr(variant, name, value)
    variant.is_daily_special = True
    variant.daily_special_days = [3]
    variant.save()

    q = pricing.quote(variant.product, variant=variant, zone="capital", service_type="pickup", moment=WEDNESDAY)
    assert q.final_cents == 2900
    assert q.promotion_type == Promotion.TYPE_DAILY_SPECIAL

    thursday = WEDNESDAY + dt.timedelta(days=1)
    q = pricing.quote(variant.product, variant=variant, zone="capital", service_type="pickup", moment=thursday)
    assert q.final_cents == 4500


@pytest.mark.django_db
def test_best_promotion_wins_and_respects_window(product):
    pct = Promotion.objects.create(name="10%", type=Promotion.TYPE_PERCENTAGE)
    PromotionItem.objects.create(promotion=pct, category=product.category, discount_percentage=10)
    special = Promotion.objects.create(name="Precio especial", type=Promotion.TYPE_PERCENTAGE)
    PromotionItem.objects.create(
        promotion=special,
        product=product,
        special_price_pickup_capital_cents=2500,
        validity_type="weekdays",
        weekdays=[1],
    )

    q = pricing.quote(product, zone="capital", service_type="pickup", moment=WEDNESDAY)
    assert q.final_cents == 2700
    assert q.promotion_name == "10%"

    monday = WEDNESDAY - dt.timedelta(days=2)
    q = pricing.quote(product, zone="capital", service_type="pickup", moment=monday)
    assert q.final_cents == 2500


@pytest.mark.django_db
def test_two_for_one_never_lowers_unit_price(product):
    promo = Promotion.objects.create(name="2x1", type=Promotion.TYPE_TWO_FOR_ONE)
    PromotionItem.objects.create(promotion=promo, product=product, special_price_pickup_capital_cents=100)
    q = pricing.quote(product, zone="capital", service_type="pickup", moment=WEDNESDAY)
    assert q.final_cents == 3000


@pytest.mark.django_db
def test_service_restricted_item_ignored_for_other_service(product):
    promo = Promotion.objects.create(name="Solo domicilio", type=Promotion.TYPE_PERCENTAGE)
    PromotionItem.objects.create(promotion=promo, product=product, service_type="delivery", discount_percentage=50)
    assert pricing.quote(product, zone="capital", service_type="pickup", moment=WEDNESDAY).final_cents == 3000
    assert pricing.quote(product, zone="capital", service_type="delivery", moment=WEDNESDAY).final_cents == 1750


@pytest.mark.django_db
def test_combo_availability_follows_products(product, category, price_columns):
    drink = Product.objects.create(category=category, name="Bebida", **price_columns(800))
    combo = Combo.objects.create(name="Combo 1", **price_columns(4000))
    ComboItem.objects.create(combo=combo, product=product)
    group = ComboItem.objects.create(combo=combo, is_choice_group=True, choice_label="Bebida")
    ComboItemOption.objects.create(combo_item=group, product=drink)
    assert combo.is_available()

    drink.is_active = False
    drink.save()
    assert not Combo.objects.get(pk=combo.pk).is_available()

    drink.is_active = True
    drink.save()
    product.is_active = False
    product.save()
    assert not Combo.objects.get(pk=combo.pk).is_available()


def test_split_two_for_one_frees_cheapest_units():
    assert pricing.split_two_for_one([(1000, 2)]) == [(2, 1)]
    assert pricing.split_two_for_one([(1000, 3)]) == [(2, 1)]
    assert pricing.split_two_for_one([(1000, 1)]) == [(0, 0)]
    # cheapest units enter the pairs first
    assert pricing.split_two_for_one([(4000, 1), (3000, 2)]) == [(0, 0), (2, 1)]
    assert pricing.split_two_for_one([(4000, 2), (3000, 1)]) == [(1, 0), (1, 1)]


@pytest.mark.django_db
def test_two_for_one_promotion_lookup(product, category, price_columns):
    assert pricing.two_for_one_promotion(product, service_type="pickup", moment=WEDNESDAY) is None

    promo = Promotion.objects.create(name="2x1 Subs", type=Promotion.TYPE_TWO_FOR_ONE)
    PromotionItem.objects.create(promotion=promo, category=category, service_type="delivery")
    assert pricing.two_for_one_promotion(product, service_type="pickup", moment=WEDNESDAY) is None
    assert pricing.two_for_one_promotion(product, service_type="delivery", moment=WEDNESDAY) == promo

    promo.is_active = False
    promo.save()
    assert pricing.two_for_one_promotion(product, service_type="delivery", moment=WEDNESDAY) is None
