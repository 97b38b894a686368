import json

import pytest
from django.contrib import admin
from django.urls import reverse

from apps.common.ordering import ReorderEntry, ReorderError, parse_entries, reorder
from apps.menu.models import Category, Product


def _orders(qs):
    return list(qs.order_by("sort_order").values_list("name", "sort_order"))


@pytest.fixture
def categories(db):
    return [Category.objects.create(name=n) for n in ("Subs", "Ensaladas", "Bebidas")]


@pytest.mark.django_db
def test_append_gets_next_position(categories):
    assert [c.sort_order for c in categories] == [1, 2, 3]


@pytest.mark.django_db
def test_delete_compacts_scope(categories):
    categories[0].delete()
    assert _orders(Category.objects.all()) == [("Ensaladas", 1), ("Bebidas", 2)]


@pytest.mark.django_db
def test_scopes_are_independent(category, price_columns):
    other = Category.objects.create(name="Postres")
    a = Product.objects.create(category=category, name="A", **price_columns(100))
    b = Product.objects.create(category=other, name="B", **price_columns(100))
    assert (a.sort_order, b.sort_order) == (1, 1)


@pytest.mark.django_db
def test_moving_to_another_parent_appends_and_closes_gap(category, price_columns):
    other = Category.objects.create(name="Postres")
    p1 = Product.objects.create(category=category, name="P1", **price_columns(100))
    Product.objects.create(category=category, name="P2", **price_columns(100))
    Product.objects.create(category=other, name="Q1", **price_columns(100))

    p1.category = other
    p1.save()

    assert _orders(Product.objects.filter(category=category)) == [("P2", 1)]
    assert _orders(Product.objects.filter(category=other)) == [("Q1", 1), ("P1", 2)]
    assert p1.sort_order == 2


@pytest.mark.django_db
def test_explicit_position_on_create_is_clamped(categories):
    extra = Category.objects.create(name="Postres", sort_order=7)
    assert extra.sort_order == 4
    assert [c for _, c in _orders(Category.objects.all())] == [1, 2, 3, 4]

    Category.objects.create(name="Extras", sort_order=1)
    assert [c for _, c in _orders(Category.objects.all())] == [1, 2, 3, 4, 5]


@pytest.mark.django_db
def test_reorder_reindexes_with_ties_by_submission(categories):
    subs, ensaladas, bebidas = categories
    entries = [
        ReorderEntry(str(bebidas.pk), 10),
        ReorderEntry(str(subs.pk), 10),
        ReorderEntry(str(ensaladas.pk), 2),
    ]
    reorder(Category.objects.all(), entries)
    assert _orders(Category.objects.all()) == [("Ensaladas", 1), ("Bebidas", 2), ("Subs", 3)]


@pytest.mark.django_db
def test_reorder_rejects_subset_duplicates_and_unknown(categories):
    subs, ensaladas, bebidas = categories
    bad_batches = [
        [subs.pk, ensaladas.pk],
        [subs.pk, subs.pk, ensaladas.pk, bebidas.pk],
        [subs.pk, ensaladas.pk, bebidas.pk, "5f0c8c1e-7f7e-4a5e-9d6e-6a4b1f4c2d10"],
        [subs.pk, ensaladas.pk, "not-a-uuid"],
    ]
    for batch in bad_batches:
        with pytest.raises(ReorderError):
            reorder(Category.objects.all(), parse_entries([str(i) for i in batch]))
    assert _orders(Category.objects.all()) == [("Subs", 1), ("Ensaladas", 2), ("Bebidas", 3)]


def test_parse_entries_rejects_empty_and_bad_orders():
    with pytest.raises(ReorderError):
        parse_entries([])
    with pytest.raises(ReorderError):
        parse_entries([{"id": "x", "sort_order": "abc"}])
    assert parse_entries(["a", "b"]) == [ReorderEntry("a", 1), ReorderEntry("b", 2)]


@pytest.mark.django_db
def test_reorder_endpoint(admin_client, categories):
    subs, ensaladas, bebidas = categories
    url = reverse("menu:reorder", args=["categories"])
    body = {"items": [{"id": str(bebidas.pk), "sort_order": 1}, {"id": str(subs.pk), "sort_order": 2}, {"id": str(ensaladas.pk), "sort_order": 3}]}

    resp = admin_client.post(url, data=json.dumps(body), content_type="application/json")

    assert resp.status_code == 200
    assert [i["id"] for i in resp.json()["data"]["items"]] == [str(bebidas.pk), str(subs.pk), str(ensaladas.pk)]
    assert _orders(Category.objects.all()) == [("Bebidas", 1), ("Subs", 2), ("Ensaladas", 3)]


@pytest.mark.django_db
def test_reorder_endpoint_validation_errors(admin_client, categories, category):
    url = reverse("menu:reorder", args=["categories"])
    resp = admin_client.post(url, data=json.dumps({"items": [str(categories[0].pk)]}), content_type="application/json")
    assert resp.status_code == 422
    assert "message" in resp.json()

    resp = admin_client.post(reverse("menu:reorder", args=["products"]), data=json.dumps({"items": ["x"]}), content_type="application/json")
    assert resp.status_code == 422

    resp = admin_client.post(reverse("menu:reorder", args=["nope"]), data=json.dumps({"items": ["x"]}), content_type="application/json")
    assert resp.status_code == 422

    resp = admin_client.post(url, data="{", content_type="application/json")
    assert resp.status_code == 400


@pytest.mark.django_db
def test_reorder_endpoint_requires_staff(staff_client, categories):
    resp = staff_client.post(reverse("menu:reorder", args=["categories"]), data="{}", content_type="application/json")
    assert resp.status_code == 302


@pytest.mark.django_db
def test_admin_forms_do_not_expose_positions(rf, admin_user, product):
    request = rf.get("/")
    request.user = admin_user
    product_admin = admin.site._registry[Product]

    assert "sort_order" not in product_admin.get_form(request, product).base_fields
    for formset, _inline in product_admin.get_formsets_with_inlines(request, product):
        assert "sort_order" not in formset.form.base_fields
