import json

import pytest
from django.core import signing
from django.urls import reverse

from apps.drivers.auth import TOKEN_SALT, driver_from_token, issue_token
from apps.drivers.models import Driver


def _auth(driver):
    return {"HTTP_AUTHORIZATION": f"Bearer {issue_token(driver)}"}


def _post(client, name, driver=None, body=None, args=None):
    headers = _auth(driver) if driver else {}
    return client.post(reverse(f"driver_api:{name}", args=args), data=json.dumps(body or {}), content_type="application/json", **headers)


@pytest.mark.django_db
def test_login_returns_token(client, driver):
    resp = _post(client, "login", body={"email": "LUIS@example.com", "password": "moto1234"})
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert driver_from_token(data["token"]) == driver
    assert data["driver"]["restaurant"]["name"] == driver.restaurant.name
    driver.refresh_from_db()
    assert driver.last_login_at is not None


@pytest.mark.django_db
def test_login_rejects_bad_password_and_inactive(client, driver, make_driver):
    assert _post(client, "login", body={"email": driver.email, "password": "nope"}).status_code == 401
    make_driver(name="Ines", active=False)
    assert _post(client, "login", body={"email": "ines@example.com", "password": "moto1234"}).status_code == 403


@pytest.mark.django_db
def test_login_is_rate_limited(client, driver):
    for _ in range(5):
        _post(client, "login", body={"email": driver.email, "password": "nope"})
    resp = _post(client, "login", body={"email": driver.email, "password": "moto1234"})
    assert resp.status_code == 429


@pytest.mark.django_db
def test_token_required_and_revoked_by_password_change(client, driver):
    assert client.get(reverse("driver_api:orders")).status_code == 401
    token = issue_token(driver)
    driver.set_password("otra-clave-1")
    driver.save()
    resp = client.get(reverse("driver_api:orders"), HTTP_AUTHORIZATION=f"Bearer {token}")
    assert resp.status_code == 401
    forged = signing.dumps({"d": str(driver.pk), "f": "x"}, salt=TOKEN_SALT)
    assert driver_from_token(forged) is None


@pytest.mark.django_db
def test_inactive_driver_is_forbidden(client, driver):
    headers = _auth(driver)
    Driver.objects.filter(pk=driver.pk).update(is_active=False)
    assert client.get(reverse("driver_api:orders"), **headers).status_code == 403


@pytest.mark.django_db
def test_orders_lists_pending_and_active(client, driver, make_order, make_driver):
    ready = make_order(status="ready", driver=driver)
    on_the_way = make_order(status="out_for_delivery", driver=driver)
    make_order(status="ready", driver=make_driver(name="Otro"))

    data = client.get(reverse("driver_api:orders"), **_auth(driver)).json()["data"]

    assert [o["id"] for o in data["pending"]] == [str(ready.pk)]
    assert [o["id"] for o in data["active"]] == [str(on_the_way.pk)]
    assert data["active"][0]["customer_phone"] == on_the_way.customer_phone


@pytest.mark.django_db
def test_accept_and_deliver(client, driver, make_order):
    order = make_order(status="ready", driver=driver)

    resp = _post(client, "accept", driver, args=[order.pk])
    assert resp.status_code == 200
    assert resp.json()["data"]["order"]["status"] == "out_for_delivery"

    resp = _post(client, "deliver", driver, body={"latitude": 14.5995, "longitude": -90.5130}, args=[order.pk])
    assert resp.status_code == 422
    assert resp.json()["distance_m"] > 500

    resp = _post(client, "deliver", driver, body={}, args=[order.pk])
    assert resp.status_code == 422
    assert "latitude" in resp.json()["errors"]

    resp = _post(client, "deliver", driver, body={"latitude": 14.6407, "longitude": -90.5133}, args=[order.pk])
    assert resp.status_code == 200
    order.refresh_from_db()
    driver.refresh_from_db()
    assert order.status == "completed"
    assert driver.is_available is True
    assert driver.current_latitude is not None


@pytest.mark.django_db
def test_accept_conflicts_return_409(client, driver, make_order):
    make_order(status="out_for_delivery", driver=driver)
    second = make_order(status="ready", driver=driver)
    resp = _post(client, "accept", driver, args=[second.pk])
    assert resp.status_code == 409
    assert resp.json()["status"] == "ready"


@pytest.mark.django_db
def test_cannot_touch_other_drivers_orders(client, driver, make_driver, make_order):
    order = make_order(status="ready", driver=make_driver(name="Otro"))
    assert _post(client, "accept", driver, args=[order.pk]).status_code == 404


@pytest.mark.django_db
def test_availability_and_location(client, driver, make_order):
    resp = _post(client, "availability", driver, body={"is_available": False})
    assert resp.json()["data"]["driver"]["is_available"] is False

    resp = _post(client, "location", driver, body={"latitude": 14.6, "longitude": -90.5})
    assert resp.json()["data"]["driver"]["current_location"] == {"latitude": 14.6, "longitude": -90.5}
    assert _post(client, "location", driver, body={"latitude": 200, "longitude": 0}).status_code == 422

    make_order(status="out_for_delivery", driver=driver)
    _post(client, "availability", driver, body={"is_available": True})
    assert _post(client, "availability", driver, body={"is_available": False}).status_code == 409
