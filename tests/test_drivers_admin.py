import datetime as dt

import pytest
from django.urls import reverse
from django.utils import timezone

from apps.drivers.models import Driver
from apps.drivers.tasks import expire_idle_drivers


@pytest.mark.django_db
def test_staff_list_searches_and_filters(admin_client, make_driver, other_restaurant):
    make_driver(name="Luis")
    make_driver(name="Pedro", restaurant_=other_restaurant)
    make_driver(name="Raul", active=False)

    resp = admin_client.get(reverse("drivers:staff_list"), {"q": "ped"})
    assert [d.name for d in resp.context["drivers"]] == ["Pedro"]

    resp = admin_client.get(reverse("drivers:staff_list"), {"status": "inactive"})
    assert [d.name for d in resp.context["drivers"]] == ["Raul"]

    resp = admin_client.get(reverse("drivers:staff_list"), {"restaurant": str(other_restaurant.pk)})
    assert [d.name for d in resp.context["drivers"]] == ["Pedro"]
    assert resp.context["stats"]["total"] == 3


@pytest.mark.django_db
def test_staff_create_hashes_password_and_normalizes(admin_client, restaurant):
    resp = admin_client.post(
        reverse("drivers:staff_create"),
        {
            "restaurant": str(restaurant.pk),
            "name": "Marta",
            "email": "Marta@Example.com",
            "phone": "4444 5555",
            "is_active": "on",
            "password": "segura123",
        },
    )
    assert resp.status_code == 302
    driver = Driver.objects.get(name="Marta")
    assert driver.email == "marta@example.com"
    assert driver.phone == "+50244445555"
    assert driver.check_password("segura123")
    assert driver.password != "segura123"


@pytest.mark.django_db
def test_staff_create_requires_password(admin_client, restaurant):
    resp = admin_client.post(
        reverse("drivers:staff_create"),
        {"restaurant": str(restaurant.pk), "name": "Marta", "email": "marta@example.com", "is_active": "on"},
    )
    assert resp.status_code == 200
    assert "password" in resp.context["form"].errors


@pytest.mark.django_db
def test_staff_edit_keeps_password_when_blank(admin_client, driver):
    resp = admin_client.post(
        reverse("drivers:staff_edit", args=[driver.pk]),
        {"restaurant": str(driver.restaurant_id), "name": "Luis Alberto", "email": driver.email, "is_active": "on"},
    )
    assert resp.status_code == 302
    driver.refresh_from_db()
    assert driver.name == "Luis Alberto"
    assert driver.check_password("moto1234")


@pytest.mark.django_db
def test_staff_toggle_deactivates_and_takes_offline(admin_client, driver):
    admin_client.post(reverse("drivers:staff_toggle", args=[driver.pk]))
    driver.refresh_from_db()
    assert driver.is_active is False
    assert driver.is_available is False


@pytest.mark.django_db
def test_staff_pages_need_platform_staff(staff_client):
    assert staff_client.get(reverse("drivers:staff_list")).status_code == 302


@pytest.mark.django_db
def test_restaurant_list_shows_own_drivers(staff_client, make_driver, other_restaurant):
    make_driver(name="Luis")
    make_driver(name="Pedro", restaurant_=other_restaurant)
    resp = staff_client.get(reverse("restaurant_drivers:list"))
    assert [d.name for d in resp.context["drivers"]] == ["Luis"]


@pytest.mark.django_db
def test_restaurant_toggles_availability(staff_client, driver, make_order, make_driver, other_restaurant):
    url = reverse("restaurant_drivers:availability", args=[driver.pk])
    staff_client.post(url)
    driver.refresh_from_db()
    assert driver.is_available is False

    staff_client.post(url)
    driver.refresh_from_db()
    assert driver.is_available is True

    make_order(status="out_for_delivery", driver=driver)
    staff_client.post(url)
    driver.refresh_from_db()
    assert driver.is_available is True

    foreign = make_driver(name="Pedro", restaurant_=other_restaurant)
    assert staff_client.post(reverse("restaurant_drivers:availability", args=[foreign.pk])).status_code == 404


@pytest.mark.django_db
def test_idle_drivers_go_offline(make_driver, make_order, settings):
    settings.DRIVER_IDLE_MINUTES = 30
    stale = timezone.now() - dt.timedelta(hours=2)
    idle = make_driver(name="Idle")
    busy = make_driver(name="Busy")
    fresh = make_driver(name="Fresh")
    Driver.objects.filter(pk__in=[idle.pk, busy.pk]).update(last_activity_at=stale)
    make_order(status="out_for_delivery", driver=busy)

    assert expire_idle_drivers() == 1

    assert Driver.objects.get(pk=idle.pk).is_available is False
    assert Driver.objects.get(pk=busy.pk).is_available is True
    assert Driver.objects.get(pk=fresh.pk).is_available is True


@pytest.mark.django_db
def test_drivers_that_never_logged_in_go_offline(make_driver):
    never = make_driver(name="Nuevo")
    Driver.objects.filter(pk=never.pk).update(last_activity_at=None)

    assert expire_idle_drivers() == 1
    assert Driver.objects.get(pk=never.pk).is_available is False
