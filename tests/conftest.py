import pytest
from django.core.cache import cache
from django.utils import timezone

from apps.accounts.models import User
from apps.drivers.models import Driver
from apps.menu.models import Category, Product, ProductVariant
from apps.orders.models import Order, OrderStatusHistory
from apps.restaurants.models import Restaurant


def prices(pickup_capital, delivery_capital=None, pickup_interior=None, delivery_interior=None, prefix="price"):
    delivery_capital = pickup_capital if delivery_capital is None else delivery_capital
    pickup_interior = pickup_capital if pickup_interior is None else pickup_interior
    delivery_interior = delivery_capital if delivery_interior is None else delivery_interior
    return {
        f"{prefix}_pickup_capital_cents": pickup_capital,
        f"{prefix}_delivery_capital_cents": delivery_capital,
        f"{prefix}_pickup_interior_cents": pickup_interior,
        f"{prefix}_delivery_interior_cents": delivery_interior,
    }


@pytest.fixture(autouse=True)
def _clear_cache():
    # rate limit buckets live in the cache
    cache.clear()
    yield


@pytest.fixture
def price_columns():
    return prices


@pytest.fixture
def restaurant(db):
    return Restaurant.objects.create(
        name="Sucursal Zona 10",
        address="4a Avenida 12-59, Zona 10",
        latitude="14.5995000",
        longitude="-90.5130000",
        zone="capital",
        estimated_pickup_time=15,
        estimated_delivery_time=40,
        delivery_fee_cents=1500,
    )


@pytest.fixture
def other_restaurant(db):
    return Restaurant.objects.create(name="Sucursal Xela", zone="interior", latitude="14.8347000", longitude="-91.5180000")


@pytest.fixture
def user(db):
    return User.objects.create_user(username="ana", email="Ana@Example.com", password="secret123")


@pytest.fixture
def staff_user(db, restaurant):
    return User.objects.create_user(username="cocina", email="cocina@example.com", password="secret123", restaurant=restaurant)


@pytest.fixture
def staff_client(client, staff_user):
    client.force_login(staff_user)
    return client


@pytest.fixture
def make_driver(restaurant):
    def _make(*, name="Luis", email=None, restaurant_=None, available=True, active=True, password="moto1234"):
        driver = Driver(
            restaurant=restaurant_ or restaurant,
            name=name,
            email=email or f"{name.lower()}@example.com",
            phone="+50255551234",
            is_available=available,
            is_active=active,
            last_activity_at=timezone.now(),
        )
        driver.set_password(password)
        driver.save()
        return driver

    return _make


@pytest.fixture
def driver(make_driver):
    return make_driver()


@pytest.fixture
def make_order(restaurant):
    def _make(*, status="pending", service_type="delivery", driver=None, restaurant_=None, address=None, **extra):
        if address is None and service_type == "delivery":
            address = {"address": "6a Calle 5-20, Zona 1", "latitude": 14.6407, "longitude": -90.5133}
        order = Order.objects.create(
            restaurant=restaurant_ or restaurant,
            status=status,
            service_type=service_type,
            customer_name="María López",
            customer_phone="+50255559876",
            delivery_address=address,
            subtotal_cents=5000,
            delivery_fee_cents=1500 if service_type == "delivery" else 0,
            total_cents=6500 if service_type == "delivery" else 5000,
            driver=driver,
            **extra,
        )
        OrderStatusHistory.objects.create(order=order, previous_status="", status="pending", changed_by_type="customer")
        return order

    return _make


@pytest.fixture
def category(db):
    return Category.objects.create(name="Subs")


@pytest.fixture
def product(category):
    return Product.objects.create(category=category, name="Sub de pollo", **prices(3000, 3500, 3200, 3700))


@pytest.fixture
def variant(product):
    product.has_variants = True
    product.save(update_fields=["has_variants"])
    return ProductVariant.objects.create(product=product, name="30 cm", **prices(4500, 5000))
