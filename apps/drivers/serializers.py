from apps.orders.serializers import serialize_order_detail


def _iso(value):
    return value.isoformat() if value else None


def serialize_driver(driver) -> dict:
    return {
        "id": str(driver.id),
        "name": driver.name,
        "email": driver.email,
        "phone": driver.phone,
        "restaurant": {"id": str(driver.restaurant_id), "name": driver.restaurant.name},
        "is_active": driver.is_active,
        "is_available": driver.is_available,
        "status": driver.status,
        "current_location": (
            {"latitude": float(driver.current_latitude), "longitude": float(driver.current_longitude)}
            if driver.current_latitude is not None and driver.current_longitude is not None
            else None
        ),
        "last_location_update": _iso(driver.last_location_update),
    }


def serialize_driver_order(order) -> dict:
    data = serialize_order_detail(order, full_phone=True)
    data.pop("history", None)
    data["restaurant"] = {
        "name": order.restaurant.name,
        "address": order.restaurant.address,
        "phone": order.restaurant.phone,
    }
    return data
