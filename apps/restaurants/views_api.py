from django.views.decorators.http import require_GET

from apps.common.geo import haversine_m, parse_coord
from apps.common.http import json_data, json_error

from .models import Restaurant


def _truthy(value) -> bool:
    return str(value or "").lower() in {"1", "true", "yes", "on"}


def serialize_restaurant(r: Restaurant, distance_m: float | None = None) -> dict:
    data = {
        "id": str(r.id),
        "name": r.name,
        "address": r.address,
        "phone": r.phone,
        "email": r.email,
        "latitude": float(r.latitude) if r.latitude is not None else None,
        "longitude": float(r.longitude) if r.longitude is not None else None,
        "zone": r.zone,
        "schedule": r.schedule,
        "delivery_active": r.delivery_active,
        "pickup_active": r.pickup_active,
        "estimated_pickup_time": r.estimated_pickup_time,
        "estimated_delivery_time": r.estimated_delivery_time,
        "delivery_fee": r.delivery_fee_cents,
        "minimum_order": r.minimum_order_cents,
    }
    if distance_m is not None:
        data["distance_km"] = round(distance_m / 1000, 2)
    return data


@require_GET
def restaurant_list(request):
    qs = Restaurant.objects.filter(is_active=True)
    if _truthy(request.GET.get("delivery_active")):
        qs = qs.filter(delivery_active=True)
    if _truthy(request.GET.get("pickup_active")):
        qs = qs.filter(pickup_active=True)

    lat = parse_coord(request.GET.get("lat"), limit=90)
    lng = parse_coord(request.GET.get("lng"), limit=180)
    if lat is None or lng is None:
        return json_data({"restaurants": [serialize_restaurant(r) for r in qs]})

    located, rest = [], []
    for r in qs:
        if r.latitude is None or r.longitude is None:
            rest.append(r)
        else:
            located.append((haversine_m(lat, lng, r.latitude, r.longitude), r))
    located.sort(key=lambda pair: pair[0])
    # restaurants without coordinates go last
    payload = [serialize_restaurant(r, d) for d, r in located] + [serialize_restaurant(r) for r in rest]
    return json_data({"restaurants": payload})


@require_GET
def restaurant_detail(request, id):
    restaurant = Restaurant.objects.filter(pk=id, is_active=True).first()
    if restaurant is None:
        return json_error("Restaurante no encontrado", status=404)
    return json_data({"restaurant": serialize_restaurant(restaurant)})
