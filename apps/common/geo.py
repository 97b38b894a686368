import math
from decimal import Decimal

EARTH_RADIUS_M = 6_371_000


def haversine_m(lat1, lng1, lat2, lng2) -> float:
    """Great-circle distance in meters between two lat/lng points."""
    lat1, lng1, lat2, lng2 = (float(v) for v in (lat1, lng1, lat2, lng2))
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlmb = math.radians(lng2 - lng1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(a))


def parse_coord(value, *, limit: int) -> Decimal | None:
    """Parse a latitude (limit=90) or longitude (limit=180); None when absent or invalid."""
    if value in (None, ""):
        return None
    try:
        d = Decimal(str(value))
    except ArithmeticError:
        return None
    if not d.is_finite() or abs(d) > limit:
        return None
    return d
