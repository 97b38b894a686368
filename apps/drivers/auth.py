"""Bearer tokens for the driver app.

Tokens are signed with the project secret and carry the driver id plus a
fingerprint of the password hash, so changing the password revokes them.
"""
import hashlib
import logging
from functools import wraps

from django.conf import settings
from django.core import signing
from django.views.decorators.csrf import csrf_exempt

from apps.common.http import json_error

from .models import Driver

log = logging.getLogger(__name__)

TOKEN_SALT = "drivers.api-token"


def _fingerprint(driver: Driver) -> str:
    return hashlib.sha256((driver.password or "").encode()).hexdigest()[:16]


def issue_token(driver: Driver) -> str:
    return signing.dumps({"d": str(driver.pk), "f": _fingerprint(driver)}, salt=TOKEN_SALT, compress=True)


def driver_from_token(token: str) -> Driver | None:
    try:
        payload = signing.loads(token, salt=TOKEN_SALT, max_age=settings.DRIVER_TOKEN_MAX_AGE)
    except signing.SignatureExpired:
        log.info("driver token expired")
        return None
    except signing.BadSignature:
        log.warning("driver token with bad signature")
        return None
    driver = Driver.objects.filter(pk=payload.get("d")).select_related("restaurant").first()
    if driver is None or payload.get("f") != _fingerprint(driver):
        return None
    return driver


def _bearer(request) -> str:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer":
        return ""
    return token.strip()


def driver_api(view):
    """Authenticate the driver app; sets ``request.driver``."""

    @csrf_exempt
    @wraps(view)
    def _wrapped(request, *args, **kwargs):
        token = _bearer(request)
        driver = driver_from_token(token) if token else None
        if driver is None:
            return json_error("No autenticado.", status=401)
        if not driver.is_active:
            return json_error("Tu cuenta de repartidor está desactivada.", status=403)
        request.driver = driver
        driver.touch()
        return view(request, *args, **kwargs)

    return _wrapped
