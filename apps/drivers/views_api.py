import logging

from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from apps.common.http import BadJSON, form_errors, json_data, json_error, read_json
from apps.common.rate_limit import Throttle, client_ip, too_many_requests
from apps.orders import selectors
from apps.orders import services as order_services
from apps.orders.models import Order
from apps.orders.workflow import InvalidTransition

from . import services
from .auth import driver_api, issue_token
from .forms import AvailabilityForm, DeliverForm, LocationForm, LoginForm
from .serializers import serialize_driver, serialize_driver_order

log = logging.getLogger(__name__)

login_throttle = Throttle("driver-login", limit=5, window=300)


def _payload(request):
    try:
        return read_json(request), None
    except BadJSON as e:
        return None, json_error(str(e), status=400)


def _conflict(e: InvalidTransition):
    return JsonResponse({"message": e.message, "status": e.status}, status=409)


@csrf_exempt
@require_POST
def login(request):
    payload, err = _payload(request)
    if err:
        return err
    form = LoginForm(payload)
    if not form.is_valid():
        return json_error("Revisa los datos.", status=422, errors=form_errors(form))
    email = form.cleaned_data["email"].lower()
    wait = login_throttle.hit(f"{client_ip(request)}:{email}")
    if wait:
        return too_many_requests("Demasiados intentos. Intenta más tarde.", wait)
    try:
        driver = services.login(email, form.cleaned_data["password"])
    except services.DriverAuthError as e:
        return json_error(e.message, status=e.status)
    return json_data({"token": issue_token(driver), "driver": serialize_driver(driver)})


@require_GET
@driver_api
def orders(request):
    pending, active = selectors.driver_orders(request.driver)
    return json_data(
        {
            "pending": [serialize_driver_order(o) for o in pending],
            "active": [serialize_driver_order(o) for o in active],
        }
    )


@require_POST
@driver_api
def accept(request, id):
    order = get_object_or_404(Order.objects.select_related("restaurant"), pk=id, driver=request.driver)
    try:
        order_services.pick_up(order, request.driver)
    except InvalidTransition as e:
        return _conflict(e)
    return json_data({"order": serialize_driver_order(order)}, message="Orden en camino.")


@require_POST
@driver_api
def deliver(request, id):
    order = get_object_or_404(Order.objects.select_related("restaurant"), pk=id, driver=request.driver)
    payload, err = _payload(request)
    if err:
        return err
    form = DeliverForm(payload)
    if not form.is_valid():
        return json_error("Envía tu ubicación actual.", status=422, errors=form_errors(form))
    data = form.cleaned_data
    try:
        order_services.driver_deliver(
            order, request.driver, latitude=data["latitude"], longitude=data["longitude"], notes=data.get("notes") or ""
        )
    except order_services.DeliveryTooFar as e:
        return json_error(e.message, status=422, distance_m=int(e.distance_m), max_distance_m=e.max_m)
    except InvalidTransition as e:
        return _conflict(e)
    return json_data({"order": serialize_driver_order(order)}, message="Orden entregada.")


@require_POST
@driver_api
def availability(request):
    payload, err = _payload(request)
    if err:
        return err
    form = AvailabilityForm(payload)
    form.is_valid()
    try:
        driver = services.set_availability(request.driver, form.cleaned_data.get("is_available", False))
    except services.DriverBusy as e:
        return json_error(str(e), status=409)
    return json_data({"driver": serialize_driver(driver)})


@require_POST
@driver_api
def location(request):
    payload, err = _payload(request)
    if err:
        return err
    form = LocationForm(payload)
    if not form.is_valid():
        return json_error("Ubicación inválida.", status=422, errors=form_errors(form))
    request.driver.update_location(form.cleaned_data["latitude"], form.cleaned_data["longitude"])
    return json_data({"driver": serialize_driver(request.driver)})
