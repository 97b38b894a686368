import logging

from django.conf import settings
from django.core.paginator import EmptyPage, Paginator
from django.shortcuts import get_object_or_404, render
from django.urls import reverse
from django.utils import timezone
from django.views.decorators.http import require_POST

from apps.accounts.decorators import restaurant_staff_required
from apps.common.flash import flash_redirect
from apps.drivers.models import Driver

from . import selectors, services, workflow
from .forms import AssignDriverForm, CancelForm, OrderFilterForm
from .models import Order

log = logging.getLogger(__name__)


def _order_for(request, id) -> Order:
    return get_object_or_404(Order.objects.select_related("restaurant", "driver"), pk=id, restaurant=request.user.restaurant)


def _version(request):
    raw = request.POST.get("version")
    return int(raw) if raw and raw.isdigit() else None


def _detail_url(order: Order) -> str:
    return reverse("orders:show", args=[order.pk])


@restaurant_staff_required
def index(request):
    restaurant = request.user.restaurant
    form = OrderFilterForm(request.GET or None)
    filters = form.cleaned_data if form.is_valid() else {}
    day = filters.get("date") or timezone.localdate()
    status = filters.get("status") or ""
    service_type = filters.get("service_type") or ""
    per_page = min(filters.get("per_page") or settings.RESTAURANT_ORDERS_PER_PAGE, settings.RESTAURANT_ORDERS_MAX_PER_PAGE)

    qs = selectors.restaurant_orders(restaurant, day=day, status=status, service_type=service_type)
    paginator = Paginator(qs, per_page)
    try:
        page_obj = paginator.page(filters.get("page") or 1)
    except EmptyPage:
        page_obj = paginator.page(max(1, paginator.num_pages))

    ctx = {
        "restaurant": restaurant,
        "filter_form": form,
        "date": day,
        "status": status,
        "service_type": service_type,
        "page_obj": page_obj,
        "orders": [(o, workflow.flags(o)) for o in page_obj.object_list],
        "counts": selectors.status_counts(restaurant, day=day),
        "available_drivers": Driver.objects.for_restaurant(restaurant).available().without_active_order(),
    }
    return render(request, "orders/index.html", ctx)


@restaurant_staff_required
def show(request, id):
    order = _order_for(request, id)
    ctx = {
        "order": order,
        "items": order.items.all(),
        "history": order.status_history.all(),
        "flags": workflow.flags(order),
        "available_drivers": Driver.objects.for_restaurant(order.restaurant).available().without_active_order(),
    }
    return render(request, "orders/show.html", ctx)


def _run(request, order: Order, action, success: str):
    """Run a transition and flash its outcome back on the order page."""
    try:
        action()
    except workflow.InvalidTransition as e:
        log.info("order %s: %s rejected (%s)", order.order_number, e.event, e.status)
        return flash_redirect(request, "error", e.message, _detail_url(order))
    return flash_redirect(request, "success", success, _detail_url(order))


@restaurant_staff_required
@require_POST
def accept(request, id):
    order = _order_for(request, id)
    version = _version(request)
    return _run(
        request,
        order,
        lambda: services.accept(order, user=request.user, expected_version=version),
        f"Orden {order.order_number} aceptada.",
    )


@restaurant_staff_required
@require_POST
def ready(request, id):
    order = _order_for(request, id)
    version = _version(request)
    return _run(
        request,
        order,
        lambda: services.mark_ready(order, user=request.user, expected_version=version),
        f"Orden {order.order_number} lista.",
    )


@restaurant_staff_required
@require_POST
def complete(request, id):
    order = _order_for(request, id)
    if not order.is_pickup:
        return flash_redirect(request, "error", "Las órdenes a domicilio se completan al entregarse.", _detail_url(order))
    version = _version(request)
    return _run(
        request,
        order,
        lambda: services.complete(order, actor_id=request.user.pk, expected_version=version),
        f"Orden {order.order_number} completada.",
    )


@restaurant_staff_required
@require_POST
def assign_driver(request, id):
    order = _order_for(request, id)
    form = AssignDriverForm(request.POST)
    if not form.is_valid():
        message = next(iter(form.errors.get("driver_id", [])), "Repartidor inválido.")
        return flash_redirect(request, "error", message, _detail_url(order))
    driver = Driver.objects.filter(pk=form.cleaned_data["driver_id"], restaurant=order.restaurant).first()
    if driver is None:
        return flash_redirect(request, "error", "El repartidor no pertenece a este restaurante.", _detail_url(order))
    return _run(
        request,
        order,
        lambda: services.assign_driver(order, driver, user=request.user, expected_version=form.cleaned_data.get("version")),
        f"{driver.name} asignado a la orden {order.order_number}.",
    )


@restaurant_staff_required
@require_POST
def delivered(request, id):
    order = _order_for(request, id)
    version = _version(request)
    return _run(
        request,
        order,
        lambda: services.deliver(order, actor_id=request.user.pk, expected_version=version),
        f"Orden {order.order_number} entregada.",
    )


@restaurant_staff_required
@require_POST
def cancel(request, id):
    order = _order_for(request, id)
    form = CancelForm(request.POST)
    if not form.is_valid():
        message = next(iter(form.errors.get("reason", [])), "Indica el motivo de la cancelación.")
        return flash_redirect(request, "error", message, _detail_url(order))
    return _run(
        request,
        order,
        lambda: services.cancel(
            order, reason=form.cleaned_data["reason"], user=request.user, expected_version=form.cleaned_data.get("version")
        ),
        f"Orden {order.order_number} cancelada.",
    )
