import logging

from django.contrib.admin.views.decorators import staff_member_required
from django.core.paginator import EmptyPage, Paginator
from django.shortcuts import get_object_or_404, render
from django.urls import reverse
from django.views.decorators.http import require_POST

from apps.accounts.decorators import restaurant_staff_required
from apps.common.flash import flash_redirect

from . import services
from .forms import DriverFilterForm, DriverForm
from .models import Driver

log = logging.getLogger(__name__)


# Restaurant staff

@restaurant_staff_required
def restaurant_list(request):
    drivers = Driver.objects.for_restaurant(request.user.restaurant).active()
    return render(request, "drivers/restaurant_list.html", {"drivers": drivers, "stats": services.stats(drivers)})


@restaurant_staff_required
@require_POST
def restaurant_availability(request, id):
    driver = get_object_or_404(Driver, pk=id, restaurant=request.user.restaurant, is_active=True)
    to = reverse("restaurant_drivers:list")
    try:
        driver = services.set_availability(driver, not driver.is_available)
    except services.DriverBusy as e:
        return flash_redirect(request, "error", str(e), to)
    state = "disponible" if driver.is_available else "no disponible"
    return flash_redirect(request, "success", f"{driver.name} ahora está {state}.", to)


# Platform staff

@staff_member_required
def staff_list(request):
    form = DriverFilterForm(request.GET or None)
    qs = form.apply(Driver.objects.select_related("restaurant"))
    paginator = Paginator(qs.order_by("name"), 25)
    try:
        page_obj = paginator.page(int(request.GET.get("page") or 1))
    except (EmptyPage, ValueError):
        page_obj = paginator.page(max(1, paginator.num_pages))
    ctx = {
        "filter_form": form,
        "page_obj": page_obj,
        "drivers": page_obj.object_list,
        "stats": services.stats(Driver.objects.all()),
    }
    return render(request, "drivers/staff_list.html", ctx)


@staff_member_required
def staff_create(request):
    form = DriverForm(request.POST or None)
    if request.method == "POST" and form.is_valid():
        driver = form.save()
        log.info("driver %s created by %s", driver.pk, request.user.pk)
        return flash_redirect(request, "success", f"Repartidor {driver.name} creado.", reverse("drivers:staff_list"))
    return render(request, "drivers/staff_form.html", {"form": form, "driver": None})


@staff_member_required
def staff_edit(request, id):
    driver = get_object_or_404(Driver, pk=id)
    form = DriverForm(request.POST or None, instance=driver)
    if request.method == "POST" and form.is_valid():
        form.save()
        return flash_redirect(request, "success", f"Repartidor {driver.name} actualizado.", reverse("drivers:staff_list"))
    return render(request, "drivers/staff_form.html", {"form": form, "driver": driver})


@staff_member_required
@require_POST
def staff_toggle(request, id):
    driver = get_object_or_404(Driver, pk=id)
    active = services.toggle_active(driver)
    state = "activado" if active else "desactivado"
    return flash_redirect(request, "success", f"Repartidor {driver.name} {state}.", reverse("drivers:staff_list"))
