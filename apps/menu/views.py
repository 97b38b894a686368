import logging

from django.contrib.admin.views.decorators import staff_member_required
from django.shortcuts import get_object_or_404, render
from django.urls import reverse
from django.views.decorators.http import require_POST

from apps.common.flash import flash_redirect
from apps.common.http import BadJSON, form_errors, json_data, json_error, read_json
from apps.common.ordering import ReorderError, parse_entries

from . import services
from .forms import BadgeAssignmentForm, ItemRefForm
from .models import BadgeType, Category, Combo, Product, Section
from .reordering import reorder_scope
from .serializers import serialize_badge

log = logging.getLogger(__name__)


@staff_member_required
def order_page(request):
    structure = services.menu_structure()
    ctx = {
        "structure": structure,
        "badge_types": BadgeType.objects.filter(is_active=True),
        "stats": {
            "total_categories": len(structure),
            "active_categories": sum(1 for s in structure if s["category"].is_active),
            "total_products": Product.objects.count(),
            "total_combos": Combo.objects.count(),
        },
    }
    return render(request, "menu/order_page.html", ctx)


@staff_member_required
@require_POST
def reorder(request, scope: str):
    try:
        payload = read_json(request)
        entries = parse_entries(payload.get("items"))
        rows = reorder_scope(scope, entries, parent_id=payload.get("parent_id"))
    except BadJSON as e:
        return json_error(str(e), status=400)
    except ReorderError as e:
        log.info("reorder %s rejected: %s", scope, e)
        return json_error(str(e), status=422)
    return json_data({"items": [{"id": str(r.pk), "sort_order": r.sort_order} for r in rows]})


@staff_member_required
@require_POST
def toggle_item(request):
    form = ItemRefForm(request.POST)
    if not form.is_valid():
        return flash_redirect(request, "error", "Elemento inválido.", reverse("menu:order_page"))
    model = services.item_model(form.cleaned_data["item_type"])
    obj = get_object_or_404(model, pk=form.cleaned_data["item_id"])
    active = services.toggle_active(obj)
    kind = "Combo" if isinstance(obj, Combo) else "Producto"
    state = "activado" if active else "desactivado"
    return flash_redirect(request, "success", f"{kind} {state} correctamente.", reverse("menu:order_page"))


@staff_member_required
@require_POST
def toggle_category(request, id):
    category = get_object_or_404(Category, pk=id)
    active = services.toggle_active(category)
    state = "activada" if active else "desactivada"
    return flash_redirect(request, "success", f"Categoría {state} correctamente.", reverse("menu:order_page"))


@staff_member_required
@require_POST
def update_badges(request):
    try:
        payload = read_json(request)
    except BadJSON as e:
        return json_error(str(e), status=400)

    ref = ItemRefForm(payload)
    if not ref.is_valid():
        return json_error("Elemento inválido.", status=422, errors=form_errors(ref))
    raw_badges = payload.get("badges") or []
    if not isinstance(raw_badges, list):
        return json_error("badges debe ser una lista.", status=422)

    values, errors = [], {}
    for index, raw in enumerate(raw_badges):
        form = BadgeAssignmentForm(raw if isinstance(raw, dict) else {})
        if form.is_valid():
            values.append(form.badge_values())
        else:
            errors[str(index)] = form_errors(form)
    if errors:
        return json_error("Revisa los badges.", status=422, errors=errors)

    model = services.item_model(ref.cleaned_data["item_type"])
    obj = get_object_or_404(model, pk=ref.cleaned_data["item_id"])
    badges = services.sync_badges(obj, values)
    return json_data({"badges": [serialize_badge(b) for b in badges]}, message="Badges actualizados correctamente.")


@staff_member_required
@require_POST
def delete_section(request, id):
    section = get_object_or_404(Section, pk=id)
    title = section.title
    try:
        services.delete_section(section)
    except services.SectionInUse as e:
        return flash_redirect(request, "error", str(e), reverse("admin:menu_section_changelist"))
    return flash_redirect(request, "success", f"Sección «{title}» eliminada.", reverse("admin:menu_section_changelist"))
