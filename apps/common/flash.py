import json

from django.contrib import messages
from django.http import HttpResponse
from django.shortcuts import redirect

_TITLES = {"success": "¡Listo!", "error": "Error", "info": "Aviso"}


def hx_flash(kind: str, message: str, *, status: int = 204, redirect_to: str | None = None) -> HttpResponse:
    resp = HttpResponse(status=status)
    resp["HX-Trigger"] = json.dumps({"flash": {"type": kind, "title": _TITLES.get(kind, ""), "message": message}})
    if redirect_to:
        resp["HX-Redirect"] = redirect_to
    return resp


def flash_redirect(request, kind: str, message: str, to: str) -> HttpResponse:
    """Redirect back with a message; HTMX callers get the flash as a trigger instead."""
    if getattr(request, "htmx", False):
        return hx_flash(kind, message, redirect_to=to)
    level = messages.SUCCESS if kind == "success" else messages.ERROR if kind == "error" else messages.INFO
    messages.add_message(request, level, message)
    return redirect(to)
