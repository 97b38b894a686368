import json
from typing import Any

from django.http import JsonResponse


class BadJSON(ValueError):
    pass


def read_json(request) -> dict:
    """Decode a JSON object body; form-encoded POSTs fall back to ``request.POST``."""
    content_type = (request.content_type or "").lower()
    if "application/json" not in content_type:
        return request.POST.dict()
    if not request.body:
        return {}
    try:
        payload = json.loads(request.body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        raise BadJSON("JSON inválido")
    if not isinstance(payload, dict):
        raise BadJSON("Se esperaba un objeto JSON")
    return payload


def json_data(payload: Any, status: int = 200, **extra) -> JsonResponse:
    body = {"data": payload}
    body.update(extra)
    return JsonResponse(body, status=status)


def json_error(message: str, status: int = 400, *, errors: dict | None = None, **extra) -> JsonResponse:
    body: dict[str, Any] = {"message": message}
    if errors:
        body["errors"] = errors
    body.update(extra)
    return JsonResponse(body, status=status)


def form_errors(form) -> dict:
    return {field: [str(e) for e in errs] for field, errs in form.errors.items()}
