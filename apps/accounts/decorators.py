from functools import wraps

from django.contrib.auth.decorators import login_required
from django.http import HttpResponseForbidden


def restaurant_staff_required(view):
    """Login required, and the user must belong to a restaurant."""

    @login_required
    @wraps(view)
    def _wrapped(request, *args, **kwargs):
        if not request.user.is_restaurant_staff:
            return HttpResponseForbidden("Tu usuario no está asignado a un restaurante.")
        return view(request, *args, **kwargs)

    return _wrapped
