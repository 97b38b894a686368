import logging

from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from apps.common.http import BadJSON, json_data, json_error, read_json
from apps.common.rate_limit import Throttle, client_ip, too_many_requests

from .placement import OrderValidationError, place_order
from .serializers import serialize_order_detail

log = logging.getLogger(__name__)

create_throttle = Throttle("orders-create", limit=20, window=60)


@csrf_exempt
@require_POST
def create_order(request):
    wait = create_throttle.hit(client_ip(request))
    if wait:
        return too_many_requests("Demasiados pedidos. Intenta de nuevo en un momento.", wait)
    try:
        payload = read_json(request)
    except BadJSON as e:
        return json_error(str(e), status=400)
    try:
        order = place_order(payload)
    except OrderValidationError as e:
        return json_error(e.message, status=422, errors=e.errors)
    return json_data({"order": serialize_order_detail(order, full_phone=True)}, status=201)
