import secrets
import string
from typing import Callable

from django.utils import timezone

# no 0/O or 1/I so numbers can be read over the phone
ORDER_ALPHABET = "".join(c for c in string.ascii_uppercase + string.digits if c not in "0O1I")


def order_number(taken: Callable[[str], bool], *, length: int = 5, attempts: int = 12, now=None) -> str:
    """Day-stamped order number such as ``240201-K7XQ2`` not yet ``taken``."""
    day = timezone.localtime(now).strftime("%y%m%d")
    for _ in range(attempts):
        candidate = f"{day}-" + "".join(secrets.choice(ORDER_ALPHABET) for _ in range(length))
        if not taken(candidate):
            return candidate
    raise RuntimeError("could not allocate an order number")
