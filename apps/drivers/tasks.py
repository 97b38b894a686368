import logging

from celery import shared_task
from django.conf import settings

from . import services

log = logging.getLogger(__name__)


@shared_task
def expire_idle_drivers():
    count = services.expire_idle(settings.DRIVER_IDLE_MINUTES)
    if count:
        log.info("marked %s idle drivers offline", count)
    return count
