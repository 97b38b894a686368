import os

from celery import Celery
from celery.schedules import crontab

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()

app.conf.beat_schedule = {
    # drivers idle for DRIVER_IDLE_MINUTES go offline
    "expire-idle-drivers": {
        "task": "apps.drivers.tasks.expire_idle_drivers",
        "schedule": crontab(minute="*/5"),
    },
}
