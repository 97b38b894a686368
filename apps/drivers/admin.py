from django.contrib import admin

from .forms import DriverForm
from .models import Driver


@admin.register(Driver)
class DriverAdmin(admin.ModelAdmin):
    form = DriverForm
    list_display = ("name", "email", "phone", "restaurant", "is_active", "is_available", "last_activity_at")
    list_filter = ("is_active", "is_available", "restaurant")
    search_fields = ("name", "email", "phone")
    readonly_fields = ("current_latitude", "current_longitude", "last_location_update", "last_login_at", "last_activity_at")
