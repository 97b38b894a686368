from django.contrib import admin

from .models import Restaurant


@admin.register(Restaurant)
class RestaurantAdmin(admin.ModelAdmin):
    list_display = ("name", "zone", "is_active", "delivery_active", "pickup_active", "estimated_pickup_time", "estimated_delivery_time")
    list_filter = ("zone", "is_active", "delivery_active", "pickup_active")
    search_fields = ("name", "address", "phone", "email")
