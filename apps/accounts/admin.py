from django.contrib import admin
from django.contrib.auth import get_user_model
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin
from django.utils.translation import gettext_lazy as _


User = get_user_model()


@admin.register(User)
class UserAdmin(DjangoUserAdmin):
    list_display = ("username", "email", "first_name", "last_name", "restaurant", "is_staff")
    list_filter = DjangoUserAdmin.list_filter + ("restaurant",)
    list_select_related = ("restaurant",)
    search_fields = ("email", "first_name", "last_name", "username")
    ordering = ("username",)

    fieldsets = DjangoUserAdmin.fieldsets + (
        (_("Restaurant"), {"fields": ("restaurant",)}),
    )
    add_fieldsets = DjangoUserAdmin.add_fieldsets + (
        (_("Restaurant"), {"classes": ("wide",), "fields": ("email", "restaurant")}),
    )
