from django.urls import path

from . import views

app_name = "drivers"

urlpatterns = [
    path("", views.staff_list, name="staff_list"),
    path("new/", views.staff_create, name="staff_create"),
    path("<uuid:id>/edit/", views.staff_edit, name="staff_edit"),
    path("<uuid:id>/toggle/", views.staff_toggle, name="staff_toggle"),
]
