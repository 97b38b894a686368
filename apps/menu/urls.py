from django.urls import path

from . import views

app_name = "menu"

urlpatterns = [
    path("order/", views.order_page, name="order_page"),
    path("reorder/<slug:scope>/", views.reorder, name="reorder"),
    path("items/toggle/", views.toggle_item, name="toggle_item"),
    path("items/badges/", views.update_badges, name="update_badges"),
    path("categories/<uuid:id>/toggle/", views.toggle_category, name="toggle_category"),
    path("sections/<uuid:id>/delete/", views.delete_section, name="delete_section"),
]
