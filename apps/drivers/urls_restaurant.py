from django.urls import path

from . import views

app_name = "restaurant_drivers"

urlpatterns = [
    path("", views.restaurant_list, name="list"),
    path("<uuid:id>/availability", views.restaurant_availability, name="availability"),
]
