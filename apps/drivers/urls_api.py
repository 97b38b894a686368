from django.urls import path

from . import views_api

app_name = "driver_api"

urlpatterns = [
    path("login", views_api.login, name="login"),
    path("orders", views_api.orders, name="orders"),
    path("orders/<uuid:id>/accept", views_api.accept, name="accept"),
    path("orders/<uuid:id>/deliver", views_api.deliver, name="deliver"),
    path("availability", views_api.availability, name="availability"),
    path("location", views_api.location, name="location"),
]
