from django.urls import path

from . import views_api

app_name = "orders_api"

urlpatterns = [
    path("orders", views_api.create_order, name="create"),
]
