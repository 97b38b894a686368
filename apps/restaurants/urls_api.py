from django.urls import path

from . import views_api

app_name = "restaurants_api"

urlpatterns = [
    path("restaurants", views_api.restaurant_list, name="list"),
    path("restaurants/<uuid:id>", views_api.restaurant_detail, name="detail"),
]
