from django.urls import path

from . import views_api

app_name = "menu_api"

urlpatterns = [
    path("menu", views_api.menu, name="menu"),
    path("menu/products/<uuid:id>", views_api.product_detail, name="product_detail"),
    path("menu/combos/<uuid:id>", views_api.combo_detail, name="combo_detail"),
    path("menu/promotions", views_api.promotions, name="promotions"),
]
