from django.contrib import admin
from django.http import HttpResponse
from django.urls import include, path
from django.views.generic import RedirectView

urlpatterns = [
    path("admin/", admin.site.urls),
    # Healthcheck endpoint
    path("healthz", lambda _request: HttpResponse("ok")),
    path("auth/", include("apps.accounts.urls")),
    # Restaurant staff
    path("restaurant/orders/", include("apps.orders.urls")),
    path("restaurant/drivers/", include("apps.drivers.urls_restaurant")),
    # Platform staff
    path("menu/", include("apps.menu.urls")),
    path("drivers/", include("apps.drivers.urls")),
    # JSON API
    path("api/v1/", include("apps.menu.urls_api")),
    path("api/v1/", include("apps.restaurants.urls_api")),
    path("api/v1/", include("apps.orders.urls_api")),
    path("api/v1/driver/", include("apps.drivers.urls_api")),
    path("", RedirectView.as_view(pattern_name="orders:index", permanent=False)),
]
