from django.urls import path

from . import views_restaurant as views

app_name = "orders"

urlpatterns = [
    path("", views.index, name="index"),
    path("<uuid:id>/", views.show, name="show"),
    path("<uuid:id>/accept", views.accept, name="accept"),
    path("<uuid:id>/ready", views.ready, name="ready"),
    path("<uuid:id>/complete", views.complete, name="complete"),
    path("<uuid:id>/assign-driver", views.assign_driver, name="assign_driver"),
    path("<uuid:id>/delivered", views.delivered, name="delivered"),
    path("<uuid:id>/cancel", views.cancel, name="cancel"),
]
