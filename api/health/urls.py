from django.urls import path

from . import views

urlpatterns = [
    path("health/", views.health_check, name="health"),
    path("health/detailed/", views.detailed_health_check, name="health-detailed"),
]
