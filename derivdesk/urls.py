"""URL configuration for derivdesk project."""

from django.urls import include, path

urlpatterns = [
    path("api/", include("derivatives.urls")),
]
