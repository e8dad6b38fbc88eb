"""
URL configuration for gangbook.

- ``/api/`` is the JSON API, including the staff-only reference data
  endpoints under ``/api/admin/``
- ``/accounts/`` is django-allauth
- ``/admin/`` is the Django admin
"""

from django.contrib import admin
from django.urls import include, path

admin.site.site_header = "Gangbook Admin"

urlpatterns = [
    path("api/", include("gangbook.api.urls")),
    path("accounts/", include("allauth.urls")),
    path("admin/", admin.site.urls),
]
