"""
URL configuration for fieldforce project.

Only the admin is exposed; attendance is produced by the daily reconciliation
job (`manage.py run_attendance_scheduler` / `manage.py reconcile_attendance`).
"""
# fieldforce/urls.py
from django.contrib import admin
from django.urls import path

urlpatterns = [
    path("admin/", admin.site.urls),
]
