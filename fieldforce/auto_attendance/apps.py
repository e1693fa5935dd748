from django.apps import AppConfig


class AutoAttendanceConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "auto_attendance"
    verbose_name = "Auto attendance"
