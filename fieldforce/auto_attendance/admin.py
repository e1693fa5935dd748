from django.contrib import admin
from .models import PresenceEvent, AttendanceRecord, WorkerSettings, ReconciliationRun

@admin.register(PresenceEvent)
class PresenceEventAdmin(admin.ModelAdmin):
    list_display = ("timestamp", "worker_id", "project_id", "action")
    list_filter = ("action",)
    search_fields = ("worker_id", "project_id")

@admin.register(AttendanceRecord)
class AttendanceRecordAdmin(admin.ModelAdmin):
    list_display = ("occurred_at", "worker_id", "project_id", "status", "source")
    list_filter = ("status", "source")
    search_fields = ("worker_id", "project_id")

@admin.register(WorkerSettings)
class WorkerSettingsAdmin(admin.ModelAdmin):
    list_display = ("worker_id", "timezone", "updated_at")
    search_fields = ("worker_id",)

@admin.register(ReconciliationRun)
class ReconciliationRunAdmin(admin.ModelAdmin):
    list_display = ("reference_date", "status", "started_at", "finished_at",
                    "candidates", "checkins_created", "checkouts_created", "failures")
    list_filter = ("status",)
