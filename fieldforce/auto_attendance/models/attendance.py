from django.db import models
from .mixins import TimeStampedModel


class AttendanceRecord(TimeStampedModel):
    class Status(models.TextChoices):
        CHECKIN = "checkin", "Check-in"
        CHECKOUT = "checkout", "Check-out"

    class Source(models.TextChoices):
        AUTO = "auto", "Auto (reconciled)"
        MANUAL = "manual", "Manual"

    worker_id = models.CharField(max_length=64, db_index=True)
    project_id = models.CharField(max_length=64, db_index=True)
    status = models.CharField(max_length=16, choices=Status.choices)
    occurred_at = models.DateTimeField(db_index=True)
    source = models.CharField(max_length=16, choices=Source.choices, default=Source.MANUAL)

    class Meta:
        db_table = "AttendanceRecord"
        ordering = ["-occurred_at"]
        # Không unique: bản ghi thủ công ngoài cửa sổ dung sai có thể trùng ngày.
        indexes = [
            models.Index(fields=["worker_id", "project_id", "status", "occurred_at"], name="attendance_lookup_idx"),
        ]

    def __str__(self):
        return f"ATTD {self.worker_id}@{self.project_id} {self.status} {self.occurred_at:%Y-%m-%d %H:%M:%S} [{self.source}]"
