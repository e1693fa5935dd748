from django.db import models
from .mixins import TimeStampedModel


class WorkerSettings(TimeStampedModel):
    worker_id = models.CharField(max_length=64, unique=True, db_index=True)
    timezone = models.CharField(max_length=64, default="UTC", help_text="IANA name, vd: America/New_York")

    class Meta:
        db_table = "WorkerSettings"

    def __str__(self):
        return f"{self.worker_id} ({self.timezone})"
