from django.db import models
from .mixins import TimeStampedModel


class PresenceEvent(TimeStampedModel):
    """Raw door/geofence signal. Written by ingestion, read-only for reconciliation."""

    class Action(models.TextChoices):
        ENTER = "ENTER", "Enter"
        EXIT = "EXIT", "Exit"

    worker_id = models.CharField(max_length=64, db_index=True)
    project_id = models.CharField(max_length=64, db_index=True)
    action = models.CharField(max_length=8, choices=Action.choices)
    timestamp = models.DateTimeField()

    class Meta:
        db_table = "PresenceEvent"
        ordering = ["timestamp"]
        indexes = [
            models.Index(fields=["worker_id", "project_id", "timestamp"], name="presence_worker_proj_ts_idx"),
            models.Index(fields=["action", "timestamp"], name="presence_action_ts_idx"),
        ]

    def __str__(self):
        return f"{self.action} {self.worker_id}@{self.project_id} {self.timestamp:%Y-%m-%d %H:%M:%S}"
