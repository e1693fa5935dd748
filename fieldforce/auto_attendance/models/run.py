from django.db import models
from django.db.models import Q, UniqueConstraint
from .mixins import TimeStampedModel


class ReconciliationRun(TimeStampedModel):
    class Status(models.TextChoices):
        RUNNING = "running", "Running"
        FINISHED = "finished", "Finished"
        FAILED = "failed", "Failed"

    reference_date = models.DateField(db_index=True)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.RUNNING)
    started_at = models.DateTimeField()
    finished_at = models.DateTimeField(null=True, blank=True)

    candidates = models.IntegerField(default=0)
    checkins_created = models.IntegerField(default=0)
    checkouts_created = models.IntegerField(default=0)
    failures = models.IntegerField(default=0)
    error = models.TextField(blank=True, default="")

    class Meta:
        db_table = "ReconciliationRun"
        ordering = ["-started_at"]
        constraints = [
            # chỉ một lượt "running" cho mỗi ngày
            UniqueConstraint(
                fields=["reference_date"],
                condition=Q(status="running"),
                name="uniq_running_reconciliation_per_date",
            ),
        ]

    def __str__(self):
        return f"RUN {self.reference_date} [{self.get_status_display()}]"
