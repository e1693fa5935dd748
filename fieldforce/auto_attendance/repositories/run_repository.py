# -*- coding: utf-8 -*-
from __future__ import annotations
from typing import Dict, Optional
from datetime import date, timedelta
import logging

from django.db import transaction, IntegrityError
from django.utils import timezone

from auto_attendance.models import ReconciliationRun

logger = logging.getLogger(__name__)

COUNTER_FIELDS = ["candidates", "checkins_created", "checkouts_created", "failures"]

def claim(reference_date: date) -> Optional[ReconciliationRun]:
    """
    Tạo bản ghi "running" cho ngày. None nếu đã có lượt khác đang chạy
    (vi phạm uniq_running_reconciliation_per_date).
    """
    try:
        with transaction.atomic():
            return ReconciliationRun.objects.create(
                reference_date=reference_date,
                status=ReconciliationRun.Status.RUNNING,
                started_at=timezone.now(),
            )
    except IntegrityError:
        return None

@transaction.atomic
def finish(run: ReconciliationRun, *, status: str, counters: Dict[str, int], error: str = "") -> ReconciliationRun:
    """
    Đóng lượt chạy. Chỉ cập nhật khi bản ghi vẫn "running"; nếu đã bị
    expire_stale đánh dấu failed thì giữ nguyên và chỉ log.
    """
    values = {k: int(v) for k, v in counters.items() if k in COUNTER_FIELDS}
    values.update(status=status, error=error or "", finished_at=timezone.now(), updated_at=timezone.now())
    updated = (
        ReconciliationRun.objects
        .filter(pk=run.pk, status=ReconciliationRun.Status.RUNNING)
        .update(**values)
    )
    if not updated:
        logger.warning("[auto-attendance] run %s for %s was no longer running, keeping its recorded state",
                       run.pk, run.reference_date)
    run.refresh_from_db()
    return run

@transaction.atomic
def expire_stale(reference_date: date, *, older_than: timedelta) -> int:
    """Mark "running" claims older than `older_than` as failed so a crashed run cannot block the date forever."""
    cutoff = timezone.now() - older_than
    return (
        ReconciliationRun.objects
        .filter(reference_date=reference_date, status=ReconciliationRun.Status.RUNNING, started_at__lt=cutoff)
        .update(status=ReconciliationRun.Status.FAILED, finished_at=timezone.now(), error="stale claim expired")
    )
