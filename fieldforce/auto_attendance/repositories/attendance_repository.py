# -*- coding: utf-8 -*-
from __future__ import annotations
from datetime import datetime

from django.db import transaction

from auto_attendance.models import AttendanceRecord

@transaction.atomic
def insert_attendance(
    *, worker_id: str, project_id: str, status: str, occurred_at: datetime,
    source: str = AttendanceRecord.Source.MANUAL,
) -> AttendanceRecord:
    """Insert-only: existing AttendanceRecord rows are never updated from here."""
    return AttendanceRecord.objects.create(
        worker_id=worker_id,
        project_id=project_id,
        status=status,
        occurred_at=occurred_at,
        source=source,
    )
