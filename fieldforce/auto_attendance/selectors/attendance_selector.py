# -*- coding: utf-8 -*-
from __future__ import annotations
from typing import Any, Optional
from datetime import datetime, date

from django.db.models import QuerySet
from django.utils import timezone

from auto_attendance.models import AttendanceRecord

# ==== helpers ====
def _to_datetime(v: Any) -> Optional[datetime]:
    if not v:
        return None
    if isinstance(v, datetime):
        return v if timezone.is_aware(v) else timezone.make_aware(v, timezone.get_current_timezone())
    if isinstance(v, date):
        return timezone.make_aware(datetime(v.year, v.month, v.day, 0, 0, 0), timezone.get_current_timezone())
    try:
        dt = datetime.fromisoformat(str(v).replace("Z", "+00:00"))
    except ValueError:
        return None
    return dt if timezone.is_aware(dt) else timezone.make_aware(dt, timezone.get_current_timezone())

# ==== tolerance / anchor lookups ====
def find_attendance(
    worker_id: str,
    project_id: str,
    status: str,
    start: datetime,
    end: datetime,
    *,
    after: Optional[datetime] = None,
    latest: bool = False,
) -> Optional[AttendanceRecord]:
    """
    First record of `status` for the pair with start <= occurred_at <= end.
    `after` adds occurred_at > after. `latest=True` picks the most recent one.
    """
    qs = AttendanceRecord.objects.filter(
        worker_id=worker_id,
        project_id=project_id,
        status=status,
        occurred_at__gte=start,
        occurred_at__lte=end,
    )
    if after is not None:
        qs = qs.filter(occurred_at__gt=after)
    order = ("-occurred_at", "-id") if latest else ("occurred_at", "id")
    return qs.order_by(*order).first()

# ==== reporting ====
def list_attendance(
    worker_id: Optional[str] = None,
    project_id: Optional[str] = None,
    status: Optional[str] = None,
    start: Any = None,
    end: Any = None,
) -> QuerySet[AttendanceRecord]:
    qs = AttendanceRecord.objects.all()
    if worker_id:
        qs = qs.filter(worker_id=worker_id)
    if project_id:
        qs = qs.filter(project_id=project_id)
    if status:
        qs = qs.filter(status=status)
    dt_from = _to_datetime(start)
    dt_to = _to_datetime(end)
    # chỉ lọc theo thời gian khi có đủ cả hai đầu
    if dt_from and dt_to:
        qs = qs.filter(occurred_at__gte=dt_from, occurred_at__lte=dt_to)
    return qs.order_by("-occurred_at", "-id")
