# -*- coding: utf-8 -*-
from __future__ import annotations
from typing import Any, Optional
from datetime import datetime
import logging

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db.models import QuerySet
from django.utils import timezone

from auto_attendance.models import AttendanceRecord, PresenceEvent, WorkerSettings
from auto_attendance.selectors import attendance_selector
from auto_attendance.repositories import attendance_repository, presence_repository, worker_settings_repository
from auto_attendance.services import timezone_service

logger = logging.getLogger(__name__)

_MIRROR_ACTION = {
    AttendanceRecord.Status.CHECKIN: PresenceEvent.Action.ENTER,
    AttendanceRecord.Status.CHECKOUT: PresenceEvent.Action.EXIT,
}

def _mirror_enabled() -> bool:
    return bool(getattr(settings, "AUTO_ATTENDANCE_MIRROR_MANUAL_EVENTS", True))

def _aware(dt: datetime) -> datetime:
    if timezone.is_aware(dt):
        return dt
    return timezone.make_aware(dt, timezone.get_current_timezone())

# ========= manual check-in / check-out =========
def record_attendance(
    *, worker_id: str, project_id: str, status: str, occurred_at: Optional[datetime] = None
) -> AttendanceRecord:
    """
    Ghi nhận check-in/check-out thủ công, sau đó ghi PresenceEvent tương ứng
    (ENTER/EXIT) cùng thời điểm. Lỗi khi ghi event chỉ log, không huỷ bản ghi.
    """
    if not worker_id or not project_id:
        raise ValidationError("worker_id và project_id là bắt buộc.")
    if status not in _MIRROR_ACTION:
        raise ValidationError(f"Invalid status {status!r}. Must be either checkin or checkout.")

    at = _aware(occurred_at) if occurred_at else timezone.now()
    obj = attendance_repository.insert_attendance(
        worker_id=worker_id,
        project_id=project_id,
        status=status,
        occurred_at=at,
        source=AttendanceRecord.Source.MANUAL,
    )
    logger.info("[attendance] manual %s worker_id=%s project_id=%s at %s", status, worker_id, project_id, at.isoformat())

    if _mirror_enabled():
        try:
            presence_repository.create_event(
                worker_id=worker_id,
                project_id=project_id,
                action=_MIRROR_ACTION[status],
                timestamp=at,
            )
        except Exception as ex:
            logger.exception("[attendance] saving presence event failed for worker_id=%s project_id=%s: %s",
                             worker_id, project_id, ex)
    return obj

# ========= worker settings =========
def set_worker_timezone(*, worker_id: str, timezone_name: str) -> WorkerSettings:
    name = (timezone_name or "").strip()
    if not timezone_service.is_valid_timezone(name):
        raise ValidationError({"timezone": f"Unknown IANA timezone: {timezone_name!r}"})
    return worker_settings_repository.upsert_timezone(worker_id=worker_id, timezone_name=name)

# ========= reporting =========
def list_attendance(
    *, worker_id: Optional[str] = None, project_id: Optional[str] = None, status: Optional[str] = None,
    start: Any = None, end: Any = None,
) -> QuerySet[AttendanceRecord]:
    return attendance_selector.list_attendance(
        worker_id=worker_id, project_id=project_id, status=status, start=start, end=end,
    )
