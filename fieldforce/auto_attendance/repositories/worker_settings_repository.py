# -*- coding: utf-8 -*-
from __future__ import annotations
from typing import Tuple

from django.db import transaction

from auto_attendance.models import WorkerSettings

@transaction.atomic
def upsert_timezone(*, worker_id: str, timezone_name: str) -> WorkerSettings:
    obj, _ = WorkerSettings.objects.update_or_create(
        worker_id=worker_id,
        defaults={"timezone": timezone_name},
    )
    return obj

@transaction.atomic
def ensure_default_timezone(*, worker_id: str, timezone_name: str = "UTC") -> Tuple[WorkerSettings, bool]:
    """Create the settings row only when missing; an existing row is left untouched."""
    return WorkerSettings.objects.get_or_create(
        worker_id=worker_id,
        defaults={"timezone": timezone_name},
    )
