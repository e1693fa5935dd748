# -*- coding: utf-8 -*-
from __future__ import annotations
from typing import Optional

from auto_attendance.models import WorkerSettings

def get_by_worker(worker_id: str) -> Optional[WorkerSettings]:
    return WorkerSettings.objects.filter(worker_id=worker_id).first()

def get_worker_timezone(worker_id: str) -> Optional[str]:
    """Raw configured name (may be blank or invalid); None when the worker has no settings row."""
    row = get_by_worker(worker_id)
    if row is None:
        return None
    return (row.timezone or "").strip() or None
