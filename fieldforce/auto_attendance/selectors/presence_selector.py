# -*- coding: utf-8 -*-
from __future__ import annotations
from typing import List, Optional, Tuple
from datetime import datetime

from django.db.models import QuerySet

from auto_attendance.models import PresenceEvent

# ============================
# Base queries
# ============================
def base_qs() -> QuerySet[PresenceEvent]:
    return PresenceEvent.objects.all()

def _in_window(qs: QuerySet[PresenceEvent], start: datetime, end: datetime) -> QuerySet[PresenceEvent]:
    # cả hai đầu đều inclusive
    return qs.filter(timestamp__gte=start, timestamp__lte=end)

# ============================
# Discovery
# ============================
def list_enter_pairs(start: datetime, end: datetime) -> List[Tuple[str, str]]:
    """Distinct (worker_id, project_id) pairs with at least one ENTER inside [start, end]."""
    qs = _in_window(base_qs().filter(action=PresenceEvent.Action.ENTER), start, end)
    return list(
        qs.order_by("worker_id", "project_id")
        .values_list("worker_id", "project_id")
        .distinct()
    )

# ============================
# Per-pair lookups
# ============================
def events_for(worker_id: str, project_id: str, action: str, start: datetime, end: datetime) -> QuerySet[PresenceEvent]:
    qs = base_qs().filter(worker_id=worker_id, project_id=project_id, action=action)
    return _in_window(qs, start, end)

def get_earliest_event(
    worker_id: str, project_id: str, action: str, start: datetime, end: datetime
) -> Optional[PresenceEvent]:
    return events_for(worker_id, project_id, action, start, end).order_by("timestamp", "id").first()

def get_latest_event(
    worker_id: str,
    project_id: str,
    action: str,
    start: datetime,
    end: datetime,
    after: Optional[datetime] = None,
) -> Optional[PresenceEvent]:
    """
    Latest event in [start, end]. `after` adds a strict lower bound
    (timestamp > after) on top of the window.
    """
    qs = events_for(worker_id, project_id, action, start, end)
    if after is not None:
        qs = qs.filter(timestamp__gt=after)
    return qs.order_by("-timestamp", "-id").first()
