# -*- coding: utf-8 -*-
from __future__ import annotations
from datetime import datetime

from django.db import transaction

from auto_attendance.models import PresenceEvent

@transaction.atomic
def create_event(*, worker_id: str, project_id: str, action: str, timestamp: datetime) -> PresenceEvent:
    return PresenceEvent.objects.create(
        worker_id=worker_id,
        project_id=project_id,
        action=action,
        timestamp=timestamp,
    )
