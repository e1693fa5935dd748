import pytest
from datetime import datetime

from auto_attendance.models import PresenceEvent, AttendanceRecord, WorkerSettings


@pytest.fixture
def make_event(db):
    def _make(worker_id: str, action: str, ts: datetime, project_id: str = "P1") -> PresenceEvent:
        return PresenceEvent.objects.create(worker_id=worker_id, project_id=project_id, action=action, timestamp=ts)
    return _make

@pytest.fixture
def make_record(db):
    def _make(worker_id: str, status: str, at: datetime, project_id: str = "P1", source: str = "manual") -> AttendanceRecord:
        return AttendanceRecord.objects.create(
            worker_id=worker_id, project_id=project_id, status=status, occurred_at=at, source=source
        )
    return _make

@pytest.fixture
def new_york_worker(db):
    return WorkerSettings.objects.create(worker_id="ny-1", timezone="America/New_York")

@pytest.fixture
def no_alerts():
    from unittest.mock import patch
    with patch("auto_attendance.services.reconciliation_service.send_webhook_alert", return_value=False) as m:
        yield m
