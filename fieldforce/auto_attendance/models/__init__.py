# Load tất cả model vào namespace auto_attendance.models
from .mixins import TimeStampedModel

from .presence import PresenceEvent
from .attendance import AttendanceRecord
from .settings import WorkerSettings
from .run import ReconciliationRun

__all__ = [
    "TimeStampedModel",
    "PresenceEvent",
    "AttendanceRecord",
    "WorkerSettings",
    "ReconciliationRun",
]
