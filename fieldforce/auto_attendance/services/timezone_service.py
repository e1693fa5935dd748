# -*- coding: utf-8 -*-
from __future__ import annotations
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone as dt_timezone
from typing import Optional, Tuple, Union
import logging

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from django.conf import settings

from auto_attendance.selectors import worker_settings_selector
from auto_attendance.repositories import worker_settings_repository

logger = logging.getLogger(__name__)

DEFAULT_TZ = "UTC"

# Múi giờ sớm nhất (UTC+14) và muộn nhất (UTC-12); tên Etc/ đảo dấu.
EARLIEST_ZONE = "Etc/GMT-14"
LATEST_ZONE = "Etc/GMT+12"

_DAY_END_OFFSET = timedelta(milliseconds=1)


@dataclass(frozen=True)
class DayWindow:
    """UTC instants bounding one local calendar day. Both ends inclusive."""
    start_utc: datetime
    end_utc: datetime

    def contains(self, instant: datetime) -> bool:
        return self.start_utc <= instant <= self.end_utc


# ========= zone lookup =========
def is_valid_timezone(name: Optional[str]) -> bool:
    if not name:
        return False
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return False
    return True

def get_zone(name: Optional[str]) -> ZoneInfo:
    """ZoneInfo for `name`; unknown or malformed names fall back to UTC."""
    if name:
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("[auto-attendance] unknown timezone %r, falling back to %s", name, DEFAULT_TZ)
    return ZoneInfo(DEFAULT_TZ)

def _persist_default_enabled() -> bool:
    return bool(getattr(settings, "AUTO_ATTENDANCE_PERSIST_DEFAULT_TIMEZONE", False))

def resolve_timezone(worker_id: str) -> str:
    """
    IANA name for the worker. Missing settings, blank/invalid names and lookup
    errors all resolve to UTC; nothing is raised to the caller.
    """
    try:
        name = worker_settings_selector.get_worker_timezone(worker_id)
    except Exception as ex:
        logger.warning("[auto-attendance] timezone lookup failed for worker_id=%s, defaulting to %s: %s",
                       worker_id, DEFAULT_TZ, ex)
        return DEFAULT_TZ

    if name is None:
        if _persist_default_enabled():
            try:
                worker_settings_repository.ensure_default_timezone(worker_id=worker_id, timezone_name=DEFAULT_TZ)
            except Exception as ex:
                logger.warning("[auto-attendance] could not persist default timezone for worker_id=%s: %s",
                               worker_id, ex)
        return DEFAULT_TZ

    if not is_valid_timezone(name):
        logger.warning("[auto-attendance] worker_id=%s has unknown timezone %r, using %s",
                       worker_id, name, DEFAULT_TZ)
        return DEFAULT_TZ
    return name


# ========= day windows =========
def local_date(reference: Union[date, datetime], zone: ZoneInfo) -> date:
    """Calendar date of `reference` as seen in `zone`. Plain dates are already local."""
    if isinstance(reference, datetime):
        if reference.tzinfo is None:
            reference = reference.replace(tzinfo=dt_timezone.utc)
        return reference.astimezone(zone).date()
    return reference

def day_window(reference: Union[date, datetime], tz_name: Optional[str]) -> DayWindow:
    """
    Local 00:00:00.000 of the reference day up to 1ms before the next local
    midnight in `tz_name`, expressed in UTC. DST days come out as 23h or 25h
    spans, including zones that fall back at midnight (23:xx occurs twice).
    """
    zone = get_zone(tz_name)
    d = local_date(reference, zone)
    start_local = datetime.combine(d, time.min, tzinfo=zone)
    next_start_local = datetime.combine(d + timedelta(days=1), time.min, tzinfo=zone)
    return DayWindow(
        start_utc=start_local.astimezone(dt_timezone.utc),
        end_utc=next_start_local.astimezone(dt_timezone.utc) - _DAY_END_OFFSET,
    )

def discovery_boundary(reference_date: date) -> DayWindow:
    """Coarse UTC range that contains `reference_date`'s local day in every zone."""
    return DayWindow(
        start_utc=day_window(reference_date, EARLIEST_ZONE).start_utc,
        end_utc=day_window(reference_date, LATEST_ZONE).end_utc,
    )

def tolerance_window(instant: datetime, minutes: int) -> Tuple[datetime, datetime]:
    delta = timedelta(minutes=minutes)
    return instant - delta, instant + delta
