# -*- coding: utf-8 -*-
from __future__ import annotations
from typing import Optional
import logging

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.cron import CronTrigger
from django.conf import settings

from auto_attendance.services.reconciliation_service import (
    ReconciliationReport,
    default_reference_date,
    run_daily_reconciliation,
)

logger = logging.getLogger(__name__)

JOB_ID = "auto_attendance.daily_reconciliation"
DEFAULT_CRON = "0 2 * * *"


def _cron_expression() -> str:
    return getattr(settings, "AUTO_ATTENDANCE_CRON", DEFAULT_CRON) or DEFAULT_CRON

def build_trigger(expr: Optional[str] = None) -> CronTrigger:
    return CronTrigger.from_crontab(expr or _cron_expression(), timezone=settings.TIME_ZONE)

def reconcile_yesterday() -> ReconciliationReport:
    """Scheduled job body: reconcile the previous server-local calendar day."""
    reference_date = default_reference_date()
    logger.info("[scheduler] running daily auto attendance for %s", reference_date)
    return run_daily_reconciliation(reference_date)

def build_scheduler(scheduler: Optional[BaseScheduler] = None, cron: Optional[str] = None) -> BaseScheduler:
    """
    Scheduler with the daily job registered. `max_instances=1` + `coalesce`
    keep a single run in flight inside this process.
    """
    scheduler = scheduler or BlockingScheduler(timezone=settings.TIME_ZONE)
    scheduler.add_job(
        reconcile_yesterday,
        trigger=build_trigger(cron),
        id=JOB_ID,
        name="Daily auto attendance reconciliation",
        max_instances=1,
        coalesce=True,
        replace_existing=True,
        misfire_grace_time=getattr(settings, "AUTO_ATTENDANCE_MISFIRE_GRACE_SECONDS", 3600),
    )
    logger.info("[scheduler] job %s scheduled (%s, %s)", JOB_ID, cron or _cron_expression(), settings.TIME_ZONE)
    return scheduler

def start_scheduler(scheduler: BaseScheduler) -> None:
    if scheduler.running:
        return
    logger.info("[scheduler] starting")
    scheduler.start()

def shutdown_scheduler(scheduler: BaseScheduler, wait: bool = True) -> None:
    if not scheduler.running:
        return
    logger.info("[scheduler] shutting down")
    scheduler.shutdown(wait=wait)
