# -*- coding: utf-8 -*-
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple
from datetime import date, datetime, timedelta
import logging

from django.conf import settings
from django.utils import timezone

from auto_attendance.models import AttendanceRecord, PresenceEvent, ReconciliationRun
from auto_attendance.selectors import attendance_selector, presence_selector
from auto_attendance.repositories import attendance_repository, run_repository
from auto_attendance.services import timezone_service
from auto_attendance.utils.notify import send_webhook_alert

logger = logging.getLogger(__name__)

Pair = Tuple[str, str]

# =========================
# Cấu hình / Hằng số
# =========================
DEFAULT_TOLERANCE_MINUTES = 15
DEFAULT_FAILURE_ALERT_THRESHOLD = 1
DEFAULT_RUN_STALE_AFTER_MINUTES = 120

PHASE_CHECKIN = AttendanceRecord.Status.CHECKIN.value
PHASE_CHECKOUT = AttendanceRecord.Status.CHECKOUT.value


class Outcome:
    CREATED = "created"
    ALREADY_COVERED = "already_covered"
    NO_ENTER_EVENT = "no_enter_event"
    NO_CHECKIN = "no_checkin"
    NO_EXIT_EVENT = "no_exit_event"
    FAILED = "failed"


class RunStatus:
    FINISHED = ReconciliationRun.Status.FINISHED.value
    FAILED = ReconciliationRun.Status.FAILED.value
    SKIPPED = "skipped"


@dataclass
class PairOutcome:
    worker_id: str
    project_id: str
    phase: str
    outcome: str
    timezone: str = timezone_service.DEFAULT_TZ
    instant: Optional[datetime] = None
    error: str = ""

    @property
    def pair(self) -> Pair:
        return self.worker_id, self.project_id


@dataclass
class ReconciliationReport:
    reference_date: date
    status: str = RunStatus.FINISHED
    candidates: List[Pair] = field(default_factory=list)
    outcomes: List[PairOutcome] = field(default_factory=list)
    error: str = ""
    run_id: Optional[int] = None

    def _count(self, phase: Optional[str] = None, outcome: Optional[str] = None) -> int:
        return sum(
            1 for o in self.outcomes
            if (phase is None or o.phase == phase) and (outcome is None or o.outcome == outcome)
        )

    @property
    def checkins_created(self) -> int:
        return self._count(PHASE_CHECKIN, Outcome.CREATED)

    @property
    def checkouts_created(self) -> int:
        return self._count(PHASE_CHECKOUT, Outcome.CREATED)

    @property
    def failures(self) -> List[PairOutcome]:
        return [o for o in self.outcomes if o.outcome == Outcome.FAILED]

    def counters(self) -> Dict[str, int]:
        return {
            "candidates": len(self.candidates),
            "checkins_created": self.checkins_created,
            "checkouts_created": self.checkouts_created,
            "failures": len(self.failures),
        }

    def summary(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"reference_date": self.reference_date.isoformat(), "status": self.status}
        out.update(self.counters())
        if self.error:
            out["error"] = self.error
        return out


# =========================
# Settings helpers
# =========================
def _tolerance_minutes() -> int:
    return int(getattr(settings, "AUTO_ATTENDANCE_TOLERANCE_MINUTES", DEFAULT_TOLERANCE_MINUTES))

def _failure_alert_threshold() -> int:
    return int(getattr(settings, "AUTO_ATTENDANCE_FAILURE_ALERT_THRESHOLD", DEFAULT_FAILURE_ALERT_THRESHOLD))

def _run_stale_after() -> timedelta:
    return timedelta(minutes=int(getattr(settings, "AUTO_ATTENDANCE_RUN_STALE_AFTER_MINUTES",
                                         DEFAULT_RUN_STALE_AFTER_MINUTES)))

def default_reference_date() -> date:
    """Yesterday, in the server's TIME_ZONE."""
    return timezone.localdate() - timedelta(days=1)

def _as_reference_date(reference: Any) -> date:
    if reference is None:
        return default_reference_date()
    if isinstance(reference, datetime):
        return timezone.localdate(reference) if timezone.is_aware(reference) else reference.date()
    return reference


# =========================
# Candidate discovery
# =========================
def discover_candidates(reference_date: date) -> List[Pair]:
    boundary = timezone_service.discovery_boundary(reference_date)
    pairs = presence_selector.list_enter_pairs(boundary.start_utc, boundary.end_utc)
    logger.info("[auto-attendance] %s: %s candidate pair(s) with ENTER in %s .. %s",
                reference_date, len(pairs), boundary.start_utc.isoformat(), boundary.end_utc.isoformat())
    return pairs


# =========================
# Check-in
# =========================
def reconcile_checkin(
    worker_id: str, project_id: str, reference_date: date, *, tolerance_minutes: Optional[int] = None
) -> PairOutcome:
    minutes = _tolerance_minutes() if tolerance_minutes is None else tolerance_minutes
    tz_name = timezone_service.resolve_timezone(worker_id)
    window = timezone_service.day_window(reference_date, tz_name)
    logger.debug("[auto-attendance] CHECK-IN worker_id=%s project_id=%s tz=%s window=%s .. %s",
                 worker_id, project_id, tz_name, window.start_utc.isoformat(), window.end_utc.isoformat())

    first_enter = presence_selector.get_earliest_event(
        worker_id, project_id, PresenceEvent.Action.ENTER, window.start_utc, window.end_utc
    )
    if first_enter is None:
        logger.warning("[auto-attendance] no ENTER in local day for worker_id=%s project_id=%s (%s, %s); skip",
                       worker_id, project_id, reference_date, tz_name)
        return PairOutcome(worker_id, project_id, PHASE_CHECKIN, Outcome.NO_ENTER_EVENT, tz_name)

    enter_at = first_enter.timestamp
    lo, hi = timezone_service.tolerance_window(enter_at, minutes)
    existing = attendance_selector.find_attendance(
        worker_id, project_id, AttendanceRecord.Status.CHECKIN, lo, hi
    )
    if existing is not None:
        logger.info("[auto-attendance] check-in already covered worker_id=%s project_id=%s around %s (existing %s)",
                    worker_id, project_id, enter_at.isoformat(), existing.occurred_at.isoformat())
        return PairOutcome(worker_id, project_id, PHASE_CHECKIN, Outcome.ALREADY_COVERED, tz_name, existing.occurred_at)

    attendance_repository.insert_attendance(
        worker_id=worker_id,
        project_id=project_id,
        status=AttendanceRecord.Status.CHECKIN,
        occurred_at=enter_at,
        source=AttendanceRecord.Source.AUTO,
    )
    logger.info("[auto-attendance] AUTO CHECK-IN created worker_id=%s project_id=%s at %s",
                worker_id, project_id, enter_at.isoformat())
    return PairOutcome(worker_id, project_id, PHASE_CHECKIN, Outcome.CREATED, tz_name, enter_at)


# =========================
# Check-out
# =========================
def reconcile_checkout(
    worker_id: str, project_id: str, reference_date: date, *, tolerance_minutes: Optional[int] = None
) -> PairOutcome:
    minutes = _tolerance_minutes() if tolerance_minutes is None else tolerance_minutes
    tz_name = timezone_service.resolve_timezone(worker_id)
    window = timezone_service.day_window(reference_date, tz_name)

    anchor = attendance_selector.find_attendance(
        worker_id, project_id, AttendanceRecord.Status.CHECKIN,
        window.start_utc, window.end_utc, latest=True,
    )
    if anchor is None:
        logger.info("[auto-attendance] no check-in for worker_id=%s project_id=%s on %s; skip auto-checkout",
                    worker_id, project_id, reference_date)
        return PairOutcome(worker_id, project_id, PHASE_CHECKOUT, Outcome.NO_CHECKIN, tz_name)

    checkin_at = anchor.occurred_at
    last_exit = presence_selector.get_latest_event(
        worker_id, project_id, PresenceEvent.Action.EXIT,
        checkin_at, window.end_utc, after=checkin_at,
    )
    if last_exit is None:
        logger.info("[auto-attendance] no EXIT after check-in %s for worker_id=%s project_id=%s; skip auto-checkout",
                    checkin_at.isoformat(), worker_id, project_id)
        return PairOutcome(worker_id, project_id, PHASE_CHECKOUT, Outcome.NO_EXIT_EVENT, tz_name)

    exit_at = last_exit.timestamp
    lo, hi = timezone_service.tolerance_window(exit_at, minutes)
    # checkout phải sau check-in, kể cả khi nằm trong cửa sổ dung sai
    existing = attendance_selector.find_attendance(
        worker_id, project_id, AttendanceRecord.Status.CHECKOUT, lo, hi, after=checkin_at,
    )
    if existing is not None:
        logger.info("[auto-attendance] check-out already covered worker_id=%s project_id=%s around %s (existing %s)",
                    worker_id, project_id, exit_at.isoformat(), existing.occurred_at.isoformat())
        return PairOutcome(worker_id, project_id, PHASE_CHECKOUT, Outcome.ALREADY_COVERED, tz_name, existing.occurred_at)

    attendance_repository.insert_attendance(
        worker_id=worker_id,
        project_id=project_id,
        status=AttendanceRecord.Status.CHECKOUT,
        occurred_at=exit_at,
        source=AttendanceRecord.Source.AUTO,
    )
    logger.info("[auto-attendance] AUTO CHECK-OUT created worker_id=%s project_id=%s at %s (check-in %s)",
                worker_id, project_id, exit_at.isoformat(), checkin_at.isoformat())
    return PairOutcome(worker_id, project_id, PHASE_CHECKOUT, Outcome.CREATED, tz_name, exit_at)


# =========================
# Per-pair isolation
# =========================
Reconciler = Callable[..., PairOutcome]

def _run_pass(
    phase: str, reconciler: Reconciler, pairs: List[Pair], reference_date: date, tolerance_minutes: int
) -> List[PairOutcome]:
    results: List[PairOutcome] = []
    for worker_id, project_id in pairs:
        try:
            results.append(reconciler(worker_id, project_id, reference_date, tolerance_minutes=tolerance_minutes))
        except Exception as ex:
            logger.exception("[auto-attendance] %s failed for worker_id=%s project_id=%s on %s",
                             phase, worker_id, project_id, reference_date)
            results.append(PairOutcome(worker_id, project_id, phase, Outcome.FAILED, error=str(ex) or type(ex).__name__))
    return results

def run_checkin_pass(pairs: List[Pair], reference_date: date, *, tolerance_minutes: Optional[int] = None) -> List[PairOutcome]:
    minutes = _tolerance_minutes() if tolerance_minutes is None else tolerance_minutes
    return _run_pass(PHASE_CHECKIN, reconcile_checkin, pairs, reference_date, minutes)

def run_checkout_pass(pairs: List[Pair], reference_date: date, *, tolerance_minutes: Optional[int] = None) -> List[PairOutcome]:
    minutes = _tolerance_minutes() if tolerance_minutes is None else tolerance_minutes
    return _run_pass(PHASE_CHECKOUT, reconcile_checkout, pairs, reference_date, minutes)


# =========================
# Alerting
# =========================
def _alert_if_needed(report: ReconciliationReport) -> None:
    threshold = _failure_alert_threshold()
    failed = report.failures
    orchestration_failed = report.status == RunStatus.FAILED
    if not orchestration_failed and (threshold <= 0 or len(failed) < threshold):
        return

    lines = [f"[auto-attendance] {report.reference_date}: status={report.status}, "
             f"{len(failed)} failed pair(s) of {len(report.candidates)} candidate(s)"]
    if report.error:
        lines.append(f"error: {report.error}")
    for o in failed[:20]:
        lines.append(f"- {o.phase} worker={o.worker_id} project={o.project_id}: {o.error}")
    text = "\n".join(lines)
    logger.error(text)

    try:
        send_webhook_alert(
            text=text,
            webhook_url=getattr(settings, "AUTO_ATTENDANCE_ALERT_WEBHOOK_URL", None),
        )
    except Exception as ex:
        logger.exception("[auto-attendance] alert webhook exception: %s", ex)


# =========================
# Entry point for the scheduler
# =========================
def run_daily_reconciliation(reference: Any = None) -> ReconciliationReport:
    """
    Check-in pass over every candidate, then the check-out pass over the same
    candidates. Never raises: orchestration errors end up in the report.
    """
    reference_date = _as_reference_date(reference)
    report = ReconciliationReport(reference_date=reference_date)
    logger.info("[auto-attendance] starting reconciliation for %s", reference_date)

    run: Optional[ReconciliationRun] = None
    try:
        expired = run_repository.expire_stale(reference_date, older_than=_run_stale_after())
        if expired:
            logger.warning("[auto-attendance] expired %s stale running claim(s) for %s", expired, reference_date)

        run = run_repository.claim(reference_date)
        if run is None:
            logger.warning("[auto-attendance] another reconciliation for %s is still running; skip", reference_date)
            report.status = RunStatus.SKIPPED
            return report
        report.run_id = run.id

        report.candidates = discover_candidates(reference_date)
        if not report.candidates:
            logger.info("[auto-attendance] no ENTER events for %s; nothing to reconcile", reference_date)
        else:
            minutes = _tolerance_minutes()
            report.outcomes.extend(run_checkin_pass(report.candidates, reference_date, tolerance_minutes=minutes))
            report.outcomes.extend(run_checkout_pass(report.candidates, reference_date, tolerance_minutes=minutes))
        report.status = RunStatus.FINISHED
    except Exception as ex:
        logger.exception("[auto-attendance] FATAL: reconciliation for %s aborted", reference_date)
        report.status = RunStatus.FAILED
        report.error = str(ex) or type(ex).__name__

    if run is not None:
        try:
            run_repository.finish(run, status=report.status, counters=report.counters(), error=report.error)
        except Exception:
            logger.exception("[auto-attendance] could not record run #%s for %s", run.id, reference_date)

    logger.info("[auto-attendance] finished reconciliation for %s: %s", reference_date, report.summary())
    _alert_if_needed(report)
    return report
