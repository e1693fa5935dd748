# -*- coding: utf-8 -*-
import pytest
from datetime import date, timedelta
from unittest.mock import patch

from django.test import override_settings
from django.utils import timezone

from auto_attendance.models import AttendanceRecord, ReconciliationRun, WorkerSettings
from auto_attendance.repositories import attendance_repository, run_repository
from auto_attendance.services import reconciliation_service
from auto_attendance.services.reconciliation_service import (
    Outcome, RunStatus,
    reconcile_checkin, reconcile_checkout, run_daily_reconciliation,
)
from auto_attendance.tests.helpers import utc

D = date(2024, 7, 27)
ENTER, EXIT = "ENTER", "EXIT"
CHECKIN, CHECKOUT = "checkin", "checkout"


def _records(status=None):
    qs = AttendanceRecord.objects.all()
    if status:
        qs = qs.filter(status=status)
    return list(qs.order_by("worker_id", "status", "occurred_at").values_list(
        "worker_id", "project_id", "status", "occurred_at"))


# ---------- timezone / day window ----------
@pytest.mark.django_db
def test_new_york_worker_checkin_at_earliest_enter(new_york_worker, make_event, no_alerts):
    make_event("ny-1", ENTER, utc(2024, 7, 27, 14, 0))
    make_event("ny-1", ENTER, utc(2024, 7, 27, 16, 30))

    report = run_daily_reconciliation(D)

    assert report.status == RunStatus.FINISHED
    rec = AttendanceRecord.objects.get(worker_id="ny-1", status=CHECKIN)
    assert rec.occurred_at == utc(2024, 7, 27, 14, 0)
    assert rec.source == AttendanceRecord.Source.AUTO

@pytest.mark.django_db
def test_new_york_local_day_edges(new_york_worker, make_event):
    # 03:59Z ngày 27 vẫn là 23:59 ngày 26 ở New York -> nằm ngoài ngày
    make_event("ny-1", ENTER, utc(2024, 7, 27, 3, 59))
    # 03:59:59Z ngày 28 = 23:59:59 ngày 27 giờ EDT -> trong ngày
    make_event("ny-1", ENTER, utc(2024, 7, 28, 3, 59, 59))

    out = reconcile_checkin("ny-1", "P1", D)

    assert out.outcome == Outcome.CREATED
    assert out.timezone == "America/New_York"
    assert out.instant == utc(2024, 7, 28, 3, 59, 59)

@pytest.mark.django_db
def test_worker_without_timezone_uses_utc_day(make_event, no_alerts):
    make_event("w1", ENTER, utc(2024, 7, 27, 10, 0))
    make_event("w1", ENTER, utc(2024, 7, 28, 0, 30))  # ngày hôm sau theo UTC

    run_daily_reconciliation(D)

    assert _records(CHECKIN) == [("w1", "P1", CHECKIN, utc(2024, 7, 27, 10, 0))]

@pytest.mark.django_db
def test_candidate_without_enter_in_local_day_is_skipped(new_york_worker, make_event, no_alerts):
    # trong biên discovery nhưng thuộc ngày 26 theo giờ New York
    make_event("ny-1", ENTER, utc(2024, 7, 27, 2, 0))

    report = run_daily_reconciliation(D)

    assert report.candidates == [("ny-1", "P1")]
    assert [o.outcome for o in report.outcomes] == [Outcome.NO_ENTER_EVENT, Outcome.NO_CHECKIN]
    assert report.failures == []
    assert AttendanceRecord.objects.count() == 0


# ---------- discovery ----------
@pytest.mark.django_db
def test_no_enter_events_means_no_work(make_event, no_alerts):
    make_event("w1", EXIT, utc(2024, 7, 27, 17, 0))
    make_event("w2", ENTER, utc(2024, 7, 20, 9, 0))

    report = run_daily_reconciliation(D)

    assert report.status == RunStatus.FINISHED
    assert report.candidates == []
    assert report.outcomes == []
    assert AttendanceRecord.objects.count() == 0

@pytest.mark.django_db
def test_pairs_are_reconciled_per_project(make_event, no_alerts):
    make_event("w1", ENTER, utc(2024, 7, 27, 8, 0), project_id="A")
    make_event("w1", EXIT, utc(2024, 7, 27, 11, 0), project_id="A")
    make_event("w1", ENTER, utc(2024, 7, 27, 13, 0), project_id="B")

    report = run_daily_reconciliation(D)

    assert report.candidates == [("w1", "A"), ("w1", "B")]
    assert _records() == [
        ("w1", "A", CHECKIN, utc(2024, 7, 27, 8, 0)),
        ("w1", "B", CHECKIN, utc(2024, 7, 27, 13, 0)),
        ("w1", "A", CHECKOUT, utc(2024, 7, 27, 11, 0)),
    ]


# ---------- idempotence / tolerance ----------
@pytest.mark.django_db
def test_rerun_is_idempotent(new_york_worker, make_event, no_alerts):
    make_event("ny-1", ENTER, utc(2024, 7, 27, 13, 0))
    make_event("ny-1", EXIT, utc(2024, 7, 27, 21, 0))
    make_event("w2", ENTER, utc(2024, 7, 27, 9, 0))
    make_event("w2", EXIT, utc(2024, 7, 27, 18, 0))

    first = run_daily_reconciliation(D)
    snapshot = _records()
    second = run_daily_reconciliation(D)

    assert first.checkins_created == 2 and first.checkouts_created == 2
    assert _records() == snapshot
    assert len(snapshot) == 4
    assert {o.outcome for o in second.outcomes} == {Outcome.ALREADY_COVERED}

@pytest.mark.django_db
def test_existing_checkin_exactly_15_minutes_before_is_covered(make_event, make_record):
    make_event("w1", ENTER, utc(2024, 7, 27, 9, 0))
    make_record("w1", CHECKIN, utc(2024, 7, 27, 8, 45))

    out = reconcile_checkin("w1", "P1", D)

    assert out.outcome == Outcome.ALREADY_COVERED
    assert AttendanceRecord.objects.filter(status=CHECKIN).count() == 1

@pytest.mark.django_db
def test_existing_checkin_15_minutes_1_second_before_is_distinct(make_event, make_record):
    make_event("w1", ENTER, utc(2024, 7, 27, 9, 0))
    make_record("w1", CHECKIN, utc(2024, 7, 27, 8, 44, 59))

    out = reconcile_checkin("w1", "P1", D)

    assert out.outcome == Outcome.CREATED
    assert AttendanceRecord.objects.filter(status=CHECKIN).count() == 2

@pytest.mark.django_db
def test_existing_checkin_15_minutes_after_is_covered(make_event, make_record):
    make_event("w1", ENTER, utc(2024, 7, 27, 9, 0))
    make_record("w1", CHECKIN, utc(2024, 7, 27, 9, 15))

    assert reconcile_checkin("w1", "P1", D).outcome == Outcome.ALREADY_COVERED

@pytest.mark.django_db
@override_settings(AUTO_ATTENDANCE_TOLERANCE_MINUTES=5)
def test_tolerance_comes_from_settings(make_event, make_record):
    make_event("w1", ENTER, utc(2024, 7, 27, 9, 0))
    make_record("w1", CHECKIN, utc(2024, 7, 27, 8, 50))

    assert reconcile_checkin("w1", "P1", D).outcome == Outcome.CREATED

@pytest.mark.django_db
def test_other_project_checkin_does_not_cover(make_event, make_record):
    make_event("w1", ENTER, utc(2024, 7, 27, 9, 0), project_id="A")
    make_record("w1", CHECKIN, utc(2024, 7, 27, 9, 0), project_id="B")

    assert reconcile_checkin("w1", "A", D).outcome == Outcome.CREATED


# ---------- check-out ----------
@pytest.mark.django_db
def test_checkout_requires_checkin(make_event):
    make_event("w1", EXIT, utc(2024, 7, 27, 17, 0))

    out = reconcile_checkout("w1", "P1", D)

    assert out.outcome == Outcome.NO_CHECKIN
    assert AttendanceRecord.objects.count() == 0

@pytest.mark.django_db
def test_no_checkout_without_exit_after_checkin(make_event, no_alerts):
    make_event("w1", EXIT, utc(2024, 7, 27, 8, 30))
    make_event("w1", ENTER, utc(2024, 7, 27, 9, 0))

    report = run_daily_reconciliation(D)

    assert [o.outcome for o in report.outcomes] == [Outcome.CREATED, Outcome.NO_EXIT_EVENT]
    assert AttendanceRecord.objects.filter(status=CHECKOUT).count() == 0

@pytest.mark.django_db
def test_exit_after_day_end_is_ignored(make_event, make_record):
    make_record("w1", CHECKIN, utc(2024, 7, 27, 9, 0))
    make_event("w1", EXIT, utc(2024, 7, 28, 0, 0))

    assert reconcile_checkout("w1", "P1", D).outcome == Outcome.NO_EXIT_EVENT

@pytest.mark.django_db
def test_exit_in_repeated_hour_when_dst_ends_at_midnight(make_event, make_record):
    # Santiago lùi giờ lúc 24:00 ngày 06/04/2024: 23:xx lặp lại, ngày dài 25h
    WorkerSettings.objects.create(worker_id="scl-1", timezone="America/Santiago")
    make_record("scl-1", CHECKIN, utc(2024, 4, 6, 12, 0))
    make_event("scl-1", EXIT, utc(2024, 4, 7, 3, 30))

    out = reconcile_checkout("scl-1", "P1", date(2024, 4, 6))

    assert out.outcome == Outcome.CREATED
    assert AttendanceRecord.objects.get(status=CHECKOUT).occurred_at == utc(2024, 4, 7, 3, 30)

@pytest.mark.django_db
def test_checkout_uses_latest_exit_after_latest_checkin(make_event, make_record):
    make_record("w1", CHECKIN, utc(2024, 7, 27, 9, 0))
    make_record("w1", CHECKIN, utc(2024, 7, 27, 13, 0))
    make_event("w1", EXIT, utc(2024, 7, 27, 12, 0))
    make_event("w1", EXIT, utc(2024, 7, 27, 17, 0))
    make_event("w1", EXIT, utc(2024, 7, 27, 17, 30), project_id="other")

    out = reconcile_checkout("w1", "P1", D)

    assert out.outcome == Outcome.CREATED
    rec = AttendanceRecord.objects.get(status=CHECKOUT)
    assert rec.occurred_at == utc(2024, 7, 27, 17, 0)
    assert rec.source == AttendanceRecord.Source.AUTO

@pytest.mark.django_db
def test_existing_checkout_in_tolerance_is_covered(make_event, make_record):
    make_record("w1", CHECKIN, utc(2024, 7, 27, 9, 0))
    make_record("w1", CHECKOUT, utc(2024, 7, 27, 17, 10))
    make_event("w1", EXIT, utc(2024, 7, 27, 17, 0))

    assert reconcile_checkout("w1", "P1", D).outcome == Outcome.ALREADY_COVERED
    assert AttendanceRecord.objects.filter(status=CHECKOUT).count() == 1

@pytest.mark.django_db
def test_checkout_not_after_checkin_never_counts_as_covered(make_event, make_record):
    # checkout thủ công trùng giờ check-in, vẫn nằm trong cửa sổ ±15' của EXIT
    make_record("w1", CHECKIN, utc(2024, 7, 27, 9, 0))
    make_record("w1", CHECKOUT, utc(2024, 7, 27, 9, 0))
    make_event("w1", EXIT, utc(2024, 7, 27, 9, 10))

    out = reconcile_checkout("w1", "P1", D)

    assert out.outcome == Outcome.CREATED
    assert out.instant == utc(2024, 7, 27, 9, 10)
    assert AttendanceRecord.objects.filter(status=CHECKOUT).count() == 2

@pytest.mark.django_db
def test_exit_at_checkin_instant_is_not_a_checkout(make_event, make_record):
    make_record("w1", CHECKIN, utc(2024, 7, 27, 9, 0))
    make_event("w1", EXIT, utc(2024, 7, 27, 9, 0))

    assert reconcile_checkout("w1", "P1", D).outcome == Outcome.NO_EXIT_EVENT
    assert AttendanceRecord.objects.filter(status=CHECKOUT).count() == 0

@pytest.mark.django_db
def test_checkout_pass_sees_checkin_written_in_same_run(new_york_worker, make_event, no_alerts):
    make_event("ny-1", ENTER, utc(2024, 7, 27, 13, 0))
    make_event("ny-1", EXIT, utc(2024, 7, 28, 1, 0))  # 21:00 EDT

    report = run_daily_reconciliation(D)

    assert report.checkins_created == 1
    assert report.checkouts_created == 1
    assert AttendanceRecord.objects.get(status=CHECKOUT).occurred_at == utc(2024, 7, 28, 1, 0)


# ---------- failure isolation ----------
@pytest.mark.django_db
def test_one_failing_pair_does_not_stop_the_batch(make_event, no_alerts):
    for w in ("w-a", "w-bad", "w-c"):
        make_event(w, ENTER, utc(2024, 7, 27, 9, 0))
        make_event(w, EXIT, utc(2024, 7, 27, 17, 0))

    real_insert = attendance_repository.insert_attendance

    def flaky_insert(**kwargs):
        if kwargs["worker_id"] == "w-bad":
            raise RuntimeError("write conflict")
        return real_insert(**kwargs)

    with patch("auto_attendance.repositories.attendance_repository.insert_attendance", side_effect=flaky_insert):
        report = run_daily_reconciliation(D)

    assert report.status == RunStatus.FINISHED
    assert [(o.pair, o.phase) for o in report.failures] == [(("w-bad", "P1"), CHECKIN)]
    assert report.failures[0].error == "write conflict"
    assert set(AttendanceRecord.objects.values_list("worker_id", flat=True)) == {"w-a", "w-c"}
    assert report.checkins_created == 2 and report.checkouts_created == 2
    no_alerts.assert_called_once()
    assert "w-bad" in no_alerts.call_args.kwargs["text"]

@pytest.mark.django_db
@override_settings(AUTO_ATTENDANCE_FAILURE_ALERT_THRESHOLD=0)
def test_alerts_can_be_disabled(make_event, no_alerts):
    make_event("w-bad", ENTER, utc(2024, 7, 27, 9, 0))
    with patch("auto_attendance.repositories.attendance_repository.insert_attendance",
               side_effect=RuntimeError("boom")):
        report = run_daily_reconciliation(D)

    assert len(report.failures) == 1
    no_alerts.assert_not_called()

@pytest.mark.django_db
def test_discovery_failure_is_caught_and_recorded(no_alerts):
    with patch("auto_attendance.selectors.presence_selector.list_enter_pairs",
               side_effect=RuntimeError("store unavailable")):
        report = run_daily_reconciliation(D)

    assert report.status == RunStatus.FAILED
    assert report.error == "store unavailable"
    run = ReconciliationRun.objects.get(pk=report.run_id)
    assert run.status == ReconciliationRun.Status.FAILED
    assert run.error == "store unavailable"
    assert run.finished_at is not None
    no_alerts.assert_called_once()


# ---------- run bookkeeping / single flight ----------
@pytest.mark.django_db
def test_run_row_records_counters(make_event, no_alerts):
    make_event("w1", ENTER, utc(2024, 7, 27, 9, 0))
    make_event("w1", EXIT, utc(2024, 7, 27, 17, 0))

    report = run_daily_reconciliation(D)

    run = ReconciliationRun.objects.get(pk=report.run_id)
    assert run.reference_date == D
    assert run.status == ReconciliationRun.Status.FINISHED
    assert (run.candidates, run.checkins_created, run.checkouts_created, run.failures) == (1, 1, 1, 0)
    assert report.summary() == {
        "reference_date": "2024-07-27", "status": "finished",
        "candidates": 1, "checkins_created": 1, "checkouts_created": 1, "failures": 0,
    }

@pytest.mark.django_db
def test_concurrent_run_for_same_date_is_skipped(make_event, no_alerts):
    make_event("w1", ENTER, utc(2024, 7, 27, 9, 0))
    ReconciliationRun.objects.create(reference_date=D, started_at=timezone.now())

    report = run_daily_reconciliation(D)

    assert report.status == RunStatus.SKIPPED
    assert AttendanceRecord.objects.count() == 0

@pytest.mark.django_db
def test_stale_running_claim_is_expired(make_event, no_alerts):
    make_event("w1", ENTER, utc(2024, 7, 27, 9, 0))
    stale = ReconciliationRun.objects.create(reference_date=D, started_at=timezone.now() - timedelta(hours=5))

    report = run_daily_reconciliation(D)

    assert report.status == RunStatus.FINISHED
    stale.refresh_from_db()
    assert stale.status == ReconciliationRun.Status.FAILED
    assert AttendanceRecord.objects.filter(status=CHECKIN).count() == 1

@pytest.mark.django_db
def test_finishing_an_expired_run_keeps_expired_state(make_event, no_alerts):
    make_event("w1", ENTER, utc(2024, 7, 27, 9, 0))
    real_discover = reconciliation_service.discover_candidates

    def discover_then_expire(reference_date):
        # lượt chạy chậm bị lượt khác coi là treo và expire giữa chừng
        run_repository.expire_stale(reference_date, older_than=timedelta(seconds=-1))
        return real_discover(reference_date)

    with patch.object(reconciliation_service, "discover_candidates", side_effect=discover_then_expire):
        report = run_daily_reconciliation(D)

    assert report.status == RunStatus.FINISHED
    run = ReconciliationRun.objects.get(pk=report.run_id)
    assert run.status == ReconciliationRun.Status.FAILED
    assert run.error == "stale claim expired"
    assert run.checkins_created == 0

@pytest.mark.django_db
def test_finished_run_does_not_block_rerun(make_event, no_alerts):
    make_event("w1", ENTER, utc(2024, 7, 27, 9, 0))
    run_daily_reconciliation(D)
    second = run_daily_reconciliation(D)

    assert second.status == RunStatus.FINISHED
    assert ReconciliationRun.objects.filter(reference_date=D).count() == 2

@pytest.mark.django_db
def test_default_reference_date_is_yesterday(no_alerts):
    report = run_daily_reconciliation()
    assert report.reference_date == timezone.localdate() - timedelta(days=1)


@pytest.mark.django_db
@override_settings(AUTO_ATTENDANCE_PERSIST_DEFAULT_TIMEZONE=True)
def test_persisted_default_timezone_does_not_change_result(make_event, no_alerts):
    make_event("w1", ENTER, utc(2024, 7, 27, 10, 0))

    run_daily_reconciliation(D)

    assert WorkerSettings.objects.get(worker_id="w1").timezone == "UTC"
    assert _records(CHECKIN) == [("w1", "P1", CHECKIN, utc(2024, 7, 27, 10, 0))]
