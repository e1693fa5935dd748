from datetime import date

from django.core.management.base import BaseCommand, CommandError

from auto_attendance.services.reconciliation_service import RunStatus, run_daily_reconciliation


class Command(BaseCommand):
    help = "Reconcile presence events into check-in/check-out records for one day (default: yesterday)"

    def add_arguments(self, parser):
        parser.add_argument("--date", dest="date", help="Reference date YYYY-MM-DD")

    def handle(self, *args, **options):
        reference = None
        if options.get("date"):
            try:
                reference = date.fromisoformat(options["date"])
            except ValueError:
                raise CommandError(f"Invalid --date {options['date']!r}, expected YYYY-MM-DD")

        report = run_daily_reconciliation(reference)
        summary = report.summary()
        line = ", ".join(f"{k}={v}" for k, v in summary.items())

        if report.status == RunStatus.FAILED:
            raise CommandError(f"Reconciliation failed: {line}")
        if report.status == RunStatus.SKIPPED:
            self.stdout.write(self.style.WARNING(f"Skipped (another run in progress): {line}"))
            return
        if report.failures:
            self.stdout.write(self.style.WARNING(f"Finished with failures: {line}"))
            for o in report.failures:
                self.stdout.write(f"  {o.phase} {o.worker_id}/{o.project_id}: {o.error}")
            return
        self.stdout.write(self.style.SUCCESS(f"Attendance reconciled: {line}"))
