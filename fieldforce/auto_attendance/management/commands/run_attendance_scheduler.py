from django.core.management.base import BaseCommand

from auto_attendance.services import scheduler_service


class Command(BaseCommand):
    help = "Run the blocking scheduler that reconciles attendance once per day"

    def add_arguments(self, parser):
        parser.add_argument("--cron", dest="cron", help='Crontab expression, default settings.AUTO_ATTENDANCE_CRON ("0 2 * * *")')

    def handle(self, *args, **options):
        scheduler = scheduler_service.build_scheduler(cron=options.get("cron"))
        self.stdout.write(self.style.SUCCESS("Auto attendance scheduler started. Ctrl+C to stop."))
        try:
            scheduler_service.start_scheduler(scheduler)
        except (KeyboardInterrupt, SystemExit):
            self.stdout.write("Stopping scheduler...")
        finally:
            scheduler_service.shutdown_scheduler(scheduler, wait=False)
