from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="PresenceEvent",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("worker_id", models.CharField(db_index=True, max_length=64)),
                ("project_id", models.CharField(db_index=True, max_length=64)),
                ("action", models.CharField(choices=[("ENTER", "Enter"), ("EXIT", "Exit")], max_length=8)),
                ("timestamp", models.DateTimeField()),
            ],
            options={
                "db_table": "PresenceEvent",
                "ordering": ["timestamp"],
                "indexes": [
                    models.Index(fields=["worker_id", "project_id", "timestamp"], name="presence_worker_proj_ts_idx"),
                    models.Index(fields=["action", "timestamp"], name="presence_action_ts_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="AttendanceRecord",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("worker_id", models.CharField(db_index=True, max_length=64)),
                ("project_id", models.CharField(db_index=True, max_length=64)),
                ("status", models.CharField(choices=[("checkin", "Check-in"), ("checkout", "Check-out")], max_length=16)),
                ("occurred_at", models.DateTimeField(db_index=True)),
                ("source", models.CharField(choices=[("auto", "Auto (reconciled)"), ("manual", "Manual")], default="manual", max_length=16)),
            ],
            options={
                "db_table": "AttendanceRecord",
                "ordering": ["-occurred_at"],
                "indexes": [
                    models.Index(fields=["worker_id", "project_id", "status", "occurred_at"], name="attendance_lookup_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="WorkerSettings",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("worker_id", models.CharField(db_index=True, max_length=64, unique=True)),
                ("timezone", models.CharField(default="UTC", help_text="IANA name, vd: America/New_York", max_length=64)),
            ],
            options={
                "db_table": "WorkerSettings",
            },
        ),
        migrations.CreateModel(
            name="ReconciliationRun",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("reference_date", models.DateField(db_index=True)),
                ("status", models.CharField(choices=[("running", "Running"), ("finished", "Finished"), ("failed", "Failed")], default="running", max_length=16)),
                ("started_at", models.DateTimeField()),
                ("finished_at", models.DateTimeField(blank=True, null=True)),
                ("candidates", models.IntegerField(default=0)),
                ("checkins_created", models.IntegerField(default=0)),
                ("checkouts_created", models.IntegerField(default=0)),
                ("failures", models.IntegerField(default=0)),
                ("error", models.TextField(blank=True, default="")),
            ],
            options={
                "db_table": "ReconciliationRun",
                "ordering": ["-started_at"],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("status", "running")),
                        fields=("reference_date",),
                        name="uniq_running_reconciliation_per_date",
                    ),
                ],
            },
        ),
    ]
