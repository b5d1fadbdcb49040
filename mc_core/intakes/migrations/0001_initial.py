import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("prescriptions", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="MedicationIntake",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("scheduled_time", models.DateTimeField(db_index=True)),
                ("taken", models.BooleanField(default=False)),
                ("taken_time", models.DateTimeField(blank=True, null=True)),
                ("notes", models.TextField(blank=True)),
                ("reminder_sent", models.BooleanField(default=False)),
                (
                    "prescription_item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="intakes",
                        to="prescriptions.prescriptionitem",
                    ),
                ),
            ],
            options={
                "db_table": "intakes_medication_intake",
                "ordering": ["scheduled_time", "id"],
                "indexes": [
                    models.Index(fields=["prescription_item", "scheduled_time"], name="intake_item_sched_idx"),
                    models.Index(fields=["taken", "scheduled_time"], name="intake_taken_sched_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("taken", True), ("taken_time__isnull", False)),
                            models.Q(("taken", False), ("taken_time__isnull", True)),
                            _connector="OR",
                        ),
                        name="ck_intake_taken_time_matches_taken",
                    )
                ],
            },
        ),
    ]
