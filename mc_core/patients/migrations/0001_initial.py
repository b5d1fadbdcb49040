import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Patient",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("document_id", models.CharField(max_length=16, unique=True)),
                ("full_name", models.CharField(max_length=255)),
                ("sex", models.CharField(blank=True, choices=[("M", "Male"), ("F", "Female")], max_length=1)),
                ("insurance_type", models.CharField(blank=True, max_length=64)),
                ("patient_type", models.CharField(blank=True, max_length=64)),
                (
                    "user",
                    models.OneToOneField(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="patient_profile",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "patients_patient",
                "indexes": [models.Index(fields=["full_name"], name="patient_full_name_idx")],
            },
        ),
    ]
