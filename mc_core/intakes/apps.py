# mc_core/intakes/apps.py
from django.apps import AppConfig


class IntakesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "mc_core.intakes"
    label = "intakes"
