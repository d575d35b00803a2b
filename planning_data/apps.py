from django.apps import AppConfig


class PlanningDataConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "planning_data"
    verbose_name = "Planning data"
