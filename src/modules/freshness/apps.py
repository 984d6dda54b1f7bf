from django.apps import AppConfig


class FreshnessConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.freshness"
    label = "freshness"
