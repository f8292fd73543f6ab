from django.apps import AppConfig


class WatchtimeConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "watchtime"
    verbose_name = "Watch sessions & daily limits"
