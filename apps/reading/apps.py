from django.apps import AppConfig


class ReadingConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.reading'
    verbose_name = 'Daily Reading'
