from django.apps import AppConfig


class VenuesConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'venues'

    def ready(self):
        # Сигналы инвалидации кеша доступности
        from . import signals  # noqa: F401
