from django.apps import AppConfig


class TradingConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'trading'
    verbose_name = 'Trading ledger'

    def ready(self):
        # Register signal receivers
        from . import signals  # noqa: F401
