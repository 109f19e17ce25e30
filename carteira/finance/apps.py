from django.apps import AppConfig

class FinanceConfig(AppConfig):
    default_auto_field = 'django.db.models.AutoField'
    name = 'carteira.finance'
    label = 'finance'

    def ready(self):
        # register budget signal handlers
        import carteira.finance.events  # noqa: F401
