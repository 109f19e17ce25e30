from django.apps import AppConfig


class CarteiraApiConfig(AppConfig):
    default_auto_field = 'django.db.models.AutoField'
    name = 'carteira_api'
