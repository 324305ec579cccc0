from django.apps import AppConfig


class VisitsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'afyatrack_backend.visits'
    label = 'visits'
    verbose_name = 'Visits & SOAP notes'
