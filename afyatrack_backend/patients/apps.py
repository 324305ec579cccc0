from django.apps import AppConfig


class PatientsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'afyatrack_backend.patients'
    label = 'patients'
    verbose_name = 'Patients'
