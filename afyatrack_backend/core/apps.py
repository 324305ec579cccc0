"""
Core App Configuration
"""

from django.apps import AppConfig


class CoreConfig(AppConfig):
    """Users, facilities, sessions (refresh tokens) and audit log."""
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'afyatrack_backend.core'
    label = 'core'
    verbose_name = 'Core (Users & Sessions)'
