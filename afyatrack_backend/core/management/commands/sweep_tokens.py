"""Delete revoked and expired refresh tokens.

Usage:
    python manage.py sweep_tokens
    python manage.py sweep_tokens --dry-run

Same operation as the hourly Celery beat task, for deployments without a
beat process (run it from cron).
"""

from django.core.management.base import BaseCommand

from afyatrack_backend.core import tokens
from afyatrack_backend.core.models import RefreshToken


class Command(BaseCommand):
    help = "Delete refresh tokens that are revoked or past their expiry"

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Only report how many rows would be deleted.",
        )

    def handle(self, *args, **options):
        if options.get("dry_run"):
            count = RefreshToken.objects.inactive().count()
            self.stdout.write(f"{count} refresh token(s) would be deleted.")
            return

        deleted = tokens.sweep_expired()
        self.stdout.write(self.style.SUCCESS(f"Deleted {deleted} refresh token(s)."))
