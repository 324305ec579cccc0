"""
AfyaTrack seed command - creates reproducible demo data.

Usage:
    python manage.py seed           # seed every app
    python manage.py seed --flush   # delete seeded data first, then rebuild

The default admin is admin@afyatrack.com / AfyaTrack123!.
"""

from django.core.management.base import BaseCommand
from django.db import transaction

from afyatrack_backend.core.seeders import seed_core
from afyatrack_backend.patients.seeders import flush_patients, seed_patients
from afyatrack_backend.visits.seeders import flush_visits, seed_visits


class Command(BaseCommand):
    help = "Seed database with demo facilities, staff, patients and visits"

    def add_arguments(self, parser):
        parser.add_argument(
            "--flush",
            action="store_true",
            help="Delete previously seeded data before seeding (superusers are kept).",
        )

    def handle(self, *args, **options):
        flush = options.get("flush", False)

        self.stdout.write("=" * 80)
        self.stdout.write("  AfyaTrack Seed")
        self.stdout.write("=" * 80)

        try:
            with transaction.atomic():
                stats = {}

                # Visits reference patients and doctors; flush them first.
                self.stdout.write("\n[1/3] Seeding Core (Facilities, Users)...")
                if flush:
                    flush_visits()
                    flush_patients()
                core_stats = seed_core(flush=flush)
                stats.update(core_stats)
                self._print_stats(core_stats)

                self.stdout.write("\n[2/3] Seeding Patients...")
                patient_stats = seed_patients()
                stats.update(patient_stats)
                self._print_stats(patient_stats)

                self.stdout.write("\n[3/3] Seeding Visits...")
                visit_stats = seed_visits()
                stats.update(visit_stats)
                self._print_stats(visit_stats)

                self.stdout.write("\n" + "=" * 80)
                self.stdout.write(self.style.SUCCESS("  Seeding completed."))
                self.stdout.write("=" * 80)
                self._print_summary(stats)

        except Exception as e:
            self.stderr.write(f"\nSeeding failed: {e}")
            raise

    def _print_stats(self, stats):
        for key, value in stats.items():
            self.stdout.write(f"  - {key}: {value}")

    def _print_summary(self, stats):
        self.stdout.write("\nRecords (total):")
        for key, value in sorted(stats.items()):
            self.stdout.write(f"  * {key}: {value}")
