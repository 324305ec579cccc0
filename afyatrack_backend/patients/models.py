from datetime import date

from django.conf import settings
from django.db import models


class Patient(models.Model):
    """Patient master record.

    Never hard-deleted through the API: deactivation sets ``is_active=False``.
    ``created_by`` and the doctors of the patient's visits are the owners used
    by the authorization predicates.
    """

    class Gender(models.TextChoices):
        MALE = 'male', 'Male'
        FEMALE = 'female', 'Female'
        OTHER = 'other', 'Other'

    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    date_of_birth = models.DateField()
    gender = models.CharField(max_length=10, choices=Gender.choices)
    phone = models.CharField(max_length=20, blank=True, default='')
    email = models.EmailField(blank=True, default='')
    address = models.TextField(blank=True, default='')
    nhif_number = models.CharField(max_length=50, null=True, blank=True, unique=True)
    national_id = models.CharField(max_length=50, null=True, blank=True, unique=True)

    emergency_contact_name = models.CharField(max_length=200, blank=True, default='')
    emergency_contact_phone = models.CharField(max_length=20, blank=True, default='')
    emergency_contact_relationship = models.CharField(max_length=50, blank=True, default='')

    allergies = models.TextField(blank=True, default='')
    chronic_conditions = models.TextField(blank=True, default='')
    current_medications = models.TextField(blank=True, default='')
    blood_group = models.CharField(max_length=5, blank=True, default='')

    facility = models.ForeignKey(
        'core.Facility',
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name='patients',
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='created_patients',
    )
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'patients_patient'
        ordering = ['-created_at', '-id']
        verbose_name = 'Patient'
        verbose_name_plural = 'Patients'
        indexes = [
            models.Index(fields=['last_name', 'first_name'], name='patients_name_idx'),
            models.Index(fields=['created_by', 'is_active'], name='patients_owner_active_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.last_name}, {self.first_name} (id={self.pk})"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def age(self) -> int:
        return age_on(self.date_of_birth, date.today())


def age_on(date_of_birth: date, today: date) -> int:
    """Completed years between ``date_of_birth`` and ``today``."""
    years = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        years -= 1
    return years
