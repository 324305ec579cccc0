from django.conf import settings
from django.db import models
from django.utils import timezone


class Visit(models.Model):
    """A consultation of one patient by one doctor, with its SOAP note.

    Status moves ``active -> completed`` or ``active -> cancelled``; both are
    terminal. Cancelling is the API's delete.
    """

    class VisitType(models.TextChoices):
        CONSULTATION = 'consultation', 'Consultation'
        FOLLOW_UP = 'follow_up', 'Follow-up'
        EMERGENCY = 'emergency', 'Emergency'
        SCREENING = 'screening', 'Screening'
        ROUTINE_CHECK = 'routine_check', 'Routine check'

    class Status(models.TextChoices):
        ACTIVE = 'active', 'Active'
        COMPLETED = 'completed', 'Completed'
        CANCELLED = 'cancelled', 'Cancelled'

    patient = models.ForeignKey(
        'patients.Patient',
        on_delete=models.PROTECT,
        related_name='visits',
    )
    doctor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='visits',
    )
    visit_date = models.DateTimeField(default=timezone.now, db_index=True)
    visit_type = models.CharField(
        max_length=20,
        choices=VisitType.choices,
        default=VisitType.CONSULTATION,
    )
    chief_complaint = models.TextField()
    current_illness = models.TextField(blank=True, default='')
    medical_history = models.TextField(blank=True, default='')
    physical_exam = models.TextField(blank=True, default='')

    # SOAP note
    soap_subjective = models.TextField(blank=True, default='')
    soap_objective = models.TextField(blank=True, default='')
    soap_assessment = models.TextField(blank=True, default='')
    soap_plan = models.TextField(blank=True, default='')

    recommendations = models.JSONField(default=list, blank=True)
    vital_signs = models.JSONField(default=dict, blank=True)
    prescriptions = models.JSONField(default=list, blank=True)
    lab_orders = models.TextField(blank=True, default='')
    lab_results = models.TextField(blank=True, default='')
    transcript = models.TextField(blank=True, default='')
    duration_minutes = models.PositiveIntegerField(null=True, blank=True)
    next_appointment = models.DateTimeField(null=True, blank=True)

    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.ACTIVE,
        db_index=True,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'visits_visit'
        ordering = ['-visit_date', '-id']
        verbose_name = 'Visit'
        verbose_name_plural = 'Visits'
        indexes = [
            models.Index(fields=['patient', 'visit_date'], name='visits_patient_date_idx'),
            models.Index(fields=['doctor', 'visit_date'], name='visits_doctor_date_idx'),
        ]

    def __str__(self) -> str:
        return f"Visit {self.pk} ({self.patient_id}, {self.visit_date:%Y-%m-%d}, {self.status})"

    @property
    def has_soap_note(self) -> bool:
        return all((self.soap_subjective, self.soap_objective, self.soap_assessment, self.soap_plan))
