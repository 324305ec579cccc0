from django.conf import settings
from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.db import models
from django.utils import timezone


class Facility(models.Model):
    """Healthcare facility (hospital, health centre, dispensary, clinic)."""

    class FacilityType(models.TextChoices):
        HOSPITAL = 'hospital', 'Hospital'
        HEALTH_CENTER = 'health_center', 'Health Center'
        DISPENSARY = 'dispensary', 'Dispensary'
        CLINIC = 'clinic', 'Clinic'

    name = models.CharField(max_length=200)
    type = models.CharField(
        max_length=32,
        choices=FacilityType.choices,
        default=FacilityType.HEALTH_CENTER,
    )
    address = models.TextField(blank=True, default='')
    phone = models.CharField(max_length=50, blank=True, default='')
    email = models.EmailField(blank=True, default='')
    region = models.CharField(max_length=100, blank=True, default='')
    district = models.CharField(max_length=100, blank=True, default='')
    ward = models.CharField(max_length=100, blank=True, default='')
    license_number = models.CharField(max_length=64, blank=True, default='')
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'core_facility'
        ordering = ['name']
        verbose_name = 'Facility'
        verbose_name_plural = 'Facilities'

    def __str__(self) -> str:
        return self.name


class UserManager(BaseUserManager):
    """Manager for e-mail based users."""

    use_in_migrations = True

    def _create_user(self, email, password, **extra_fields):
        if not email:
            raise ValueError('An e-mail address is required.')
        email = self.normalize_email(email).lower()
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_user(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', False)
        extra_fields.setdefault('is_superuser', False)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('role', User.Role.ADMIN)
        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True.')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True.')
        return self._create_user(email, password, **extra_fields)


class User(AbstractUser):
    """Clinical staff member.

    Extends Django's AbstractUser with:
    - email as the login identifier (username removed)
    - role: closed set used by the authorization predicates
    - facility: optional facility the user works at
    - license_number: professional registration number
    """

    class Role(models.TextChoices):
        DOCTOR = 'doctor', 'Doctor'
        NURSE = 'nurse', 'Nurse'
        ADMIN = 'admin', 'Administrator'
        RECEPTIONIST = 'receptionist', 'Receptionist'

    username = None
    email = models.EmailField('email address', unique=True)
    role = models.CharField(
        max_length=20,
        choices=Role.choices,
        default=Role.DOCTOR,
        db_index=True,
    )
    license_number = models.CharField(max_length=64, blank=True, default='')
    facility = models.ForeignKey(
        Facility,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name='users',
    )

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        db_table = 'core_user'
        ordering = ['email']
        verbose_name = 'User'
        verbose_name_plural = 'Users'

    def __str__(self) -> str:
        return self.email

    @property
    def is_admin(self) -> bool:
        return self.role == self.Role.ADMIN


class RefreshTokenQuerySet(models.QuerySet):

    def active(self, now=None):
        now = now or timezone.now()
        return self.filter(is_revoked=False, expires_at__gt=now)

    def inactive(self, now=None):
        now = now or timezone.now()
        return self.filter(models.Q(is_revoked=True) | models.Q(expires_at__lte=now))


class RefreshToken(models.Model):
    """Opaque, server-side refresh token (one row per session/device).

    Usable iff not revoked and not past ``expires_at``. Rows are revoked,
    never deleted, by request handling; only the periodic sweep deletes them.
    """

    token = models.CharField(max_length=128, unique=True)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='refresh_tokens',
    )
    expires_at = models.DateTimeField(db_index=True)
    is_revoked = models.BooleanField(default=False, db_index=True)
    revoked_at = models.DateTimeField(null=True, blank=True)
    revoked_by_ip = models.GenericIPAddressField(null=True, blank=True)
    created_by_ip = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = RefreshTokenQuerySet.as_manager()

    class Meta:
        db_table = 'core_refresh_token'
        ordering = ['-created_at', '-id']
        verbose_name = 'Refresh Token'
        verbose_name_plural = 'Refresh Tokens'
        indexes = [
            models.Index(fields=['user', 'is_revoked'], name='core_rtoken_user_revoked_idx'),
        ]

    def __str__(self) -> str:
        return f"RefreshToken(user_id={self.user_id}, expires_at={self.expires_at:%Y-%m-%d %H:%M})"

    @property
    def is_active(self) -> bool:
        return not self.is_revoked and timezone.now() < self.expires_at


class AuditLog(models.Model):
    """Audit log for patient-related actions.

    Tracks who accessed/modified patient data and when.
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='audit_logs',
    )
    role_name = models.CharField(max_length=50, db_index=True)
    action = models.CharField(max_length=50, db_index=True)
    patient_id = models.BigIntegerField(null=True, blank=True, db_index=True)
    timestamp = models.DateTimeField(auto_now_add=True, db_index=True)
    meta = models.JSONField(null=True, blank=True)

    class Meta:
        db_table = 'core_auditlog'
        ordering = ['-timestamp', '-id']
        verbose_name = 'Audit Log'
        verbose_name_plural = 'Audit Logs'
        indexes = [
            models.Index(fields=['action', 'timestamp'], name='core_audit_action_ts_idx'),
            models.Index(fields=['patient_id', 'timestamp'], name='core_audit_patient_ts_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.timestamp} {self.action} (patient_id={self.patient_id})"
