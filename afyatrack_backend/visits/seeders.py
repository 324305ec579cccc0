import random
from datetime import timedelta

from django.utils import timezone

from afyatrack_backend.core.seeders import RANDOM_SEED, SEED_EMAIL_DOMAIN
from afyatrack_backend.patients.models import Patient

from .models import Visit

COMPLAINTS = [
    ("Fever and headache for three days", "Malaria, uncomplicated (RDT positive)", "Artemether-lumefantrine, paracetamol, review in 3 days"),
    ("Cough and chest pain", "Community-acquired pneumonia", "Amoxicillin 500 mg TDS x 5 days, return if worse"),
    ("Routine blood pressure review", "Essential hypertension, controlled", "Continue amlodipine 5 mg OD, review in 1 month"),
    ("Abdominal pain and diarrhoea", "Acute gastroenteritis", "ORS, zinc, hydration advice"),
    ("Joint pain, morning stiffness", "Osteoarthritis, knees", "Ibuprofen PRN, physiotherapy referral"),
]


def flush_visits() -> int:
    """Delete visits conducted by seeded staff."""
    deleted, _ = Visit.objects.filter(doctor__email__endswith=SEED_EMAIL_DOMAIN).delete()
    return deleted


def seed_visits(per_patient: int = 2) -> dict:
    """Give every seeded patient without visits ``per_patient`` visits by its creator."""
    random.seed(RANDOM_SEED)

    now = timezone.now()
    created = 0
    patients = Patient.objects.filter(
        created_by__email__endswith=SEED_EMAIL_DOMAIN,
        visits__isnull=True,
    ).select_related("created_by")

    for patient in patients:
        for n in range(per_patient):
            complaint, assessment, plan = random.choice(COMPLAINTS)
            completed = n < per_patient - 1
            Visit.objects.create(
                patient=patient,
                doctor=patient.created_by,
                visit_date=now - timedelta(days=random.randint(0, 60), hours=random.randint(0, 8)),
                visit_type=random.choice(Visit.VisitType.values),
                chief_complaint=complaint,
                soap_subjective=complaint if completed else "",
                soap_objective="Alert, afebrile at review." if completed else "",
                soap_assessment=assessment if completed else "",
                soap_plan=plan if completed else "",
                vital_signs={"bp": f"{random.randint(105, 150)}/{random.randint(65, 95)}", "pulse": random.randint(60, 100)},
                duration_minutes=random.randint(10, 40),
                status=Visit.Status.COMPLETED if completed else Visit.Status.ACTIVE,
            )
            created += 1

    return {"visits": created}
