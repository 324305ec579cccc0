import random
from datetime import date, timedelta

from django.contrib.auth import get_user_model

from afyatrack_backend.core.seeders import RANDOM_SEED, SEED_EMAIL_DOMAIN

from .models import Patient

User = get_user_model()

FIRST_NAMES = {
    Patient.Gender.FEMALE: ["Wanjiru", "Akinyi", "Nekesa", "Chebet", "Zawadi", "Njeri"],
    Patient.Gender.MALE: ["Kamau", "Ochieng", "Mutua", "Kiprono", "Baraka", "Juma"],
}
LAST_NAMES = ["Kariuki", "Omondi", "Wafula", "Kipchumba", "Mohamed", "Mwakio", "Njoroge", "Atieno"]
CHRONIC_CONDITIONS = ["", "", "Hypertension", "Type 2 diabetes", "Asthma", "HIV (on ART)"]
ALLERGIES = ["", "", "", "Penicillin", "Sulfa drugs", "Peanuts"]
BLOOD_GROUPS = ["A+", "A-", "B+", "O+", "O-", "AB+"]


def flush_patients() -> int:
    """Delete patients created by seeded staff."""
    deleted, _ = Patient.objects.filter(created_by__email__endswith=SEED_EMAIL_DOMAIN).delete()
    return deleted


def seed_patients(count: int = 20) -> dict:
    """Create ``count`` patients spread over the seeded doctors (idempotent by NHIF number)."""
    random.seed(RANDOM_SEED)

    doctors = list(
        User.objects.filter(role=User.Role.DOCTOR, email__endswith=SEED_EMAIL_DOMAIN).order_by("id")
    )
    if not doctors:
        return {"patients": 0}

    created = 0
    today = date.today()
    for i in range(count):
        nhif_number = f"NHIF-{100000 + i}"
        if Patient.objects.filter(nhif_number=nhif_number).exists():
            continue

        gender = random.choice([Patient.Gender.FEMALE, Patient.Gender.MALE])
        doctor = doctors[i % len(doctors)]
        Patient.objects.create(
            first_name=random.choice(FIRST_NAMES[gender]),
            last_name=random.choice(LAST_NAMES),
            date_of_birth=today - timedelta(days=random.randint(365, 85 * 365)),
            gender=gender,
            phone=f"+2547{random.randint(10000000, 99999999)}",
            nhif_number=nhif_number,
            national_id=str(20000000 + i),
            allergies=random.choice(ALLERGIES),
            chronic_conditions=random.choice(CHRONIC_CONDITIONS),
            blood_group=random.choice(BLOOD_GROUPS),
            facility=doctor.facility,
            created_by=doctor,
        )
        created += 1

    return {"patients": created}
