import random

from django.contrib.auth import get_user_model
from django.db import transaction

from .models import AuditLog, Facility, RefreshToken

User = get_user_model()

RANDOM_SEED = 42

ADMIN_EMAIL = "admin@afyatrack.com"
ADMIN_PASSWORD = "AfyaTrack123!"
SEED_EMAIL_DOMAIN = "@seed.afyatrack.com"
SEED_PASSWORD = "AfyaTrack123!"


def seed_core(flush: bool = False) -> dict:
    """
    Seeds:
    - facilities
    - the default admin (admin@afyatrack.com)
    - doctors, nurses and a receptionist

    With flush=True:
        - deletes refresh tokens and audit logs of seeded users only
        - deletes only users whose e-mail ends with SEED_EMAIL_DOMAIN
        - never deletes superusers or the default admin
    """
    random.seed(RANDOM_SEED)

    stats: dict[str, int] = {}

    with transaction.atomic():
        if flush:
            RefreshToken.objects.filter(user__email__endswith=SEED_EMAIL_DOMAIN).delete()
            AuditLog.objects.filter(user__email__endswith=SEED_EMAIL_DOMAIN).delete()
            User.objects.filter(is_superuser=False, email__endswith=SEED_EMAIL_DOMAIN).delete()

        facilities = _seed_facilities()
        stats["core_facilities"] = len(facilities)

        users = _seed_users(facilities)
        stats["core_users"] = len(users)

    return stats


def _seed_facilities() -> list[Facility]:
    definitions = [
        ("Kenyatta National Hospital", Facility.FacilityType.HOSPITAL, "Nairobi", "Upper Hill"),
        ("Mbagathi Health Centre", Facility.FacilityType.HEALTH_CENTER, "Nairobi", "Kibra"),
        ("Kilifi Dispensary", Facility.FacilityType.DISPENSARY, "Coast", "Kilifi North"),
    ]

    facilities: list[Facility] = []
    for name, facility_type, region, district in definitions:
        facility, _created = Facility.objects.get_or_create(
            name=name,
            defaults={"type": facility_type, "region": region, "district": district},
        )
        facilities.append(facility)
    return facilities


def _get_or_create_user(email, role, first_name, last_name, facility, password=SEED_PASSWORD, **extra):
    user = User.objects.filter(email=email).first()
    if user is None:
        user = User.objects.create_user(
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            role=role,
            facility=facility,
            **extra,
        )
    return user


def _seed_users(facilities: list[Facility]) -> list[User]:
    users: list[User] = []
    main_facility = facilities[0]

    # 1. Default admin
    admin = User.objects.filter(email=ADMIN_EMAIL).first()
    if admin is None:
        admin = User.objects.create_superuser(
            email=ADMIN_EMAIL,
            password=ADMIN_PASSWORD,
            first_name="System",
            last_name="Administrator",
            facility=main_facility,
        )
    users.append(admin)

    # 2. Doctors
    doctor_names = [
        ("dr.wanjiku", "Grace", "Wanjiku", "KMPDC-10234"),
        ("dr.otieno", "Brian", "Otieno", "KMPDC-20871"),
        ("dr.mwangi", "Faith", "Mwangi", "KMPDC-31502"),
    ]
    for handle, first_name, last_name, license_number in doctor_names:
        users.append(_get_or_create_user(
            f"{handle}{SEED_EMAIL_DOMAIN}",
            User.Role.DOCTOR,
            first_name,
            last_name,
            random.choice(facilities[:2]),
            license_number=license_number,
        ))

    # 3. Nurses
    for handle, first_name, last_name in [
        ("nurse.achieng", "Mercy", "Achieng"),
        ("nurse.kiptoo", "Daniel", "Kiptoo"),
    ]:
        users.append(_get_or_create_user(
            f"{handle}{SEED_EMAIL_DOMAIN}",
            User.Role.NURSE,
            first_name,
            last_name,
            main_facility,
        ))

    # 4. Reception
    users.append(_get_or_create_user(
        f"reception{SEED_EMAIL_DOMAIN}",
        User.Role.RECEPTIONIST,
        "Amina",
        "Hassan",
        main_facility,
    ))

    return users
