"""
Patients App - Admin for patient master records
"""

from django.contrib import admin
from django.utils.html import format_html

from afyatrack_backend.patients.models import Patient


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "full_name",
        "date_of_birth",
        "age_display",
        "gender",
        "nhif_number",
        "facility",
        "is_active",
        "created_at",
    )
    list_filter = ("gender", "is_active", "facility", "created_at")
    search_fields = ("first_name", "last_name", "nhif_number", "national_id", "phone")
    ordering = ("last_name", "first_name")
    list_per_page = 50
    raw_id_fields = ("created_by",)

    readonly_fields = ("id", "created_by", "created_at", "updated_at")

    fieldsets = (
        ("Patient", {
            "fields": ("first_name", "last_name", "date_of_birth", "gender", "facility", "is_active")
        }),
        ("Contact", {
            "fields": ("phone", "email", "address", "nhif_number", "national_id")
        }),
        ("Emergency contact", {
            "fields": ("emergency_contact_name", "emergency_contact_phone", "emergency_contact_relationship"),
            "classes": ("collapse",)
        }),
        ("Medical background", {
            "fields": ("allergies", "chronic_conditions", "current_medications", "blood_group"),
        }),
        ("System", {
            "fields": ("id", "created_by", "created_at", "updated_at"),
            "classes": ("collapse",)
        }),
    )

    def full_name(self, obj):
        return format_html(
            '<strong style="color: #1A73E8;">{}, {}</strong>',
            obj.last_name, obj.first_name
        )
    full_name.short_description = "Name"

    def age_display(self, obj):
        return format_html('<span style="color: #5F6368;">{} years</span>', obj.age)
    age_display.short_description = "Age"
