"""
Visits App - Admin for visits and SOAP notes
"""

from django.contrib import admin
from django.utils.html import format_html

from afyatrack_backend.visits.models import Visit


@admin.register(Visit)
class VisitAdmin(admin.ModelAdmin):
    list_display = ("id", "visit_date", "patient", "doctor", "visit_type", "status_badge", "soap_complete")
    list_filter = ("status", "visit_type", "visit_date")
    search_fields = ("patient__first_name", "patient__last_name", "doctor__email", "chief_complaint")
    ordering = ("-visit_date", "-id")
    list_per_page = 50
    date_hierarchy = "visit_date"
    raw_id_fields = ("patient", "doctor")
    readonly_fields = ("created_at", "updated_at")

    fieldsets = (
        ("Visit", {
            "fields": ("patient", "doctor", "visit_date", "visit_type", "status", "duration_minutes", "next_appointment")
        }),
        ("Clinical history", {
            "fields": ("chief_complaint", "current_illness", "medical_history", "physical_exam")
        }),
        ("SOAP note", {
            "fields": ("soap_subjective", "soap_objective", "soap_assessment", "soap_plan")
        }),
        ("Orders & results", {
            "fields": ("recommendations", "vital_signs", "prescriptions", "lab_orders", "lab_results"),
            "classes": ("collapse",)
        }),
        ("Transcript", {
            "fields": ("transcript",),
            "classes": ("collapse",)
        }),
        ("System", {
            "fields": ("created_at", "updated_at"),
            "classes": ("collapse",)
        }),
    )

    def status_badge(self, obj):
        colors = {
            Visit.Status.ACTIVE: "#1A73E8",
            Visit.Status.COMPLETED: "#34A853",
            Visit.Status.CANCELLED: "#EA4335",
        }
        return format_html(
            '<span class="status-badge" style="background-color: {}; color: white;">{}</span>',
            colors.get(obj.status, "#5F6368"), obj.get_status_display()
        )
    status_badge.short_description = "Status"

    @admin.display(boolean=True, description="SOAP")
    def soap_complete(self, obj):
        return obj.has_soap_note
