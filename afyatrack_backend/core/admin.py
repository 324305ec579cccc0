"""
AfyaTrack - Admin classes for users, facilities, sessions and the audit log.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin
from django.utils import timezone
from django.utils.html import format_html

from .models import AuditLog, Facility, RefreshToken, User


# ============================================================================
# Facility Admin
# ============================================================================
@admin.register(Facility)
class FacilityAdmin(admin.ModelAdmin):
    list_display = ("name", "type", "region", "district", "is_active", "user_count")
    list_filter = ("type", "region", "is_active")
    search_fields = ("name", "license_number", "region", "district")
    ordering = ("name",)

    def user_count(self, obj):
        return obj.users.count()
    user_count.short_description = "Users"


# ============================================================================
# User Admin
# ============================================================================
@admin.register(User)
class UserAdmin(DjangoUserAdmin):
    """Admin for e-mail based users (no username)."""

    list_display = (
        "email",
        "full_name_display",
        "role",
        "facility",
        "is_active",
        "last_login",
    )
    list_filter = ("role", "facility", "is_staff", "is_active", "is_superuser")
    search_fields = ("email", "first_name", "last_name", "license_number")
    ordering = ("email",)
    list_per_page = 50

    fieldsets = (
        ("Authentication", {
            "fields": ("email", "password")
        }),
        ("Personal data", {
            "fields": ("first_name", "last_name", "role", "license_number", "facility")
        }),
        ("Permissions", {
            "fields": ("is_active", "is_staff", "is_superuser", "groups", "user_permissions"),
            "classes": ("collapse",)
        }),
        ("Timestamps", {
            "fields": ("last_login", "date_joined"),
            "classes": ("collapse",)
        }),
    )

    add_fieldsets = (
        ("New user", {
            "classes": ("wide",),
            "fields": ("email", "password1", "password2", "role", "first_name", "last_name", "facility"),
        }),
    )

    readonly_fields = ("last_login", "date_joined")

    def full_name_display(self, obj):
        full_name = obj.get_full_name()
        if full_name.strip():
            return full_name
        return format_html('<span style="color: #9AA0A6; font-style: italic;">{}</span>', "No name")
    full_name_display.short_description = "Name"


# ============================================================================
# RefreshToken Admin (read-only; revocation goes through the API)
# ============================================================================
@admin.register(RefreshToken)
class RefreshTokenAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "created_at", "expires_at", "state_badge", "created_by_ip")
    list_filter = ("is_revoked",)
    search_fields = ("user__email", "created_by_ip")
    ordering = ("-created_at", "-id")
    list_per_page = 100
    # Never render the token value.
    exclude = ("token",)
    readonly_fields = (
        "user",
        "expires_at",
        "is_revoked",
        "revoked_at",
        "revoked_by_ip",
        "created_by_ip",
        "created_at",
    )

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def state_badge(self, obj):
        if obj.is_revoked:
            color, label = "#EA4335", "revoked"
        elif obj.expires_at <= timezone.now():
            color, label = "#9AA0A6", "expired"
        else:
            color, label = "#34A853", "active"
        return format_html(
            '<span class="status-badge" style="background-color: {}; color: white;">{}</span>',
            color, label
        )
    state_badge.short_description = "State"


# ============================================================================
# AuditLog Admin
# ============================================================================
@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    """Audit log (read-only)."""

    list_display = ("id", "timestamp", "user", "role_name", "action", "patient_id")
    list_filter = ("action", "role_name", "timestamp")
    search_fields = ("user__email", "action", "patient_id")
    ordering = ("-timestamp", "-id")
    list_per_page = 100
    date_hierarchy = "timestamp"

    readonly_fields = (
        "id",
        "user",
        "role_name",
        "action",
        "patient_id",
        "timestamp",
        "meta",
    )

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return request.user.is_superuser
