from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone

import afyatrack_backend.core.models


class Migration(migrations.Migration):

	initial = True

	dependencies = [
		("auth", "0012_alter_user_first_name_max_length"),
	]

	operations = [
		migrations.CreateModel(
			name="Facility",
			fields=[
				("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
				("name", models.CharField(max_length=200)),
				(
					"type",
					models.CharField(
						choices=[
							("hospital", "Hospital"),
							("health_center", "Health Center"),
							("dispensary", "Dispensary"),
							("clinic", "Clinic"),
						],
						default="health_center",
						max_length=32,
					),
				),
				("address", models.TextField(blank=True, default="")),
				("phone", models.CharField(blank=True, default="", max_length=50)),
				("email", models.EmailField(blank=True, default="", max_length=254)),
				("region", models.CharField(blank=True, default="", max_length=100)),
				("district", models.CharField(blank=True, default="", max_length=100)),
				("ward", models.CharField(blank=True, default="", max_length=100)),
				("license_number", models.CharField(blank=True, default="", max_length=64)),
				("is_active", models.BooleanField(default=True)),
				("created_at", models.DateTimeField(auto_now_add=True)),
				("updated_at", models.DateTimeField(auto_now=True)),
			],
			options={
				"verbose_name": "Facility",
				"verbose_name_plural": "Facilities",
				"db_table": "core_facility",
				"ordering": ["name"],
			},
		),
		migrations.CreateModel(
			name="User",
			fields=[
				("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
				("password", models.CharField(max_length=128, verbose_name="password")),
				("last_login", models.DateTimeField(blank=True, null=True, verbose_name="last login")),
				(
					"is_superuser",
					models.BooleanField(
						default=False,
						help_text="Designates that this user has all permissions without explicitly assigning them.",
						verbose_name="superuser status",
					),
				),
				("first_name", models.CharField(blank=True, max_length=150, verbose_name="first name")),
				("last_name", models.CharField(blank=True, max_length=150, verbose_name="last name")),
				(
					"is_staff",
					models.BooleanField(
						default=False,
						help_text="Designates whether the user can log into this admin site.",
						verbose_name="staff status",
					),
				),
				(
					"is_active",
					models.BooleanField(
						default=True,
						help_text="Designates whether this user should be treated as active. Unselect this instead of deleting accounts.",
						verbose_name="active",
					),
				),
				("date_joined", models.DateTimeField(default=django.utils.timezone.now, verbose_name="date joined")),
				("email", models.EmailField(max_length=254, unique=True, verbose_name="email address")),
				(
					"role",
					models.CharField(
						choices=[
							("doctor", "Doctor"),
							("nurse", "Nurse"),
							("admin", "Administrator"),
							("receptionist", "Receptionist"),
						],
						db_index=True,
						default="doctor",
						max_length=20,
					),
				),
				("license_number", models.CharField(blank=True, default="", max_length=64)),
				(
					"facility",
					models.ForeignKey(
						blank=True,
						null=True,
						on_delete=django.db.models.deletion.PROTECT,
						related_name="users",
						to="core.facility",
					),
				),
				(
					"groups",
					models.ManyToManyField(
						blank=True,
						help_text="The groups this user belongs to. A user will get all permissions granted to each of their groups.",
						related_name="user_set",
						related_query_name="user",
						to="auth.group",
						verbose_name="groups",
					),
				),
				(
					"user_permissions",
					models.ManyToManyField(
						blank=True,
						help_text="Specific permissions for this user.",
						related_name="user_set",
						related_query_name="user",
						to="auth.permission",
						verbose_name="user permissions",
					),
				),
			],
			options={
				"verbose_name": "User",
				"verbose_name_plural": "Users",
				"db_table": "core_user",
				"ordering": ["email"],
			},
			managers=[
				("objects", afyatrack_backend.core.models.UserManager()),
			],
		),
		migrations.CreateModel(
			name="RefreshToken",
			fields=[
				("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
				("token", models.CharField(max_length=128, unique=True)),
				("expires_at", models.DateTimeField(db_index=True)),
				("is_revoked", models.BooleanField(db_index=True, default=False)),
				("revoked_at", models.DateTimeField(blank=True, null=True)),
				("revoked_by_ip", models.GenericIPAddressField(blank=True, null=True)),
				("created_by_ip", models.GenericIPAddressField(blank=True, null=True)),
				("created_at", models.DateTimeField(auto_now_add=True)),
				(
					"user",
					models.ForeignKey(
						on_delete=django.db.models.deletion.CASCADE,
						related_name="refresh_tokens",
						to=settings.AUTH_USER_MODEL,
					),
				),
			],
			options={
				"verbose_name": "Refresh Token",
				"verbose_name_plural": "Refresh Tokens",
				"db_table": "core_refresh_token",
				"ordering": ["-created_at", "-id"],
				"indexes": [
					models.Index(fields=["user", "is_revoked"], name="core_rtoken_user_revoked_idx"),
				],
			},
		),
		migrations.CreateModel(
			name="AuditLog",
			fields=[
				("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
				("role_name", models.CharField(db_index=True, max_length=50)),
				("action", models.CharField(db_index=True, max_length=50)),
				("patient_id", models.BigIntegerField(blank=True, db_index=True, null=True)),
				("timestamp", models.DateTimeField(auto_now_add=True, db_index=True)),
				("meta", models.JSONField(blank=True, null=True)),
				(
					"user",
					models.ForeignKey(
						blank=True,
						null=True,
						on_delete=django.db.models.deletion.SET_NULL,
						related_name="audit_logs",
						to=settings.AUTH_USER_MODEL,
					),
				),
			],
			options={
				"verbose_name": "Audit Log",
				"verbose_name_plural": "Audit Logs",
				"db_table": "core_auditlog",
				"ordering": ["-timestamp", "-id"],
				"indexes": [
					models.Index(fields=["action", "timestamp"], name="core_audit_action_ts_idx"),
					models.Index(fields=["patient_id", "timestamp"], name="core_audit_patient_ts_idx"),
				],
			},
		),
	]
