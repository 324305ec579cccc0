from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

	initial = True

	dependencies = [
		("patients", "0001_initial"),
		migrations.swappable_dependency(settings.AUTH_USER_MODEL),
	]

	operations = [
		migrations.CreateModel(
			name="Visit",
			fields=[
				("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
				("visit_date", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
				(
					"visit_type",
					models.CharField(
						choices=[
							("consultation", "Consultation"),
							("follow_up", "Follow-up"),
							("emergency", "Emergency"),
							("screening", "Screening"),
							("routine_check", "Routine check"),
						],
						default="consultation",
						max_length=20,
					),
				),
				("chief_complaint", models.TextField()),
				("current_illness", models.TextField(blank=True, default="")),
				("medical_history", models.TextField(blank=True, default="")),
				("physical_exam", models.TextField(blank=True, default="")),
				("soap_subjective", models.TextField(blank=True, default="")),
				("soap_objective", models.TextField(blank=True, default="")),
				("soap_assessment", models.TextField(blank=True, default="")),
				("soap_plan", models.TextField(blank=True, default="")),
				("recommendations", models.JSONField(blank=True, default=list)),
				("vital_signs", models.JSONField(blank=True, default=dict)),
				("prescriptions", models.JSONField(blank=True, default=list)),
				("lab_orders", models.TextField(blank=True, default="")),
				("lab_results", models.TextField(blank=True, default="")),
				("transcript", models.TextField(blank=True, default="")),
				("duration_minutes", models.PositiveIntegerField(blank=True, null=True)),
				("next_appointment", models.DateTimeField(blank=True, null=True)),
				(
					"status",
					models.CharField(
						choices=[("active", "Active"), ("completed", "Completed"), ("cancelled", "Cancelled")],
						db_index=True,
						default="active",
						max_length=20,
					),
				),
				("created_at", models.DateTimeField(auto_now_add=True)),
				("updated_at", models.DateTimeField(auto_now=True)),
				(
					"doctor",
					models.ForeignKey(
						on_delete=django.db.models.deletion.PROTECT,
						related_name="visits",
						to=settings.AUTH_USER_MODEL,
					),
				),
				(
					"patient",
					models.ForeignKey(
						on_delete=django.db.models.deletion.PROTECT,
						related_name="visits",
						to="patients.patient",
					),
				),
			],
			options={
				"verbose_name": "Visit",
				"verbose_name_plural": "Visits",
				"db_table": "visits_visit",
				"ordering": ["-visit_date", "-id"],
				"indexes": [
					models.Index(fields=["patient", "visit_date"], name="visits_patient_date_idx"),
					models.Index(fields=["doctor", "visit_date"], name="visits_doctor_date_idx"),
				],
			},
		),
	]
