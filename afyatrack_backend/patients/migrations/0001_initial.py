from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

	initial = True

	dependencies = [
		("core", "0001_initial"),
		migrations.swappable_dependency(settings.AUTH_USER_MODEL),
	]

	operations = [
		migrations.CreateModel(
			name="Patient",
			fields=[
				("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
				("first_name", models.CharField(max_length=100)),
				("last_name", models.CharField(max_length=100)),
				("date_of_birth", models.DateField()),
				(
					"gender",
					models.CharField(
						choices=[("male", "Male"), ("female", "Female"), ("other", "Other")],
						max_length=10,
					),
				),
				("phone", models.CharField(blank=True, default="", max_length=20)),
				("email", models.EmailField(blank=True, default="", max_length=254)),
				("address", models.TextField(blank=True, default="")),
				("nhif_number", models.CharField(blank=True, max_length=50, null=True, unique=True)),
				("national_id", models.CharField(blank=True, max_length=50, null=True, unique=True)),
				("emergency_contact_name", models.CharField(blank=True, default="", max_length=200)),
				("emergency_contact_phone", models.CharField(blank=True, default="", max_length=20)),
				("emergency_contact_relationship", models.CharField(blank=True, default="", max_length=50)),
				("allergies", models.TextField(blank=True, default="")),
				("chronic_conditions", models.TextField(blank=True, default="")),
				("current_medications", models.TextField(blank=True, default="")),
				("blood_group", models.CharField(blank=True, default="", max_length=5)),
				("is_active", models.BooleanField(db_index=True, default=True)),
				("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
				("updated_at", models.DateTimeField(auto_now=True)),
				(
					"created_by",
					models.ForeignKey(
						on_delete=django.db.models.deletion.PROTECT,
						related_name="created_patients",
						to=settings.AUTH_USER_MODEL,
					),
				),
				(
					"facility",
					models.ForeignKey(
						blank=True,
						null=True,
						on_delete=django.db.models.deletion.PROTECT,
						related_name="patients",
						to="core.facility",
					),
				),
			],
			options={
				"verbose_name": "Patient",
				"verbose_name_plural": "Patients",
				"db_table": "patients_patient",
				"ordering": ["-created_at", "-id"],
				"indexes": [
					models.Index(fields=["last_name", "first_name"], name="patients_name_idx"),
					models.Index(fields=["created_by", "is_active"], name="patients_owner_active_idx"),
				],
			},
		),
	]
