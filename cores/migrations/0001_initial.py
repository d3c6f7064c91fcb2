import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="SessionControl",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("session_active", models.BooleanField(default=False)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
        ),
        migrations.CreateModel(
            name="AccessGroup",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("department", models.CharField(max_length=100)),
                ("level", models.CharField(max_length=20)),
                (
                    "status",
                    models.CharField(
                        choices=[("allowed", "Allowed"), ("blocked", "Blocked")], default="allowed", max_length=10
                    ),
                ),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["department", "level"],
                "constraints": [
                    models.UniqueConstraint(fields=("department", "level"), name="unique_access_group"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ScheduledStudent",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(blank=True, max_length=255)),
                ("department", models.CharField(blank=True, max_length=100)),
                ("level", models.CharField(blank=True, max_length=20)),
                ("matric", models.CharField(max_length=30, unique=True)),
            ],
            options={
                "ordering": ["matric"],
            },
        ),
        migrations.CreateModel(
            name="AuditLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "action",
                    models.CharField(
                        choices=[
                            ("CREATE", "Create"),
                            ("UPDATE", "Update"),
                            ("DELETE", "Delete"),
                            ("LOGIN", "Login"),
                            ("SESSION", "Session Toggled"),
                            ("ACCESS", "Access Rule Changed"),
                            ("SCHEDULE", "Schedule Changed"),
                            ("SUBMISSION", "Exam Submitted"),
                            ("TOKEN", "Token Updated"),
                        ],
                        max_length=20,
                    ),
                ),
                ("target_model", models.CharField(help_text="e.g., Exam, User, ScheduledStudent", max_length=50)),
                ("target_object_id", models.CharField(blank=True, max_length=100, null=True)),
                ("details", models.TextField(blank=True, help_text="Description of changes")),
                ("ip_address", models.GenericIPAddressField(blank=True, null=True)),
                ("timestamp", models.DateTimeField(auto_now_add=True)),
                (
                    "actor",
                    models.ForeignKey(
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="audit_logs",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-timestamp"],
            },
        ),
    ]
