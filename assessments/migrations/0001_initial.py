from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Submission",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("student_matric", models.CharField(db_index=True, max_length=30)),
                ("student_name", models.CharField(blank=True, max_length=255)),
                ("department", models.CharField(blank=True, max_length=100)),
                ("course_code", models.CharField(db_index=True, max_length=20)),
                ("answers", models.JSONField(default=dict)),
                ("submitted_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["-submitted_at"],
            },
        ),
        migrations.CreateModel(
            name="Result",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("student_matric", models.CharField(max_length=30)),
                ("course_code", models.CharField(db_index=True, max_length=20)),
                ("score", models.PositiveIntegerField()),
                ("total", models.PositiveIntegerField()),
                ("ca_score", models.PositiveIntegerField()),
                ("total_score", models.PositiveIntegerField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["-created_at"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("student_matric", "course_code"), name="unique_result_per_student_course"
                    ),
                ],
            },
        ),
    ]
