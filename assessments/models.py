# assessments/models.py
from django.db import models

class Submission(models.Model):
    """Raw answers exactly as a student sent them. Write-once audit trail."""
    student_matric = models.CharField(max_length=30, db_index=True)
    student_name = models.CharField(max_length=255, blank=True)
    department = models.CharField(max_length=100, blank=True)
    course_code = models.CharField(max_length=20, db_index=True)
    answers = models.JSONField(default=dict)  # question id -> option label
    submitted_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-submitted_at']

    def __str__(self):
        return f"{self.student_matric} - {self.course_code}"

class Result(models.Model):
    """One graded result per student and course. Never updated once created."""
    student_matric = models.CharField(max_length=30)
    course_code = models.CharField(max_length=20, db_index=True)
    score = models.PositiveIntegerField()
    total = models.PositiveIntegerField()
    ca_score = models.PositiveIntegerField()
    total_score = models.PositiveIntegerField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['student_matric', 'course_code'], name='unique_result_per_student_course'
            ),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.student_matric} - {self.course_code}: {self.total_score}"
