# cbt_platform/exams/models.py
from django.db import models

class Exam(models.Model):
    course = models.CharField(max_length=255)
    course_code = models.CharField(max_length=20, unique=True)

    # Which students the exam is meant for
    department = models.CharField(max_length=100, blank=True)
    level = models.CharField(max_length=20, blank=True)

    duration_minutes = models.PositiveIntegerField()
    num_questions = models.PositiveIntegerField(default=0)

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.course_code} - {self.course}"

    @classmethod
    def available_to(cls, user):
        """Active exams set for the user's department and level, or for everyone."""
        return cls.objects.filter(is_active=True).filter(
            models.Q(department='') | models.Q(department=user.department),
            models.Q(level='') | models.Q(level=user.level),
        )

class Question(models.Model):
    class Label(models.TextChoices):
        A = "a", "A"
        B = "b", "B"
        C = "c", "C"
        D = "d", "D"

    exam = models.ForeignKey(Exam, related_name='questions', on_delete=models.CASCADE)

    text = models.TextField()
    option_a = models.CharField(max_length=255)
    option_b = models.CharField(max_length=255)
    option_c = models.CharField(max_length=255)
    option_d = models.CharField(max_length=255)

    # Answer key; never sent to exam-taking clients
    correct_answer = models.CharField(max_length=1, choices=Label.choices)

    class Meta:
        ordering = ['id']

    @classmethod
    def for_course(cls, course_code):
        return cls.objects.filter(exam__course_code=course_code).order_by('id')

    @property
    def options(self):
        return {
            'a': self.option_a,
            'b': self.option_b,
            'c': self.option_c,
            'd': self.option_d,
        }

    def __str__(self):
        return f"{self.text[:50]}..."
