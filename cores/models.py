from django.db import models
from django.core.cache import cache
from django.conf import settings

class SessionControl(models.Model):
    """Process-wide exam session switch, toggled by admins."""
    CACHE_KEY = 'session_control'

    session_active = models.BooleanField(default=False)
    updated_at = models.DateTimeField(auto_now=True)

    def save(self, *args, **kwargs):
        self.pk = 1  # Singleton pattern
        super().save(*args, **kwargs)
        cache.set(self.CACHE_KEY, self)

    def delete(self, *args, **kwargs):
        pass

    @classmethod
    def load(cls):
        obj = cache.get(cls.CACHE_KEY)
        if obj is None:
            obj, created = cls.objects.get_or_create(pk=1)
            cache.set(cls.CACHE_KEY, obj)
        return obj

    def __str__(self):
        return "Session active" if self.session_active else "Session inactive"


class AccessGroup(models.Model):
    """Allow/block rule for every student of a department at a given level."""
    class Status(models.TextChoices):
        ALLOWED = "allowed", "Allowed"
        BLOCKED = "blocked", "Blocked"

    department = models.CharField(max_length=100)
    level = models.CharField(max_length=20)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.ALLOWED)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['department', 'level'], name='unique_access_group'),
        ]
        ordering = ['department', 'level']

    @classmethod
    def set_rule(cls, department, level, status):
        # Last write wins
        rule, _ = cls.objects.update_or_create(
            department=department, level=level, defaults={'status': status}
        )
        return rule

    def __str__(self):
        return f"{self.department} {self.level}: {self.status}"


class ScheduledStudent(models.Model):
    name = models.CharField(max_length=255, blank=True)
    department = models.CharField(max_length=100, blank=True)
    level = models.CharField(max_length=20, blank=True)
    matric = models.CharField(max_length=30, unique=True)

    class Meta:
        ordering = ['matric']

    def __str__(self):
        return self.matric


class AuditLog(models.Model):
    class Action(models.TextChoices):
        CREATE = 'CREATE', 'Create'
        UPDATE = 'UPDATE', 'Update'
        DELETE = 'DELETE', 'Delete'
        LOGIN = 'LOGIN', 'Login'
        SESSION = 'SESSION', 'Session Toggled'
        ACCESS = 'ACCESS', 'Access Rule Changed'
        SCHEDULE = 'SCHEDULE', 'Schedule Changed'
        SUBMISSION = 'SUBMISSION', 'Exam Submitted'
        TOKEN = 'TOKEN', 'Token Updated'

    actor = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=20, choices=Action.choices)
    target_model = models.CharField(max_length=50, help_text="e.g., Exam, User, ScheduledStudent")
    target_object_id = models.CharField(max_length=100, blank=True, null=True)
    details = models.TextField(blank=True, help_text="Description of changes")
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    timestamp = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-timestamp']

    @classmethod
    def record(cls, actor, action, target_model, target_object_id=None, details=''):
        return cls.objects.create(
            actor=actor if actor and actor.is_authenticated else None,
            action=action,
            target_model=target_model,
            target_object_id=str(target_object_id) if target_object_id is not None else None,
            details=details,
        )

    def __str__(self):
        return f"{self.actor} - {self.action} - {self.timestamp}"
