from django.contrib import admin

from .models import AccessGroup, AuditLog, ScheduledStudent, SessionControl

admin.site.register(SessionControl)
admin.site.register(AccessGroup)
admin.site.register(ScheduledStudent)


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ('timestamp', 'actor', 'action', 'target_model', 'target_object_id')
    list_filter = ('action',)
