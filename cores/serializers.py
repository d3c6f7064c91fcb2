from rest_framework import serializers
from .models import AccessGroup, AuditLog, ScheduledStudent, SessionControl

class SessionControlSerializer(serializers.ModelSerializer):
    class Meta:
        model = SessionControl
        fields = ['session_active', 'updated_at']
        read_only_fields = ['updated_at']

class AccessGroupSerializer(serializers.ModelSerializer):
    class Meta:
        model = AccessGroup
        fields = ['id', 'department', 'level', 'status', 'updated_at']
        read_only_fields = ['id', 'updated_at']
        # Uniqueness is handled by set_rule (update-or-create)
        validators = []

class ScheduledStudentSerializer(serializers.ModelSerializer):
    class Meta:
        model = ScheduledStudent
        fields = ['name', 'department', 'level', 'matric']
        extra_kwargs = {'matric': {'validators': []}}

class ScheduleReplaceSerializer(serializers.Serializer):
    students = ScheduledStudentSerializer(many=True)

    def validate_students(self, value):
        matrics = [row['matric'] for row in value]
        if len(matrics) != len(set(matrics)):
            raise serializers.ValidationError("Duplicate matric numbers in schedule.")
        return value

class AuditLogSerializer(serializers.ModelSerializer):
    actor_email = serializers.CharField(source='actor.email', read_only=True)
    actor_role = serializers.CharField(source='actor.role', read_only=True)

    class Meta:
        model = AuditLog
        fields = ['id', 'actor', 'actor_email', 'actor_role', 'action', 'target_model', 'target_object_id', 'timestamp', 'details']
