from rest_framework import serializers
from .models import Result, Submission

class ExamSubmissionSerializer(serializers.Serializer):
    """Structural check of a queued submission before anything is stored."""
    course_code = serializers.CharField(max_length=20)
    student_matric = serializers.CharField(max_length=30)
    student_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    department = serializers.CharField(max_length=100, required=False, allow_blank=True)
    # question id -> option label; keys come back as strings
    # null or blank marks an unanswered question
    answers = serializers.DictField(child=serializers.CharField(allow_blank=True, allow_null=True))

class ResultSerializer(serializers.ModelSerializer):
    class Meta:
        model = Result
        fields = ['id', 'student_matric', 'course_code', 'score', 'total', 'ca_score', 'total_score', 'created_at']
        read_only_fields = fields

class SubmissionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Submission
        fields = ['id', 'student_matric', 'student_name', 'department', 'course_code', 'answers', 'submitted_at']
        read_only_fields = fields
