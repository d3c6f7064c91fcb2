# cbt_platform/exams/serializers.py
from rest_framework import serializers
from .models import Exam, Question

# --- Question Serializers ---

class QuestionSerializer(serializers.ModelSerializer):
    """Admin read/write model, including the answer key."""
    # Map frontend 'question_text' to backend 'text'
    question_text = serializers.CharField(source='text')
    course_code = serializers.SlugRelatedField(
        source='exam', slug_field='course_code', queryset=Exam.objects.all()
    )
    options = serializers.DictField(read_only=True)

    class Meta:
        model = Question
        fields = [
            'id', 'course_code', 'question_text',
            'option_a', 'option_b', 'option_c', 'option_d', 'options',
            'correct_answer'
        ]
        extra_kwargs = {
            'option_a': {'write_only': True},
            'option_b': {'write_only': True},
            'option_c': {'write_only': True},
            'option_d': {'write_only': True},
        }

class ExamQuestionSerializer(serializers.ModelSerializer):
    """What a candidate sees while taking the exam. No answer key."""
    question_text = serializers.CharField(source='text', read_only=True)
    options = serializers.DictField(read_only=True)

    class Meta:
        model = Question
        fields = ['id', 'question_text', 'options']

# --- Exam Serializers ---

class ExamSerializer(serializers.ModelSerializer):
    total_questions = serializers.IntegerField(source='questions.count', read_only=True)

    class Meta:
        model = Exam
        fields = [
            'id', 'course', 'course_code', 'department', 'level',
            'duration_minutes', 'num_questions', 'is_active', 'total_questions'
        ]

class ExamListSerializer(serializers.ModelSerializer):
    class Meta:
        model = Exam
        fields = ['id', 'course', 'course_code', 'duration_minutes', 'num_questions']
