from rest_framework import viewsets, permissions, filters
from rest_framework.decorators import action
from rest_framework.response import Response

from .models import Exam, Question
from .serializers import (
    ExamSerializer, ExamListSerializer, ExamQuestionSerializer, QuestionSerializer
)


class ExamViewSet(viewsets.ModelViewSet):
    queryset = Exam.objects.all().order_by('-created_at')
    lookup_field = 'course_code'

    filter_backends = [filters.SearchFilter]
    search_fields = ['course', 'course_code']

    def get_serializer_class(self):
        if self.action == 'list' and not self.request.user.is_staff:
            return ExamListSerializer
        return ExamSerializer

    def get_permissions(self):
        if self.action in ['list', 'retrieve', 'questions']:
            return [permissions.IsAuthenticated()]
        return [permissions.IsAdminUser()]

    def get_queryset(self):
        user = self.request.user
        if user.is_staff:
            return super().get_queryset()
        return Exam.available_to(user).order_by('-created_at')

    @action(detail=True, methods=['get'])
    def questions(self, request, course_code=None):
        exam = self.get_object()
        serializer = ExamQuestionSerializer(Question.for_course(exam.course_code), many=True)
        return Response(serializer.data)


class QuestionViewSet(viewsets.ModelViewSet):
    queryset = Question.objects.select_related('exam').order_by('id')
    serializer_class = QuestionSerializer
    permission_classes = [permissions.IsAdminUser]

    filter_backends = [filters.SearchFilter]
    search_fields = ['text']

    def get_queryset(self):
        queryset = super().get_queryset()
        # Filter by course if provided ?course_code=CSC101
        course_code = self.request.query_params.get('course_code')
        if course_code:
            queryset = queryset.filter(exam__course_code=course_code)
        return queryset
