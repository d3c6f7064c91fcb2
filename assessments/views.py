from rest_framework import generics, permissions, status, views
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.response import Response

from cores.access import ExamAccessGate
from cores.models import AuditLog
from exams.models import Exam

from .models import Result, Submission
from .permissions import IsStudent
from .serializers import ResultSerializer, SubmissionSerializer
from . import services


# --- STUDENT VIEWS ---

class SubmitExamView(views.APIView):
    """
    Student submits answers for a course.
    Payload: { "answers": { "<question id>": "a", ... } }

    The request waits in the submission queue until a slot frees up, then
    gets the scored outcome.
    """
    permission_classes = [IsStudent]

    def post(self, request, course_code):
        student = request.user
        ExamAccessGate().require(student)

        if not Exam.available_to(student).filter(course_code=course_code).exists():
            raise ValidationError(
                {'course_code': ["No open exam with this course code for your department and level."]}
            )

        future = services.submit_exam(
            course_code=course_code,
            student_matric=student.matric,
            student_name=student.get_full_name(),
            department=student.department,
            answers=request.data.get('answers'),
        )
        # Validation, conflict and store errors re-raise here for DRF to render
        outcome = future.result()
        AuditLog.record(
            student, AuditLog.Action.SUBMISSION, 'Exam', course_code,
            f"{student.matric} submitted {course_code}: {outcome['score']}/{outcome['total']}"
        )
        return Response(outcome, status=status.HTTP_201_CREATED)


class MyResultView(views.APIView):
    permission_classes = [IsStudent]

    def get(self, request, course_code):
        try:
            result = services.get_result(request.user.matric, course_code)
        except Result.DoesNotExist:
            raise NotFound("No result for this course.")
        return Response(ResultSerializer(result).data)


class MyResultListView(generics.ListAPIView):
    permission_classes = [IsStudent]
    serializer_class = ResultSerializer

    def get_queryset(self):
        return Result.objects.filter(student_matric=self.request.user.matric)


# --- ADMIN VIEWS ---

class ResultListView(generics.ListAPIView):
    permission_classes = [permissions.IsAdminUser]
    serializer_class = ResultSerializer

    def get_queryset(self):
        queryset = Result.objects.all()
        course_code = self.request.query_params.get('course_code')
        matric = self.request.query_params.get('matric')
        if course_code:
            queryset = queryset.filter(course_code=course_code)
        if matric:
            queryset = queryset.filter(student_matric=matric)
        return queryset


class ResultDetailView(views.APIView):
    permission_classes = [permissions.IsAdminUser]

    def get(self, request, matric, course_code):
        try:
            result = services.get_result(matric, course_code)
        except Result.DoesNotExist:
            raise NotFound("No result for this student and course.")
        return Response(ResultSerializer(result).data)


class SubmissionListView(generics.ListAPIView):
    """Raw submission audit trail."""
    permission_classes = [permissions.IsAdminUser]
    serializer_class = SubmissionSerializer

    def get_queryset(self):
        queryset = Submission.objects.all()
        course_code = self.request.query_params.get('course_code')
        if course_code:
            queryset = queryset.filter(course_code=course_code)
        return queryset
