import logging

from django.contrib.auth import get_user_model
from django.db import transaction
from django.shortcuts import get_object_or_404
from rest_framework import generics, permissions, status
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAdminUser

from .access import ExamAccessGate
from .models import AccessGroup, AuditLog, ScheduledStudent, SessionControl
from .serializers import (
    AccessGroupSerializer,
    AuditLogSerializer,
    ScheduledStudentSerializer,
    ScheduleReplaceSerializer,
    SessionControlSerializer,
)

logger = logging.getLogger(__name__)

User = get_user_model()

class SessionControlView(APIView):
    permission_classes = [IsAdminUser]

    def get(self, request):
        return Response(SessionControlSerializer(SessionControl.load()).data)

    def put(self, request):
        session_control = SessionControl.load()
        serializer = SessionControlSerializer(session_control, data=request.data)
        serializer.is_valid(raise_exception=True)
        serializer.save()

        state = "started" if session_control.session_active else "stopped"
        logger.info("Exam session %s by %s", state, request.user)
        AuditLog.record(request.user, AuditLog.Action.SESSION, 'SessionControl', 1, f"Exam session {state}")
        return Response(serializer.data)

class AccessGroupListView(generics.ListCreateAPIView):
    queryset = AccessGroup.objects.all()
    serializer_class = AccessGroupSerializer
    permission_classes = [IsAdminUser]

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        rule = AccessGroup.set_rule(**serializer.validated_data)

        AuditLog.record(
            request.user, AuditLog.Action.ACCESS, 'AccessGroup', rule.id,
            f"{rule.department} {rule.level} set to {rule.status}"
        )
        return Response(self.get_serializer(rule).data, status=status.HTTP_200_OK)

class ScheduleView(APIView):
    """The scheduled-student list. PUT replaces it wholesale, DELETE clears it."""
    permission_classes = [IsAdminUser]

    def get(self, request):
        students = ScheduledStudent.objects.all()
        return Response(ScheduledStudentSerializer(students, many=True).data)

    def put(self, request):
        serializer = ScheduleReplaceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        rows = serializer.validated_data['students']

        with transaction.atomic():
            ScheduledStudent.objects.all().delete()
            ScheduledStudent.objects.bulk_create(ScheduledStudent(**row) for row in rows)

        AuditLog.record(
            request.user, AuditLog.Action.SCHEDULE, 'ScheduledStudent',
            details=f"Schedule replaced with {len(rows)} students"
        )
        return Response({"status": "Schedule replaced", "count": len(rows)})

    def delete(self, request):
        count, _ = ScheduledStudent.objects.all().delete()
        AuditLog.record(
            request.user, AuditLog.Action.SCHEDULE, 'ScheduledStudent',
            details=f"Schedule cleared ({count} students removed)"
        )
        return Response(status=status.HTTP_204_NO_CONTENT)

class EligibilityView(APIView):
    """Admin lookup of whether a student may currently log in and submit."""
    permission_classes = [IsAdminUser]

    def get(self, request, matric):
        student = get_object_or_404(User, matric=matric)
        return Response(ExamAccessGate().check(student).as_dict())

class MyEligibilityView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        return Response(ExamAccessGate().check(request.user).as_dict())

class AuditLogListView(generics.ListAPIView):
    # Select related avoids N+1 queries when fetching users
    queryset = AuditLog.objects.select_related('actor').all().order_by('-timestamp')
    serializer_class = AuditLogSerializer
    permission_classes = [IsAdminUser]

    def get_queryset(self):
        queryset = super().get_queryset()
        action = self.request.query_params.get('action')
        if action:
            queryset = queryset.filter(action=action)
        return queryset
