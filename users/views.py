from rest_framework import generics, permissions, viewsets
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework_simplejwt.views import TokenObtainPairView
from django.contrib.auth import get_user_model

from exams.models import Exam
from assessments.models import Result, Submission
from assessments.services import get_submission_queue
from cores.models import AuditLog
from payments.models import Token

from .serializers import (
    AdminCreateUserSerializer,
    RegisterSerializer,
    CustomTokenObtainPairSerializer,
    ProfileSerializer,
    StudentListSerializer,
    UserSerializer
)

User = get_user_model()

# --- User Management (CRUD for Admin) ---
class UserViewSet(viewsets.ModelViewSet):
    """
    Admin-only endpoint to manage all users.
    Every change is written to the audit log.
    """
    queryset = User.objects.all().order_by('-date_joined')
    permission_classes = [permissions.IsAdminUser]

    def get_serializer_class(self):
        if self.action == 'create':
            return AdminCreateUserSerializer
        return UserSerializer

    def perform_create(self, serializer):
        user = serializer.save()
        AuditLog.record(
            self.request.user, AuditLog.Action.CREATE, 'User', user.id,
            f"Created new user: {user.email} (Role: {user.role})"
        )

    def perform_update(self, serializer):
        user = serializer.save()
        if self.request.data.get('password'):
            user.set_password(self.request.data['password'])
            user.save()

        AuditLog.record(
            self.request.user, AuditLog.Action.UPDATE, 'User', user.id,
            f"Updated profile for: {user.email}"
        )

    def perform_destroy(self, instance):
        AuditLog.record(
            self.request.user, AuditLog.Action.DELETE, 'User', instance.id,
            f"Deleted user account: {instance.email}"
        )
        instance.delete()

# --- Authentication Views ---
class RegisterView(generics.CreateAPIView):
    serializer_class = RegisterSerializer
    permission_classes = [permissions.AllowAny]

class CustomLoginView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer

# --- Dashboard Stats ---
class AdminStatsView(APIView):
    permission_classes = [permissions.IsAdminUser]

    def get(self, request):
        queue = get_submission_queue()
        stats = {
            "total_exams": Exam.objects.count(),
            "total_students": User.objects.filter(role=User.Role.STUDENT).count(),
            "total_submissions": Submission.objects.count(),
            "total_results": Result.objects.count(),
            "tokens_issued": Token.objects.exclude(status=Token.Status.PENDING).count(),
            "submission_queue": {
                "pending": queue.pending,
                "in_flight": queue.in_flight,
                "max_concurrent": queue.max_concurrent,
            },
        }
        return Response(stats)

class StudentListView(generics.ListAPIView):
    serializer_class = StudentListSerializer
    permission_classes = [permissions.IsAdminUser]

    def get_queryset(self):
        queryset = User.objects.filter(role=User.Role.STUDENT).order_by('matric')
        department = self.request.query_params.get('department')
        level = self.request.query_params.get('level')
        if department:
            queryset = queryset.filter(department=department)
        if level:
            queryset = queryset.filter(level=level)
        return queryset

class UserProfileView(generics.RetrieveUpdateAPIView):
    serializer_class = ProfileSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_object(self):
        return self.request.user
