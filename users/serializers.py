from rest_framework import serializers
from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from assessments.models import Result
from cores.access import ExamAccessGate

User = get_user_model()

class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = [
            'id', 'email', 'first_name', 'last_name', 'role', 'matric',
            'department', 'level', 'phone_number', 'is_staff'
        ]
        read_only_fields = ['is_staff', 'role', 'matric']

class RegisterSerializer(serializers.ModelSerializer):
    """Student self-registration. Matric, department and level are required."""
    password = serializers.CharField(write_only=True)
    matric = serializers.CharField(max_length=30)
    department = serializers.CharField(max_length=100)
    level = serializers.CharField(max_length=20)

    class Meta:
        model = User
        fields = [
            'email', 'first_name', 'last_name', 'password',
            'matric', 'department', 'level', 'phone_number'
        ]

    def validate_matric(self, value):
        value = value.strip()
        if User.objects.filter(matric=value).exists():
            raise serializers.ValidationError("A student with this matric number already exists.")
        return value

    def validate_password(self, value):
        validate_password(value)
        return value

    def create(self, validated_data):
        user = User.objects.create_user(
            username=validated_data['matric'],
            email=validated_data['email'],
            password=validated_data['password'],
            first_name=validated_data.get('first_name', ''),
            last_name=validated_data.get('last_name', ''),
            matric=validated_data['matric'],
            department=validated_data['department'],
            level=validated_data['level'],
            phone_number=validated_data.get('phone_number', ''),
            role=User.Role.STUDENT,
        )
        return user

class AdminCreateUserSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True)

    class Meta:
        model = User
        fields = [
            'id', 'email', 'first_name', 'last_name', 'password', 'role',
            'matric', 'department', 'level', 'phone_number'
        ]

    def create(self, validated_data):
        role = validated_data.get('role', User.Role.STUDENT)
        validated_data['matric'] = validated_data.get('matric') or None
        return User.objects.create_user(
            username=validated_data.get('matric') or validated_data['email'],
            is_staff=(role == User.Role.ADMIN),
            **validated_data
        )

class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    # Accepts a matric number, a username or an email address
    username_field = 'username'

    def validate(self, attrs):
        data = super().validate(attrs)

        if self.user.is_student:
            ExamAccessGate().require(self.user)

        data['user'] = UserSerializer(self.user).data
        return data

class StudentListSerializer(serializers.ModelSerializer):
    exams_taken = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'id', 'matric', 'email', 'first_name', 'last_name',
            'department', 'level', 'exams_taken', 'date_joined'
        ]

    def get_exams_taken(self, obj):
        return Result.objects.filter(student_matric=obj.matric).count()

class ProfileSerializer(UserSerializer):
    """Students may edit contact details but not the fields the exam gate reads."""
    class Meta(UserSerializer.Meta):
        read_only_fields = ['is_staff', 'role', 'matric', 'email', 'department', 'level']
