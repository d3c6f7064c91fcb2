from rest_framework import permissions

class IsStudent(permissions.BasePermission):
    """
    Allows access to students with a matric number.
    Admins take no exams.
    """
    def has_permission(self, request, view):
        # 1. User must be logged in
        if not request.user or not request.user.is_authenticated:
            return False

        # 2. Check Role
        return getattr(request.user, 'is_student', False) and bool(request.user.matric)
