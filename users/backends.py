# cbt_platform/users/backends.py
from django.contrib.auth.backends import ModelBackend
from django.contrib.auth import get_user_model
from django.db.models import Q

User = get_user_model()

class MatricBackend(ModelBackend):
    """Students sign in with their matric number, admins with email or username."""

    def authenticate(self, request, username=None, password=None, **kwargs):
        if username is None:
            username = kwargs.get(User.USERNAME_FIELD)
        if not username or password is None:
            return None

        try:
            user = User.objects.get(Q(matric=username) | Q(username=username) | Q(email=username))
        except User.DoesNotExist:
            # Run the hasher anyway so unknown logins take as long as bad passwords
            User().set_password(password)
            return None
        except User.MultipleObjectsReturned:
            user = User.objects.filter(matric=username).first() or \
                User.objects.filter(email=username).order_by('id').first()
            if user is None:
                return None

        if user.check_password(password) and self.user_can_authenticate(user):
            return user
        return None
