from django.contrib import admin
from django.http import HttpResponse
from django.urls import path, include


def index(request):
    return HttpResponse("CBT & Token Server is running")


urlpatterns = [
    path('', index, name='index'),
    path('admin/', admin.site.urls),

    # --- Students, Authentication & Admin Dashboard ---
    path('api/', include('users.urls')),

    # --- Exam Taking & Results (before the exam router so submit/ resolves here) ---
    path('api/', include('assessments.urls')),

    # --- Exams & Question Bank ---
    path('api/', include('exams.urls')),

    # --- Session, Access Rules & Schedule ---
    path('api/', include('cores.urls')),

    # --- Token Sales ---
    path('api/', include('payments.urls')),
]
