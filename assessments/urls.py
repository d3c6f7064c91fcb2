from django.urls import path
from .views import (
    MyResultListView,
    MyResultView,
    ResultDetailView,
    ResultListView,
    SubmissionListView,
    SubmitExamView,
)

urlpatterns = [
    # --- Student Exam Flow ---
    path('exams/<str:course_code>/submit/', SubmitExamView.as_view(), name='submit-exam'),
    path('results/', MyResultListView.as_view(), name='my-results'),
    path('results/<str:course_code>/', MyResultView.as_view(), name='my-result'),

    # --- Admin ---
    path('admin/results/', ResultListView.as_view(), name='admin-results'),
    path('admin/results/<path:matric>/<str:course_code>/', ResultDetailView.as_view(), name='admin-result-detail'),
    path('admin/submissions/', SubmissionListView.as_view(), name='admin-submissions'),
]
