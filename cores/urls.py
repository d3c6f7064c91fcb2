from django.urls import path
from .views import (
    AccessGroupListView,
    AuditLogListView,
    EligibilityView,
    MyEligibilityView,
    ScheduleView,
    SessionControlView,
)

urlpatterns = [
    path('session/', SessionControlView.as_view(), name='session-control'),
    path('access-groups/', AccessGroupListView.as_view(), name='access-groups'),
    path('schedule/', ScheduleView.as_view(), name='schedule'),
    path('eligibility/me/', MyEligibilityView.as_view(), name='my-eligibility'),
    path('eligibility/<path:matric>/', EligibilityView.as_view(), name='eligibility'),
    path('audit-logs/', AuditLogListView.as_view(), name='audit-logs'),
]
