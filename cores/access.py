"""
Exam access control.

A student may log in or submit only when all three hold, checked in this order:

1. the global exam session is active,
2. their (department, level) pair has an explicit "allowed" rule,
3. their matric number is on the schedule.

The first failing check decides the denial reason.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from rest_framework import status
from rest_framework.exceptions import APIException

from .models import AccessGroup, ScheduledStudent, SessionControl

logger = logging.getLogger(__name__)

SESSION_INACTIVE = 'session_inactive'
GROUP_BLOCKED = 'group_blocked'
NOT_SCHEDULED = 'not_scheduled'

DENIAL_MESSAGES = {
    SESSION_INACTIVE: "The exam session is not active.",
    GROUP_BLOCKED: "Your department and level are not allowed to take exams at this time.",
    NOT_SCHEDULED: "You are not scheduled for this exam.",
}


@dataclass(frozen=True)
class Eligibility:
    allowed: bool
    reason: Optional[str] = None

    @property
    def message(self):
        if self.allowed:
            return "Access granted."
        return DENIAL_MESSAGES[self.reason]

    @classmethod
    def deny(cls, reason):
        return cls(allowed=False, reason=reason)

    def as_dict(self):
        return {"allowed": self.allowed, "reason": self.reason, "message": self.message}


Eligibility.ALLOWED = Eligibility(allowed=True)


class ExamAccessDenied(APIException):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You are not allowed to take exams at this time."
    default_code = 'exam_access_denied'

    def __init__(self, eligibility):
        self.eligibility = eligibility
        super().__init__(detail=eligibility.message, code=eligibility.reason)


class ExamAccessGate:
    """
    Evaluates exam eligibility against an explicit session state.

    ``session_control`` defaults to the stored SessionControl singleton; tests
    and callers holding their own state can pass any object with a
    ``session_active`` attribute.
    """

    def __init__(self, session_control=None):
        self.session_control = session_control if session_control is not None else SessionControl.load()

    def session_is_active(self):
        return bool(self.session_control.session_active)

    def group_is_allowed(self, department, level):
        # No rule means not allowed
        return AccessGroup.objects.filter(
            department=department, level=level, status=AccessGroup.Status.ALLOWED
        ).exists()

    def is_scheduled(self, matric):
        return bool(matric) and ScheduledStudent.objects.filter(matric=matric).exists()

    def check(self, student):
        if not self.session_is_active():
            return Eligibility.deny(SESSION_INACTIVE)
        if not self.group_is_allowed(student.department, student.level):
            return Eligibility.deny(GROUP_BLOCKED)
        if not self.is_scheduled(student.matric):
            return Eligibility.deny(NOT_SCHEDULED)
        return Eligibility.ALLOWED

    def require(self, student):
        eligibility = self.check(student)
        if not eligibility.allowed:
            logger.info("Exam access denied for %s: %s", student.matric, eligibility.reason)
            raise ExamAccessDenied(eligibility)
        return eligibility
