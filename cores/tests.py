from types import SimpleNamespace

from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from .access import (
    GROUP_BLOCKED, NOT_SCHEDULED, SESSION_INACTIVE, Eligibility, ExamAccessDenied, ExamAccessGate
)
from .models import AccessGroup, AuditLog, ScheduledStudent, SessionControl

User = get_user_model()


class ExamAccessGateTestCase(TestCase):
    def setUp(self):
        self.student = SimpleNamespace(matric='EEE/2020/014', department='Electrical', level='300')
        self.active = SimpleNamespace(session_active=True)
        self.inactive = SimpleNamespace(session_active=False)

    def allow_everything(self):
        AccessGroup.set_rule('Electrical', '300', AccessGroup.Status.ALLOWED)
        ScheduledStudent.objects.create(matric='EEE/2020/014')

    def test_allowed_when_all_checks_pass(self):
        self.allow_everything()
        eligibility = ExamAccessGate(self.active).check(self.student)
        self.assertTrue(eligibility.allowed)
        self.assertIs(eligibility, Eligibility.ALLOWED)

    def test_inactive_session_wins_over_everything(self):
        self.allow_everything()
        self.assertEqual(ExamAccessGate(self.inactive).check(self.student).reason, SESSION_INACTIVE)

        # Even with nothing else configured the session is reported first
        AccessGroup.objects.all().delete()
        ScheduledStudent.objects.all().delete()
        self.assertEqual(ExamAccessGate(self.inactive).check(self.student).reason, SESSION_INACTIVE)

    def test_missing_group_rule_is_denied(self):
        ScheduledStudent.objects.create(matric='EEE/2020/014')
        self.assertEqual(ExamAccessGate(self.active).check(self.student).reason, GROUP_BLOCKED)

    def test_blocked_group_is_denied(self):
        self.allow_everything()
        AccessGroup.set_rule('Electrical', '300', AccessGroup.Status.BLOCKED)
        self.assertEqual(ExamAccessGate(self.active).check(self.student).reason, GROUP_BLOCKED)

    def test_group_is_checked_before_schedule(self):
        eligibility = ExamAccessGate(self.active).check(self.student)
        self.assertEqual(eligibility.reason, GROUP_BLOCKED)

    def test_unscheduled_student_is_denied(self):
        AccessGroup.set_rule('Electrical', '300', AccessGroup.Status.ALLOWED)
        eligibility = ExamAccessGate(self.active).check(self.student)
        self.assertEqual(eligibility.reason, NOT_SCHEDULED)
        self.assertEqual(eligibility.message, "You are not scheduled for this exam.")

    def test_require_raises_with_reason_code(self):
        with self.assertRaises(ExamAccessDenied) as ctx:
            ExamAccessGate(self.inactive).require(self.student)
        self.assertEqual(ctx.exception.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(ctx.exception.get_codes(), SESSION_INACTIVE)

    def test_defaults_to_stored_session_state(self):
        cache.clear()
        self.assertFalse(ExamAccessGate().session_is_active())
        SessionControl(session_active=True).save()
        self.assertTrue(ExamAccessGate().session_is_active())

    def test_set_rule_is_last_write_wins(self):
        AccessGroup.set_rule('Electrical', '300', AccessGroup.Status.BLOCKED)
        AccessGroup.set_rule('Electrical', '300', AccessGroup.Status.ALLOWED)
        self.assertEqual(AccessGroup.objects.count(), 1)
        self.assertEqual(AccessGroup.objects.get().status, AccessGroup.Status.ALLOWED)


class AccessAdminAPITestCase(TestCase):
    def setUp(self):
        cache.clear()
        self.admin = User.objects.create_user(
            username='admin', email='admin@cbt.test', password='admin12345',
            role=User.Role.ADMIN, is_staff=True
        )
        self.student = User.objects.create_user(
            username='MTH/2022/007', email='bola@student.test', password='pass12345',
            matric='MTH/2022/007', department='Mathematics', level='200'
        )
        self.client = APIClient()
        self.client.force_authenticate(user=self.admin)

    def test_toggle_session(self):
        response = self.client.put('/api/session/', {'session_active': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(SessionControl.load().session_active)
        self.assertTrue(AuditLog.objects.filter(action=AuditLog.Action.SESSION).exists())

        response = self.client.get('/api/session/')
        self.assertTrue(response.data['session_active'])

    def test_students_cannot_toggle_session(self):
        self.client.force_authenticate(user=self.student)
        response = self.client.put('/api/session/', {'session_active': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_access_group_rule_overwrites(self):
        rule = {'department': 'Mathematics', 'level': '200', 'status': 'blocked'}
        self.client.post('/api/access-groups/', rule, format='json')
        response = self.client.post('/api/access-groups/', dict(rule, status='allowed'), format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(AccessGroup.objects.count(), 1)
        self.assertEqual(AccessGroup.objects.get().status, 'allowed')

    def test_schedule_replace_and_clear(self):
        ScheduledStudent.objects.create(matric='OLD/001')
        payload = {'students': [
            {'matric': 'MTH/2022/007', 'name': 'Bola Ade', 'department': 'Mathematics', 'level': '200'},
            {'matric': 'MTH/2022/008', 'name': 'Chidi Eze', 'department': 'Mathematics', 'level': '200'},
        ]}
        response = self.client.put('/api/schedule/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)
        self.assertEqual(
            list(ScheduledStudent.objects.values_list('matric', flat=True)),
            ['MTH/2022/007', 'MTH/2022/008']
        )

        response = self.client.delete('/api/schedule/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(ScheduledStudent.objects.exists())
        self.assertEqual(AuditLog.objects.filter(action=AuditLog.Action.SCHEDULE).count(), 2)

    def test_schedule_rejects_duplicate_matrics(self):
        payload = {'students': [{'matric': 'MTH/2022/007'}, {'matric': 'MTH/2022/007'}]}
        response = self.client.put('/api/schedule/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_eligibility_lookup(self):
        response = self.client.get('/api/eligibility/MTH/2022/007/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {
            'allowed': False,
            'reason': SESSION_INACTIVE,
            'message': "The exam session is not active.",
        })

        SessionControl(session_active=True).save()
        AccessGroup.set_rule('Mathematics', '200', AccessGroup.Status.ALLOWED)
        ScheduledStudent.objects.create(matric='MTH/2022/007')
        response = self.client.get('/api/eligibility/MTH/2022/007/')
        self.assertTrue(response.data['allowed'])

    def test_eligibility_for_unknown_student(self):
        response = self.client.get('/api/eligibility/NOPE/000/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_student_checks_own_eligibility(self):
        SessionControl(session_active=True).save()
        self.client.force_authenticate(user=self.student)
        response = self.client.get('/api/eligibility/me/')
        self.assertEqual(response.data['reason'], GROUP_BLOCKED)

    def test_audit_log_filter(self):
        self.client.put('/api/session/', {'session_active': True}, format='json')
        self.client.delete('/api/schedule/')
        response = self.client.get('/api/audit-logs/', {'action': 'SESSION'})
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['actor_email'], 'admin@cbt.test')
