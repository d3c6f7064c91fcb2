from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.test import TestCase, override_settings
from rest_framework import status
from rest_framework.test import APIClient

from assessments.services import get_submission_queue
from cores.models import AccessGroup, AuditLog, ScheduledStudent, SessionControl

User = get_user_model()


class RegistrationTestCase(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.payload = {
            'email': 'ngozi@student.test',
            'first_name': 'Ngozi',
            'last_name': 'Okafor',
            'password': 'Str0ng-pass-42',
            'matric': 'BIO/2023/101',
            'department': 'Biology',
            'level': '100',
        }

    def test_register_student(self):
        response = self.client.post('/api/auth/register/', self.payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertNotIn('password', response.data)

        user = User.objects.get(matric='BIO/2023/101')
        self.assertEqual(user.role, User.Role.STUDENT)
        self.assertFalse(user.is_staff)
        # Stored hashed, never in clear text
        self.assertNotEqual(user.password, 'Str0ng-pass-42')
        self.assertTrue(user.check_password('Str0ng-pass-42'))

    def test_duplicate_matric_is_rejected(self):
        self.client.post('/api/auth/register/', self.payload, format='json')
        response = self.client.post(
            '/api/auth/register/', dict(self.payload, email='other@student.test'), format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('matric', response.data)

    def test_matric_is_required(self):
        del self.payload['matric']
        response = self.client.post('/api/auth/register/', self.payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class LoginTestCase(TestCase):
    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.student = User.objects.create_user(
            username='BIO/2023/101', email='ngozi@student.test', password='Str0ng-pass-42',
            matric='BIO/2023/101', department='Biology', level='100'
        )
        self.admin = User.objects.create_user(
            username='admin', email='admin@cbt.test', password='admin12345',
            role=User.Role.ADMIN, is_staff=True
        )

    def login(self, username, password):
        return self.client.post('/api/auth/login/', {'username': username, 'password': password}, format='json')

    def open_exam_for_student(self):
        SessionControl(session_active=True).save()
        AccessGroup.set_rule('Biology', '100', AccessGroup.Status.ALLOWED)
        ScheduledStudent.objects.create(matric='BIO/2023/101')

    def test_student_logs_in_with_matric(self):
        self.open_exam_for_student()
        response = self.login('BIO/2023/101', 'Str0ng-pass-42')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertEqual(response.data['user']['matric'], 'BIO/2023/101')

    def test_student_login_refused_while_session_inactive(self):
        response = self.login('BIO/2023/101', 'Str0ng-pass-42')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['detail'].code, 'session_inactive')

    def test_student_login_refused_when_not_scheduled(self):
        self.open_exam_for_student()
        ScheduledStudent.objects.all().delete()
        response = self.login('ngozi@student.test', 'Str0ng-pass-42')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['detail'].code, 'not_scheduled')

    def test_wrong_password(self):
        self.open_exam_for_student()
        response = self.login('BIO/2023/101', 'wrong')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_admin_login_skips_exam_gate(self):
        response = self.login('admin@cbt.test', 'admin12345')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['user']['is_staff'])


class ProfileTestCase(TestCase):
    def setUp(self):
        self.student = User.objects.create_user(
            username='BIO/2023/101', email='ngozi@student.test', password='Str0ng-pass-42',
            matric='BIO/2023/101', department='Biology', level='100'
        )
        self.client = APIClient()
        self.client.force_authenticate(user=self.student)

    def test_student_cannot_move_department_or_level(self):
        response = self.client.patch(
            '/api/profile/', {'department': 'Medicine', 'level': '500', 'phone_number': '08030000000'},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        self.student.refresh_from_db()
        self.assertEqual(self.student.department, 'Biology')
        self.assertEqual(self.student.level, '100')
        self.assertEqual(self.student.phone_number, '08030000000')


@override_settings(CBT_SUBMISSION_QUEUE={'MAX_CONCURRENT': 10, 'DISPATCH': 'inline'})
class AdminUserTestCase(TestCase):
    def setUp(self):
        self.admin = User.objects.create_user(
            username='admin', email='admin@cbt.test', password='admin12345',
            role=User.Role.ADMIN, is_staff=True
        )
        self.client = APIClient()
        self.client.force_authenticate(user=self.admin)

    def test_create_admin_and_student_accounts(self):
        response = self.client.post('/api/users/', {
            'email': 'examofficer@cbt.test', 'first_name': 'Exam', 'last_name': 'Officer',
            'password': 'officer12345', 'role': 'admin',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        officer = User.objects.get(email='examofficer@cbt.test')
        self.assertTrue(officer.is_staff)
        self.assertIsNone(officer.matric)

        response = self.client.post('/api/users/', {
            'email': 'tunde@student.test', 'first_name': 'Tunde', 'last_name': 'Bello',
            'password': 'student12345', 'matric': 'PHY/2021/033', 'department': 'Physics', 'level': '300',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(AuditLog.objects.filter(action=AuditLog.Action.CREATE).count(), 2)

    def test_student_list_filters(self):
        User.objects.create_user(
            username='PHY/2021/033', email='tunde@student.test', password='x',
            matric='PHY/2021/033', department='Physics', level='300'
        )
        User.objects.create_user(
            username='BIO/2023/101', email='ngozi@student.test', password='x',
            matric='BIO/2023/101', department='Biology', level='100'
        )
        response = self.client.get('/api/admin/students/', {'department': 'Physics'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['matric'] for row in response.data], ['PHY/2021/033'])

    def test_stats_report_queue_depth(self):
        response = self.client.get('/api/admin/stats/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['submission_queue'], {
            'pending': 0,
            'in_flight': 0,
            'max_concurrent': get_submission_queue().max_concurrent,
        })
        self.assertEqual(response.data['total_students'], 0)
