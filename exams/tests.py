from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from .models import Exam, Question

User = get_user_model()


class ExamAPITestCase(TestCase):
    def setUp(self):
        self.admin = User.objects.create_user(
            username='admin', email='admin@cbt.test', password='admin12345',
            role=User.Role.ADMIN, is_staff=True
        )
        self.student = User.objects.create_user(
            username='CSC/2021/001', email='ada@student.test', password='pass12345',
            matric='CSC/2021/001', department='Computer Science', level='100'
        )
        self.exam = Exam.objects.create(
            course='Introduction to Computer Science', course_code='CSC101',
            department='Computer Science', level='100', duration_minutes=30, num_questions=2
        )
        Exam.objects.create(
            course='Organic Chemistry', course_code='CHM201',
            department='Chemistry', level='200', duration_minutes=45, num_questions=40
        )
        Exam.objects.create(course='Use of English', course_code='GST101', duration_minutes=20)
        self.question = Question.objects.create(
            exam=self.exam, text='Which of these is a compiled language?',
            option_a='C', option_b='Python', option_c='Bash', option_d='Ruby', correct_answer='a'
        )
        self.client = APIClient()

    def test_student_sees_exams_for_their_department_and_level(self):
        self.client.force_authenticate(user=self.student)
        response = self.client.get('/api/exams/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(sorted(row['course_code'] for row in response.data), ['CSC101', 'GST101'])

    def test_candidate_questions_hide_the_answer_key(self):
        self.client.force_authenticate(user=self.student)
        response = self.client.get('/api/exams/CSC101/questions/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        question = response.data[0]
        self.assertNotIn('correct_answer', question)
        self.assertEqual(question['options'], {'a': 'C', 'b': 'Python', 'c': 'Bash', 'd': 'Ruby'})

    def test_student_cannot_fetch_another_departments_questions(self):
        self.client.force_authenticate(user=self.student)
        response = self.client.get('/api/exams/CHM201/questions/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_students_cannot_create_exams(self):
        self.client.force_authenticate(user=self.student)
        response = self.client.post('/api/exams/', {
            'course': 'Data Structures', 'course_code': 'CSC201', 'duration_minutes': 60
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_creates_exam_and_question(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post('/api/exams/', {
            'course': 'Data Structures', 'course_code': 'CSC201', 'department': 'Computer Science',
            'level': '200', 'duration_minutes': 60, 'num_questions': 50
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.post('/api/questions/', {
            'course_code': 'CSC201',
            'question_text': 'A stack is...',
            'option_a': 'FIFO', 'option_b': 'LIFO', 'option_c': 'Random', 'option_d': 'Sorted',
            'correct_answer': 'b',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['correct_answer'], 'b')
        self.assertEqual(Question.for_course('CSC201').count(), 1)

    def test_question_answer_must_be_an_option_label(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post('/api/questions/', {
            'course_code': 'CSC101', 'question_text': 'Pick one',
            'option_a': '1', 'option_b': '2', 'option_c': '3', 'option_d': '4',
            'correct_answer': 'e',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('correct_answer', response.data)

    def test_admin_question_bank_filters_by_course(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.get('/api/questions/', {'course_code': 'CSC101'})
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['correct_answer'], 'a')
        self.assertEqual(response.data[0]['course_code'], 'CSC101')

        response = self.client.get('/api/questions/', {'course_code': 'CHM201'})
        self.assertEqual(response.data, [])
