import threading
import time
from concurrent.futures import wait
from types import SimpleNamespace
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.db import DatabaseError
from django.test import SimpleTestCase, TestCase, TransactionTestCase, override_settings
from rest_framework import serializers, status
from rest_framework.test import APIClient

from cores.models import AccessGroup, AuditLog, ScheduledStudent, SessionControl
from exams.models import Exam, Question

from . import services
from .exceptions import DuplicateSubmission, SubmissionStoreError
from .models import Result, Submission
from .queue import InlineDispatcher, QueueShutDown, SubmissionQueue
from .scoring import generate_ca_score, score_answers

User = get_user_model()

INLINE_QUEUE = {'MAX_CONCURRENT': 25, 'DISPATCH': 'inline'}


def make_course(course_code='CSC101', answers=('a', 'b', 'c')):
    exam = Exam.objects.create(
        course='Introduction to Computer Science', course_code=course_code,
        department='Computer Science', level='100', duration_minutes=30,
        num_questions=len(answers)
    )
    questions = [
        Question.objects.create(
            exam=exam, text=f"Question {i}", option_a='A', option_b='B',
            option_c='C', option_d='D', correct_answer=answer
        )
        for i, answer in enumerate(answers, start=1)
    ]
    return exam, questions


class ScoringTestCase(SimpleTestCase):
    def setUp(self):
        self.questions = [
            SimpleNamespace(pk=1, correct_answer='a'),
            SimpleNamespace(pk=2, correct_answer='b'),
            SimpleNamespace(pk=3, correct_answer='c'),
        ]

    def test_all_correct_scores_every_question(self):
        self.assertEqual(score_answers(self.questions, {'1': 'a', '2': 'b', '3': 'c'}), (3, 3))

    def test_no_answers_scores_zero_out_of_total(self):
        self.assertEqual(score_answers(self.questions, {}), (0, 3))

    def test_partial_answers(self):
        self.assertEqual(score_answers(self.questions, {'1': 'a', '2': 'x', '3': 'c'}), (2, 3))

    def test_labels_match_case_sensitively(self):
        self.assertEqual(score_answers(self.questions, {'1': 'A', '2': 'B'}), (0, 3))

    def test_answers_for_unknown_questions_are_ignored(self):
        self.assertEqual(score_answers(self.questions, {'99': 'a', '1': 'a'}), (1, 3))

    def test_ca_score_stays_in_range(self):
        draws = {generate_ca_score(20, 35) for _ in range(500)}
        self.assertTrue(all(20 <= draw <= 35 for draw in draws))
        self.assertGreater(len(draws), 1)


class SubmissionQueueTestCase(SimpleTestCase):
    def assertAllDone(self, futures):
        done, not_done = wait(futures, timeout=10)
        self.assertFalse(not_done)

    def test_rejects_non_positive_concurrency(self):
        with self.assertRaises(ValueError):
            SubmissionQueue(lambda payload: payload, max_concurrent=0, dispatcher=InlineDispatcher())

    def test_admits_in_arrival_order(self):
        admitted = []

        def processor(payload):
            admitted.append(payload)
            return payload

        queue = SubmissionQueue(processor, max_concurrent=1)
        self.addCleanup(queue.shutdown)
        futures = [queue.submit(i) for i in range(20)]

        self.assertAllDone(futures)
        self.assertEqual(admitted, list(range(20)))

    def test_never_exceeds_max_concurrent(self):
        lock = threading.Lock()
        state = {'running': 0, 'peak': 0}

        def processor(payload):
            with lock:
                state['running'] += 1
                state['peak'] = max(state['peak'], state['running'])
            time.sleep(0.02)
            with lock:
                state['running'] -= 1
            return payload

        queue = SubmissionQueue(processor, max_concurrent=3)
        self.addCleanup(queue.shutdown)
        futures = [queue.submit(i) for i in range(12)]

        self.assertAllDone(futures)
        self.assertLessEqual(state['peak'], 3)
        self.assertEqual(sorted(f.result() for f in futures), list(range(12)))
        self.assertEqual(queue.in_flight, 0)
        self.assertEqual(queue.pending, 0)

    def test_submit_does_not_block_when_saturated(self):
        release = threading.Event()

        def processor(payload):
            release.wait(5)
            return payload

        queue = SubmissionQueue(processor, max_concurrent=1)
        self.addCleanup(queue.shutdown)
        futures = [queue.submit(i) for i in range(5)]

        self.assertEqual(queue.in_flight, 1)
        self.assertEqual(queue.pending, 4)

        release.set()
        self.assertAllDone(futures)
        self.assertEqual([f.result() for f in futures], [0, 1, 2, 3, 4])

    def test_failed_job_releases_its_slot(self):
        def processor(payload):
            if payload == 'bad':
                raise RuntimeError("boom")
            return payload

        queue = SubmissionQueue(processor, max_concurrent=1)
        self.addCleanup(queue.shutdown)
        bad = queue.submit('bad')
        good = queue.submit('good')

        self.assertAllDone([bad, good])
        with self.assertRaises(RuntimeError):
            bad.result()
        self.assertEqual(good.result(), 'good')
        self.assertEqual(queue.in_flight, 0)

    def test_inline_dispatch_resolves_before_submit_returns(self):
        queue = SubmissionQueue(lambda payload: payload * 2, max_concurrent=1, dispatcher=InlineDispatcher())
        future = queue.submit(21)
        self.assertTrue(future.done())
        self.assertEqual(future.result(), 42)

    def test_shutdown_fails_waiting_submissions(self):
        release = threading.Event()

        def processor(payload):
            release.wait(5)
            return payload

        queue = SubmissionQueue(processor, max_concurrent=1)
        running = queue.submit('running')
        waiting = [queue.submit(i) for i in range(3)]

        queue.shutdown(error=SubmissionStoreError)
        self.assertAllDone(waiting)
        for future in waiting:
            with self.assertRaises(SubmissionStoreError):
                future.result()
        self.assertEqual(queue.pending, 0)

        # The admitted job still finishes and gives its slot back
        release.set()
        self.assertEqual(running.result(timeout=5), 'running')
        self.assertEqual(queue.in_flight, 0)

    def test_submit_after_shutdown_fails_immediately(self):
        queue = SubmissionQueue(lambda payload: payload, max_concurrent=1, dispatcher=InlineDispatcher())
        queue.shutdown()
        future = queue.submit('late')
        self.assertTrue(future.done())
        with self.assertRaises(QueueShutDown):
            future.result()

    def test_refused_dispatch_releases_slot(self):
        class ClosedDispatcher:
            def dispatch(self, job):
                raise RuntimeError("cannot schedule new futures after shutdown")

            def shutdown(self):
                pass

        queue = SubmissionQueue(lambda payload: payload, max_concurrent=1, dispatcher=ClosedDispatcher())
        futures = [queue.submit(i) for i in range(2)]

        for future in futures:
            self.assertTrue(future.done())
            with self.assertRaises(RuntimeError):
                future.result()
        self.assertEqual(queue.in_flight, 0)
        self.assertEqual(queue.pending, 0)

    def test_base_exception_still_resolves_future(self):
        class Abort(BaseException):
            pass

        def processor(payload):
            raise Abort()

        queue = SubmissionQueue(processor, max_concurrent=1)
        self.addCleanup(queue.shutdown)
        future = queue.submit('x')

        self.assertAllDone([future])
        self.assertIsInstance(future.exception(), Abort)
        self.assertEqual(queue.in_flight, 0)


@override_settings(CBT_SUBMISSION_QUEUE=INLINE_QUEUE)
class ProcessSubmissionTestCase(TestCase):
    def setUp(self):
        self.exam, self.questions = make_course()
        q1, q2, q3 = self.questions
        self.payload = {
            'course_code': 'CSC101',
            'student_matric': 'CSC/2021/001',
            'student_name': 'Ada Obi',
            'department': 'Computer Science',
            'answers': {str(q1.pk): 'a', str(q2.pk): 'x', str(q3.pk): 'c'},
        }

    def test_scores_and_records_result(self):
        outcome = services.process_submission(self.payload)

        self.assertEqual(outcome['score'], 2)
        self.assertEqual(outcome['total'], 3)
        self.assertTrue(20 <= outcome['ca_score'] <= 35)
        self.assertEqual(outcome['total_score'], 2 + outcome['ca_score'])

        result = Result.objects.get(student_matric='CSC/2021/001', course_code='CSC101')
        self.assertEqual(result.total_score, outcome['total_score'])
        self.assertEqual(Submission.objects.count(), 1)

    def test_full_marks(self):
        self.payload['answers'] = {str(q.pk): q.correct_answer for q in self.questions}
        self.assertEqual(services.process_submission(self.payload)['score'], 3)

    def test_integer_question_ids_are_accepted(self):
        self.payload['answers'] = {q.pk: q.correct_answer for q in self.questions}
        self.assertEqual(services.process_submission(self.payload)['score'], 3)

    def test_unanswered_questions_count_as_wrong(self):
        q1, q2, q3 = self.questions
        self.payload['answers'] = {str(q1.pk): 'a', str(q2.pk): None, str(q3.pk): ''}

        outcome = services.process_submission(self.payload)
        self.assertEqual((outcome['score'], outcome['total']), (1, 3))
        self.assertEqual(Submission.objects.get().answers[str(q2.pk)], None)

    def test_inactive_exam_is_rejected(self):
        self.exam.is_active = False
        self.exam.save()
        with self.assertRaises(serializers.ValidationError) as ctx:
            services.process_submission(self.payload)
        self.assertIn('course_code', ctx.exception.detail)
        self.assertFalse(Submission.objects.exists())

    def test_resubmission_conflicts_and_keeps_first_result(self):
        first = services.process_submission(self.payload)

        with self.assertRaises(DuplicateSubmission):
            services.process_submission(self.payload)

        self.assertEqual(Result.objects.count(), 1)
        result = Result.objects.get()
        self.assertEqual(result.ca_score, first['ca_score'])
        self.assertEqual(result.total_score, first['total_score'])
        # The conflicting attempt is rejected before its audit row is written
        self.assertEqual(Submission.objects.count(), 1)

    def test_race_past_the_prechecks_still_yields_one_result(self):
        services.process_submission(self.payload)

        # Both submissions were admitted before either stored its result
        with mock.patch('assessments.services.result_exists', return_value=False):
            with self.assertRaises(DuplicateSubmission):
                services.process_submission(self.payload)

        self.assertEqual(Result.objects.filter(student_matric='CSC/2021/001', course_code='CSC101').count(), 1)

    def test_missing_identity_is_rejected_before_persisting(self):
        del self.payload['student_matric']
        with self.assertRaises(serializers.ValidationError) as ctx:
            services.process_submission(self.payload)

        self.assertIn('student_matric', ctx.exception.detail)
        self.assertFalse(Submission.objects.exists())
        self.assertFalse(Result.objects.exists())

    def test_answers_must_be_a_mapping(self):
        self.payload['answers'] = ['a', 'b', 'c']
        with self.assertRaises(serializers.ValidationError) as ctx:
            services.process_submission(self.payload)
        self.assertIn('answers', ctx.exception.detail)
        self.assertFalse(Submission.objects.exists())

    def test_unknown_course_is_rejected(self):
        self.payload['course_code'] = 'MTH999'
        with self.assertRaises(serializers.ValidationError) as ctx:
            services.process_submission(self.payload)
        self.assertIn('course_code', ctx.exception.detail)

    def test_store_failure_is_reported_as_server_fault(self):
        with mock.patch.object(Submission.objects, 'create', side_effect=DatabaseError("disk I/O error")):
            with self.assertRaises(SubmissionStoreError):
                services.process_submission(self.payload)
        self.assertFalse(Result.objects.exists())

    def test_store_failure_does_not_stall_the_queue(self):
        queue = services.get_submission_queue()
        other = dict(self.payload, student_matric='CSC/2021/002')

        with mock.patch.object(Submission.objects, 'create', side_effect=DatabaseError("disk I/O error")):
            failed = queue.submit(self.payload)
        succeeded = queue.submit(other)

        with self.assertRaises(SubmissionStoreError):
            failed.result()
        self.assertEqual(succeeded.result()['score'], 2)
        self.assertEqual(queue.in_flight, 0)

    def test_record_result_enforces_uniqueness(self):
        services.record_result('CSC/2021/001', 'CSC101', 1, 3, 25)
        with self.assertRaises(DuplicateSubmission):
            services.record_result('CSC/2021/001', 'CSC101', 3, 3, 30)
        self.assertEqual(Result.objects.get().score, 1)


@override_settings(CBT_SUBMISSION_QUEUE=INLINE_QUEUE)
class SubmitExamAPITestCase(TestCase):
    def setUp(self):
        cache.clear()
        self.exam, self.questions = make_course()
        self.student = User.objects.create_user(
            username='CSC/2021/001', email='ada@student.test', password='pass12345',
            first_name='Ada', last_name='Obi', matric='CSC/2021/001',
            department='Computer Science', level='100'
        )
        self.admin = User.objects.create_user(
            username='admin', email='admin@cbt.test', password='admin12345',
            role=User.Role.ADMIN, is_staff=True
        )
        SessionControl(session_active=True).save()
        AccessGroup.set_rule('Computer Science', '100', AccessGroup.Status.ALLOWED)
        ScheduledStudent.objects.create(matric='CSC/2021/001', name='Ada Obi')

        q1, q2, q3 = self.questions
        self.answers = {str(q1.pk): 'a', str(q2.pk): 'x', str(q3.pk): 'c'}
        self.client = APIClient()
        self.client.force_authenticate(user=self.student)

    def submit(self, course_code='CSC101', answers=None):
        return self.client.post(
            f'/api/exams/{course_code}/submit/',
            {'answers': self.answers if answers is None else answers},
            format='json'
        )

    def test_submit_scores_exam(self):
        response = self.submit()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['score'], 2)
        self.assertEqual(response.data['total'], 3)
        self.assertEqual(response.data['total_score'], 2 + response.data['ca_score'])

        submission = Submission.objects.get()
        self.assertEqual(submission.student_name, 'Ada Obi')
        self.assertEqual(submission.department, 'Computer Science')

    def test_resubmission_returns_conflict(self):
        first = self.submit()
        second = self.submit(answers={str(q.pk): q.correct_answer for q in self.questions})

        self.assertEqual(second.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(second.data['detail'].code, 'duplicate_submission')
        self.assertEqual(Result.objects.get().total_score, first.data['total_score'])

    def test_result_is_stable_across_reads(self):
        self.submit()
        first = self.client.get('/api/results/CSC101/')
        second = self.client.get('/api/results/CSC101/')

        self.assertEqual(first.status_code, status.HTTP_200_OK)
        self.assertEqual(first.data['ca_score'], second.data['ca_score'])
        self.assertTrue(20 <= first.data['ca_score'] <= 35)

    def test_missing_result_is_not_found(self):
        response = self.client.get('/api/results/CSC101/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_malformed_answers_are_rejected(self):
        response = self.submit(answers='a,b,c')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('answers', response.data)
        self.assertFalse(Submission.objects.exists())

    def test_unknown_course_is_rejected(self):
        response = self.submit(course_code='MTH999')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_submission_is_audited(self):
        self.submit()
        entry = AuditLog.objects.get(action=AuditLog.Action.SUBMISSION)
        self.assertEqual(entry.actor, self.student)
        self.assertEqual(entry.target_object_id, 'CSC101')

    def test_timed_out_exam_with_blank_answers_is_scored(self):
        q1, q2, q3 = self.questions
        response = self.submit(answers={str(q1.pk): 'a', str(q2.pk): None, str(q3.pk): None})
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['score'], 1)

    def test_exam_for_another_department_is_rejected(self):
        make_course('CHM201', answers=('a',))
        Exam.objects.filter(course_code='CHM201').update(department='Chemistry', level='200')

        response = self.submit(course_code='CHM201', answers={})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('course_code', response.data)
        self.assertFalse(Submission.objects.exists())

    def test_inactive_exam_is_rejected(self):
        Exam.objects.filter(course_code='CSC101').update(is_active=False)
        response = self.submit()
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Result.objects.exists())

    def test_inactive_session_blocks_submission(self):
        SessionControl(session_active=False).save()
        response = self.submit()
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['detail'].code, 'session_inactive')
        self.assertFalse(Submission.objects.exists())

    def test_unscheduled_student_cannot_submit(self):
        ScheduledStudent.objects.all().delete()
        response = self.submit()
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['detail'].code, 'not_scheduled')

    def test_admins_cannot_submit(self):
        self.client.force_authenticate(user=self.admin)
        self.assertEqual(self.submit().status_code, status.HTTP_403_FORBIDDEN)

    def test_anonymous_cannot_submit(self):
        self.client.force_authenticate(user=None)
        self.assertEqual(self.submit().status_code, status.HTTP_401_UNAUTHORIZED)

    def test_admin_result_views(self):
        self.submit()
        self.client.force_authenticate(user=self.admin)

        listing = self.client.get('/api/admin/results/', {'course_code': 'CSC101'})
        self.assertEqual(listing.status_code, status.HTTP_200_OK)
        self.assertEqual(len(listing.data), 1)

        detail = self.client.get('/api/admin/results/CSC/2021/001/CSC101/')
        self.assertEqual(detail.status_code, status.HTTP_200_OK)
        self.assertEqual(detail.data['student_matric'], 'CSC/2021/001')

        missing = self.client.get('/api/admin/results/CSC/2021/002/CSC101/')
        self.assertEqual(missing.status_code, status.HTTP_404_NOT_FOUND)

        audit = self.client.get('/api/admin/submissions/')
        self.assertEqual(audit.data[0]['answers'], self.answers)


@override_settings(CBT_SUBMISSION_QUEUE={'MAX_CONCURRENT': 8, 'DISPATCH': 'thread'})
class ConcurrentSubmissionTestCase(TransactionTestCase):
    """Same-student submissions racing through real worker threads."""

    def setUp(self):
        self.exam, self.questions = make_course()
        self.payload = {
            'course_code': 'CSC101',
            'student_matric': 'CSC/2021/001',
            'answers': {str(q.pk): q.correct_answer for q in self.questions},
        }

    def test_parallel_duplicates_store_a_single_result(self):
        futures = [services.submit_exam(**self.payload) for _ in range(8)]
        done, not_done = wait(futures, timeout=30)
        self.assertFalse(not_done)

        succeeded = [f for f in futures if f.exception() is None]
        conflicts = [f for f in futures if isinstance(f.exception(), DuplicateSubmission)]
        self.assertEqual(len(succeeded), 1)
        self.assertEqual(len(conflicts), 7)
        self.assertEqual(succeeded[0].result()['score'], 3)
        self.assertEqual(Result.objects.filter(student_matric='CSC/2021/001', course_code='CSC101').count(), 1)
        self.assertEqual(services.get_submission_queue().in_flight, 0)
