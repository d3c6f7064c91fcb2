"""
Exam submission pipeline and result store.

Views never score inline: ``submit_exam`` puts the request on the shared
``SubmissionQueue`` and ``process_submission`` does the work once the queue
admits it.
"""
import logging
import threading

from django.conf import settings
from django.db import DatabaseError, IntegrityError, transaction
from rest_framework import serializers

from exams.models import Exam, Question

from .exceptions import DuplicateSubmission, SubmissionStoreError
from .models import Result, Submission
from .queue import InlineDispatcher, SubmissionQueue, ThreadPoolDispatcher
from .scoring import generate_ca_score, score_answers
from .serializers import ExamSubmissionSerializer

logger = logging.getLogger(__name__)

_queue = None
_queue_lock = threading.Lock()


# --- Result store ---

def result_exists(student_matric, course_code):
    return Result.objects.filter(student_matric=student_matric, course_code=course_code).exists()


def get_result(student_matric, course_code):
    return Result.objects.get(student_matric=student_matric, course_code=course_code)


def record_result(student_matric, course_code, score, total, ca_score):
    """
    Insert the one result for this student and course.

    The unique constraint makes the insert itself the final duplicate check,
    so two submissions that both got past the earlier checks still end up
    with a single result.
    """
    if result_exists(student_matric, course_code):
        raise DuplicateSubmission()
    try:
        with transaction.atomic():
            return Result.objects.create(
                student_matric=student_matric,
                course_code=course_code,
                score=score,
                total=total,
                ca_score=ca_score,
                total_score=score + ca_score,
            )
    except IntegrityError:
        logger.warning("Concurrent duplicate result for %s in %s", student_matric, course_code)
        raise DuplicateSubmission()


# --- Processing ---

def process_submission(payload):
    serializer = ExamSubmissionSerializer(data=payload)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    matric = data['student_matric']
    course_code = data['course_code']

    try:
        if not Exam.objects.filter(course_code=course_code, is_active=True).exists():
            raise serializers.ValidationError({'course_code': ["No open exam with this course code."]})

        if result_exists(matric, course_code):
            logger.info("Duplicate submission rejected for %s in %s", matric, course_code)
            raise DuplicateSubmission()

        Submission.objects.create(
            student_matric=matric,
            student_name=data.get('student_name', ''),
            department=data.get('department', ''),
            course_code=course_code,
            answers=data['answers'],
        )

        score, total = score_answers(Question.for_course(course_code), data['answers'])
        ca_score = generate_ca_score(*settings.CBT_CA_SCORE_RANGE)
        result = record_result(matric, course_code, score, total, ca_score)
    except DatabaseError as exc:
        logger.exception("Could not store submission for %s in %s", matric, course_code)
        raise SubmissionStoreError() from exc

    logger.info("Scored %s in %s: %d/%d (+%d CA)", matric, course_code, score, total, ca_score)
    return {
        "status": "submitted",
        "course_code": course_code,
        "score": result.score,
        "total": result.total,
        "ca_score": result.ca_score,
        "total_score": result.total_score,
    }


def submit_exam(course_code, student_matric, student_name='', department='', answers=None):
    """Queue a submission; the returned Future resolves to the outcome or raises."""
    return get_submission_queue().submit({
        'course_code': course_code,
        'student_matric': student_matric,
        'student_name': student_name,
        'department': department,
        'answers': answers,
    })


# --- Shared queue ---

def _build_queue():
    config = settings.CBT_SUBMISSION_QUEUE
    max_concurrent = config.get('MAX_CONCURRENT', 25)
    if config.get('DISPATCH', 'thread') == 'inline':
        dispatcher = InlineDispatcher()
    else:
        dispatcher = ThreadPoolDispatcher(max_concurrent)
    return SubmissionQueue(process_submission, max_concurrent=max_concurrent, dispatcher=dispatcher)


def get_submission_queue():
    global _queue
    with _queue_lock:
        if _queue is None:
            _queue = _build_queue()
        return _queue


def reset_submission_queue():
    """Drop the shared queue so the next call rebuilds it from settings."""
    global _queue
    with _queue_lock:
        old, _queue = _queue, None
    if old is not None:
        # Anything still waiting on the old queue gets a definite failure
        old.shutdown(error=SubmissionStoreError)
