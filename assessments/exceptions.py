from rest_framework import status
from rest_framework.exceptions import APIException


class DuplicateSubmission(APIException):
    """A result already exists for this student and course. Expected, not a fault."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = "You have already submitted this exam."
    default_code = 'duplicate_submission'


class SubmissionStoreError(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Your submission could not be saved. Please contact the exam officer."
    default_code = 'submission_store_error'
