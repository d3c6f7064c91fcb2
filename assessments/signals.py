from django.core.signals import setting_changed
from django.dispatch import receiver

from .services import reset_submission_queue


@receiver(setting_changed)
def rebuild_submission_queue(sender, setting, **kwargs):
    if setting == 'CBT_SUBMISSION_QUEUE':
        reset_submission_queue()
