"""
Bounded-concurrency FIFO queue for exam submissions.

Submissions are accepted at any rate and admitted for processing strictly in
arrival order, with at most ``max_concurrent`` being processed at once. A
finished job releases its slot and immediately admits the next waiting one,
so the queue drains itself without a poller.

While open, accepting never blocks or rejects: under sustained overload the
waiting deque grows without bound and the only symptom is latency. Watch
``pending`` if that matters.
"""
import logging
import threading
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from functools import partial

from django.db import close_old_connections

logger = logging.getLogger(__name__)


class InlineDispatcher:
    """Runs each admitted job on the thread that admitted it."""

    def dispatch(self, job):
        job()

    def shutdown(self):
        pass


class ThreadPoolDispatcher:
    """Runs admitted jobs on a worker pool, one DB connection per worker."""

    def __init__(self, max_workers, thread_name_prefix='submission'):
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix=thread_name_prefix
        )

    def dispatch(self, job):
        self._executor.submit(self._run, job)

    @staticmethod
    def _run(job):
        # Same connection hygiene Django applies around a request
        close_old_connections()
        try:
            job()
        finally:
            close_old_connections()

    def shutdown(self):
        self._executor.shutdown(wait=False)


class QueueShutDown(RuntimeError):
    """Raised through the futures of submissions still waiting at shutdown."""


class SubmissionQueue:
    def __init__(self, processor, max_concurrent=25, dispatcher=None):
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        self.processor = processor
        self.max_concurrent = max_concurrent
        self.dispatcher = dispatcher or ThreadPoolDispatcher(max_concurrent)

        # All guarded by _lock
        self._waiting = deque()
        self._in_flight = 0
        self._closed = False
        self._lock = threading.Lock()

    @property
    def pending(self):
        with self._lock:
            return len(self._waiting)

    @property
    def in_flight(self):
        with self._lock:
            return self._in_flight

    def submit(self, payload):
        """Queue ``payload`` and return a Future resolved with the processor's outcome."""
        future = Future()
        with self._lock:
            closed = self._closed
            if not closed:
                self._waiting.append((payload, future))
                depth = len(self._waiting)
        if closed:
            future.set_exception(QueueShutDown("Submission queue is shut down"))
            return future
        logger.debug("Submission queued (waiting=%d)", depth)
        self._drain()
        return future

    def _drain(self):
        while True:
            with self._lock:
                if self._closed or self._in_flight >= self.max_concurrent or not self._waiting:
                    return
                payload, future = self._waiting.popleft()
                self._in_flight += 1
            try:
                self.dispatcher.dispatch(partial(self._process, payload, future))
            except RuntimeError as exc:
                # Dispatcher refused the job (executor already shut down)
                logger.error("Could not dispatch submission: %s", exc)
                self._release()
                future.set_exception(exc)

    def _release(self):
        with self._lock:
            self._in_flight -= 1

    def _process(self, payload, future):
        try:
            outcome = self.processor(payload)
        except BaseException as exc:
            # Delivered to the caller through the future
            self._release()
            future.set_exception(exc)
            if not isinstance(exc, Exception):
                raise
        else:
            self._release()
            future.set_result(outcome)
        self._drain()

    def shutdown(self, error=QueueShutDown):
        """
        Stop admitting work and fail every submission still waiting.

        ``error`` is the exception class raised through each waiting future.
        Jobs already handed to the dispatcher run to completion.
        """
        with self._lock:
            self._closed = True
            waiting, self._waiting = self._waiting, deque()
        if waiting:
            logger.warning("Submission queue shut down with %d waiting", len(waiting))
        for _, future in waiting:
            future.set_exception(error())
        self.dispatcher.shutdown()
