""" Bounded concurrent execution for bulk operations. A :class:`WorkerPool`
    runs tasks on a fixed number of worker threads; an
    :class:`AdmissionController` decides when the submitting thread may
    hand over another task, and caps how many tasks execute at once.
"""

import concurrent.futures
import contextlib
import itertools
import logging
import threading

from . import config
from .errors import Cancelled


logger = logging.getLogger(__name__)

_pool_ids = itertools.count(1)


class AdmissionController:
    """ Track the number of active tasks and hold submissions until fewer
        than *limit* tasks are active. The submitting thread waits on a
        condition variable, waking at least every *interval* seconds to
        check for cancellation.
    """

    def __init__(self, limit, interval=None):

        limit = config.validate('max_threads', limit)

        if interval is None:
            interval = config.get().interval
        else:
            interval = config.validate('interval', interval)

        self.limit = limit
        self.interval = interval
        self.active = 0
        self.peak = 0
        self._condition = threading.Condition()


    def try_admit(self):
        """ Return True if a task submitted now would find a free slot.
            The answer may be stale by the time the caller acts on it.
        """

        with self._condition:
            return self.active < self.limit


    def wait(self, cancel=None):
        """ Block until :func:`try_admit` would return True. If the *cancel*
            event is set while waiting, :class:`attrdb.errors.Cancelled` is
            raised.
        """

        with self._condition:
            while True:
                if cancel is not None and cancel.is_set():
                    raise Cancelled('cancelled while waiting for a free worker')

                if self.active < self.limit:
                    return

                self._condition.wait(self.interval)


    @contextlib.contextmanager
    def slot(self, cancel=None):
        """ Context manager held for the duration of a single task. Entering
            blocks until a slot is free; this is what keeps inline execution
            on the submitting thread within the same concurrency limit. If
            the *cancel* event is set while waiting,
            :class:`attrdb.errors.Cancelled` is raised and no slot is taken.
        """

        with self._condition:
            while self.active >= self.limit:
                if cancel is not None and cancel.is_set():
                    raise Cancelled('cancelled while waiting to run a task')

                self._condition.wait(self.interval)

            self.active += 1
            if self.active > self.peak:
                self.peak = self.active

        try:
            yield
        finally:
            with self._condition:
                self.active -= 1
                self._condition.notify_all()


# end of class AdmissionController



class WorkerPool:
    """ A fixed-size pool of *limit* worker threads with a queue bounded to
        *queue_size* tasks, which defaults to *limit*. When the queue is full
        the task runs inline, on the thread calling :func:`submit`; nothing
        submitted is ever dropped.

        A task is any callable taking no arguments. Exceptions raised by a
        task are logged and appended to ``failures`` as (task, exception)
        pairs; they do not stop the pool.

        A pool is good for one bulk operation: after :func:`shutdown` no
        further tasks are accepted.

        :ivar inline: The number of tasks that ran on the submitting thread
            because the queue was full.
        :ivar submitted: The total number of tasks accepted.
    """

    def __init__(self, limit=None, queue_size=None, interval=None):

        if limit is None:
            limit = config.get().max_threads

        self.admission = AdmissionController(limit, interval)
        self.limit = self.admission.limit

        if queue_size is None:
            queue_size = self.limit
        elif queue_size < 0:
            raise ValueError('queue size must not be negative: %r' % (queue_size,))

        self.queue_size = queue_size
        self.failures = list()
        self.inline = 0
        self.submitted = 0

        self._closed = False
        self._futures = set()
        self._futures_lock = threading.Lock()
        self._failures_lock = threading.Lock()
        self._queued = threading.BoundedSemaphore(queue_size) if queue_size else None

        prefix = 'attrdb.pool.%d' % (next(_pool_ids))
        self._executor = concurrent.futures.ThreadPoolExecutor(
                                max_workers=self.limit, thread_name_prefix=prefix)


    def __enter__(self):
        return self


    def __exit__(self, exc_type, exc_value, traceback):

        if exc_type is None:
            self.shutdown()
        else:
            # Something went wrong on the submitting side. Don't start any
            # more queued work, but let running tasks complete.
            self._cancel_pending()
            self._executor.shutdown(wait=True)

        return False


    def submit(self, task, cancel=None):
        """ Wait for admission, then queue *task* for execution. If the queue
            is full, run *task* inline before returning. Raises
            :class:`attrdb.errors.Cancelled` if *cancel* is set while waiting.
        """

        if self._closed:
            raise RuntimeError('cannot submit to a pool that has been shut down')

        self.admission.wait(cancel)
        self.submitted += 1

        if self._queued is not None and self._queued.acquire(blocking=False):
            future = self._executor.submit(self._run_queued, task)
            with self._futures_lock:
                self._futures.add(future)
            future.add_done_callback(self._discard)
            return

        # The queue is full. This is expected to be rare: the admission check
        # and the enqueue are not atomic, and a worker that just finished may
        # not have picked up its next task yet.

        logger.debug("pool saturated, running %r inline", task)
        self.inline += 1
        self._run(task, cancel)


    def shutdown(self, cancel=None):
        """ Stop accepting tasks and block until every submitted task has
            completed. If *cancel* is set while waiting, tasks that have not
            started are discarded, running tasks are allowed to finish, and
            :class:`attrdb.errors.Cancelled` is raised.
        """

        self._closed = True
        self._executor.shutdown(wait=False)

        while True:
            with self._futures_lock:
                pending = list(self._futures)

            if len(pending) == 0:
                break

            if cancel is not None and cancel.is_set():
                self._cancel_pending()
                self._executor.shutdown(wait=True)
                raise Cancelled('cancelled while waiting for workers to finish')

            concurrent.futures.wait(pending, timeout=self.admission.interval)


    def _cancel_pending(self):
        with self._futures_lock:
            pending = list(self._futures)

        for future in pending:
            future.cancel()


    def _discard(self, future):
        with self._futures_lock:
            self._futures.discard(future)


    def _run_queued(self, task):
        self._queued.release()
        self._run(task)


    def _run(self, task, cancel=None):
        """ Only inline runs pass *cancel*. A queued task that has already
            started waiting for its slot is left to run; queued tasks that
            have not started are discarded by :func:`shutdown`.
        """

        with self.admission.slot(cancel):
            try:
                task()
            except Exception as exc:
                logger.warning("task %r failed", task, exc_info=True)
                with self._failures_lock:
                    self.failures.append((task, exc))


# end of class WorkerPool


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
