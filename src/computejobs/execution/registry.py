"""Job Registry — live handles of jobs executing in this process.

Manifesto:
A job row says *what* is running; only the process that launched it can
*stop* it.  The registry maps job ids to the cancellable handle of their
execution unit.  It is the only mutable state the runner shares between
the submitting thread, the worker threads and cancel requests, so every
structural change goes through one lock.

ARCHITECTURE
────────────
::

    JobRegistry
      ├── .put(job_id, handle)   ─ runner, before launch
      ├── .remove(job_id)        ─ runner after persisting, or cancel
      ├── .get(job_id)           ─ wait / inspection
      └── .job_ids()             ─ snapshot

    JobHandle (cancellation token)
      ├── .attach(future)        ─ bind the pool future once launched
      ├── .cancel()              ─ request cancellation (cooperative)
      ├── .cancel_requested      ─ has cancel() been called?
      └── .wait(timeout)         ─ block until the unit finishes

    cancellation_requested() / raise_if_cancelled()
        checks a computation calls from inside its worker thread

Handles live in memory only.  After a restart, jobs left ``running`` by a
previous process have no handle and cannot be canceled from here.

Each :class:`~computejobs.execution.jobs.ComputationJobs` owns its own
registry; there is no module-level instance.

Tags:
    computejobs, execution, registry, cancellation, thread-safety
"""

import threading
import time
from collections.abc import Iterator
from concurrent.futures import Future
from concurrent.futures import wait as wait_futures
from contextlib import contextmanager
from contextvars import ContextVar

from computejobs.core.errors import DuplicateHandleError, JobCancelledError

_current_handle: ContextVar["JobHandle | None"] = ContextVar("computejobs_handle", default=None)


class JobHandle:
    """Cancellation token for one execution unit.

    The handle is created and registered *before* the computation is handed
    to the pool, so a fast computation can never finish before its handle
    exists.  The pool future is attached afterwards; a cancel that arrives in
    between is replayed onto the future by :meth:`attach`.
    :meth:`wait` blocks until the future is attached (or the launch is
    abandoned), so waiting in that window does not return early.
    """

    def __init__(self, job_id: str) -> None:
        self.job_id = job_id
        self._lock = threading.Lock()
        self._cancelled = threading.Event()
        self._future: Future | None = None
        self._settled = threading.Event()

    def attach(self, future: Future) -> None:
        with self._lock:
            self._future = future
            cancelled = self._cancelled.is_set()
        self._settled.set()
        if cancelled:
            future.cancel()

    def abandon(self) -> None:
        """Mark the unit as never launched; releases pending waiters."""
        self._settled.set()

    def cancel(self) -> bool:
        """Request cancellation.

        Work that has not started yet is dropped from the pool queue.  Work
        already running keeps running until it checks
        :func:`cancellation_requested` or returns.

        Returns:
            True if the computation will never start.
        """
        with self._lock:
            self._cancelled.set()
            future = self._future
        return future.cancel() if future is not None else True

    @property
    def cancel_requested(self) -> bool:
        return self._cancelled.is_set()

    @property
    def future(self) -> Future | None:
        return self._future

    @property
    def done(self) -> bool:
        future = self._future
        return future is not None and future.done()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the execution unit finishes; True if it did.

        An abandoned handle counts as finished.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        if not self._settled.wait(timeout):
            return False
        future = self._future
        if future is None:
            return True
        remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
        done, _ = wait_futures([future], timeout=remaining)
        return bool(done)

    def __repr__(self) -> str:
        return f"JobHandle(job_id={self.job_id!r}, cancel_requested={self.cancel_requested})"


class JobRegistry:
    """Thread-safe ``job_id → JobHandle`` table.

    At most one live handle exists per job: registering a second one for
    the same id raises :class:`DuplicateHandleError`.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._handles: dict[str, JobHandle] = {}

    def put(self, job_id: str, handle: JobHandle) -> None:
        with self._lock:
            if job_id in self._handles:
                raise DuplicateHandleError(
                    f"Job {job_id} already has a live handle",
                    context={"job_id": job_id},
                )
            self._handles[job_id] = handle

    def remove(self, job_id: str) -> JobHandle | None:
        """Remove and return the handle; None if it was already gone."""
        with self._lock:
            return self._handles.pop(job_id, None)

    def get(self, job_id: str) -> JobHandle | None:
        with self._lock:
            return self._handles.get(job_id)

    def job_ids(self) -> list[str]:
        with self._lock:
            return list(self._handles)

    def clear(self) -> None:
        with self._lock:
            self._handles.clear()

    def __contains__(self, job_id: object) -> bool:
        with self._lock:
            return job_id in self._handles

    def __len__(self) -> int:
        with self._lock:
            return len(self._handles)


# ── Cooperative cancellation inside computations ─────────────────────────


@contextmanager
def bind_handle(handle: JobHandle) -> Iterator[JobHandle]:
    """Expose *handle* to the computation running in this thread."""
    token = _current_handle.set(handle)
    try:
        yield handle
    finally:
        _current_handle.reset(token)


def current_handle() -> JobHandle | None:
    return _current_handle.get()


def cancellation_requested() -> bool:
    """True if the job whose computation is running here has been canceled.

    Always False outside a job's worker thread.
    """
    handle = _current_handle.get()
    return handle is not None and handle.cancel_requested


def raise_if_cancelled() -> None:
    """Raise :class:`JobCancelledError` if the current job has been canceled."""
    handle = _current_handle.get()
    if handle is not None and handle.cancel_requested:
        raise JobCancelledError(
            f"Job {handle.job_id} was canceled",
            context={"job_id": handle.job_id},
        )
