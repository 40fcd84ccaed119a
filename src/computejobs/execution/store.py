"""Job and result stores — the persistence contract of the job system.

ARCHITECTURE
────────────
::

    JobStore (Protocol)
      ├── .create_job(creator, job_type, context) ─ insert a running job
      ├── .get_job(job_id)                        ─ lookup by id
      ├── .latest_by_context(context, exclude)    ─ cache lookup
      ├── .list_jobs(creator, status)             ─ per-caller listings
      └── .finish_job(job_id, status, result)     ─ terminal transition

    ResultStore (Protocol)
      └── .get_result(job_id)                     ─ fetch a JobResult

    Implementations:
      InMemoryJobStore ─ dict + lock  (tests, single process)
      SqlJobStore      ─ SQLAlchemy   (sql_store.py)

``finish_job`` is the only write after creation.  It moves a job from
``running`` to a terminal status and, in the same atomic step, inserts its
result (if one is given).  When the job is no longer ``running`` nothing is
written and ``False`` is returned, so a terminal status is never
overwritten and a canceled job never gains a result.
"""

import threading
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime
from typing import Protocol, runtime_checkable

from .context_key import ContextKey
from .models import SIMPLE_JOB, Job, JobResult, JobStatus, new_job_id, utcnow, validate_job_transition


@runtime_checkable
class JobStore(Protocol):
    """Durable storage of job records."""

    def create_job(self, *, creator: str | None, job_type: str, context: ContextKey) -> Job:
        """Insert a ``running`` job; the store assigns id and timestamps."""
        ...

    def get_job(self, job_id: str) -> Job | None:
        ...

    def latest_by_context(
        self,
        context: ContextKey,
        *,
        exclude_status: JobStatus | None = None,
    ) -> Job | None:
        """Most recently updated job with this context (optionally skipping a status)."""
        ...

    def list_jobs(self, *, creator: str | None, status: JobStatus) -> list[Job]:
        ...

    def finish_job(self, job_id: str, status: JobStatus, result: JobResult | None = None) -> bool:
        """Atomically move a running job to *status* and insert *result*.

        Returns:
            True if the job was running and has been updated, False otherwise.

        Raises:
            InvalidTransitionError: If *status* is not a terminal status.
        """
        ...


@runtime_checkable
class ResultStore(Protocol):
    """Durable storage of job results."""

    def get_result(self, job_id: str) -> JobResult | None:
        ...


class InMemoryJobStore:
    """Thread-safe in-process job and result store.

    Implements both :class:`JobStore` and :class:`ResultStore`.  Returned
    jobs are copies, so callers holding a ``Job`` keep their own view of its
    status (the cancel path relies on that view).
    """

    def __init__(self, clock: Callable[[], datetime] = utcnow) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._jobs: dict[str, Job] = {}
        self._results: dict[str, JobResult] = {}

    def create_job(
        self,
        *,
        creator: str | None,
        job_type: str = SIMPLE_JOB,
        context: ContextKey,
    ) -> Job:
        now = self._clock()
        job = Job(
            id=new_job_id(),
            creator=creator,
            status=JobStatus.RUNNING,
            type=job_type,
            context=context.serialized,
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            self._jobs[job.id] = job
        return replace(job)

    def get_job(self, job_id: str) -> Job | None:
        with self._lock:
            job = self._jobs.get(job_id)
            return replace(job) if job is not None else None

    def latest_by_context(
        self,
        context: ContextKey,
        *,
        exclude_status: JobStatus | None = None,
    ) -> Job | None:
        with self._lock:
            candidates = [
                job
                for job in self._jobs.values()
                if job.context == context.serialized and job.status is not exclude_status
            ]
            if not candidates:
                return None
            latest = max(candidates, key=lambda job: (job.updated_at, job.created_at))
            return replace(latest)

    def list_jobs(self, *, creator: str | None, status: JobStatus) -> list[Job]:
        with self._lock:
            jobs = [
                replace(job)
                for job in self._jobs.values()
                if job.creator == creator and job.status is status
            ]
        return sorted(jobs, key=lambda job: job.created_at)

    def finish_job(self, job_id: str, status: JobStatus, result: JobResult | None = None) -> bool:
        validate_job_transition(JobStatus.RUNNING, status)
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None or job.status is not JobStatus.RUNNING:
                return False
            now = self._clock()
            self._jobs[job_id] = replace(job, status=status, updated_at=now)
            if result is not None:
                self._results[job_id] = replace(result, created_at=now)
            return True

    def get_result(self, job_id: str) -> JobResult | None:
        with self._lock:
            result = self._results.get(job_id)
            return replace(result) if result is not None else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)
