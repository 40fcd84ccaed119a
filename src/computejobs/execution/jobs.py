"""ComputationJobs — the public surface of the job system.

Manifesto:
Request handlers should not have to know about pools, handles or cache
policy.  ``ComputationJobs`` wires the store, registry, resolver and
runner together once, at startup, and exposes the handful of operations a
handler needs: submit, cancel, inspect, fetch the result, list what is
still running.

ARCHITECTURE
────────────
::

    ComputationJobs(store, settings, ...)
      ├── .submit(context, computation)  ─ JobRunner.submit
      ├── .submit_call(fn, *args, **kw)  ─ context = fn name + bound args
      ├── .cancel(job)                   ─ JobRunner.cancel
      ├── .get_job(id) / .require_job(id)
      ├── .result(job)                   ─ status (+ payload when done)
      ├── .list_running(creator=None)    ─ defaults to current caller
      ├── .wait(id, timeout)             ─ block on the live handle
      └── .close()                       ─ shut the worker pool down

    is_done(job)    → status in {done, error}
    is_running(job) → status == running

Example::

    with ComputationJobs(InMemoryJobStore(), settings=settings) as jobs:
        job_id = jobs.submit({"report": "daily", "day": "2026-01-15"}, build_report)
        job = jobs.wait(job_id)
        jobs.result(job)   # {"status": "done", "result": ..., "created_at": ...}

Tags:
    computejobs, facade, api, caching
"""

from collections.abc import Callable
from concurrent.futures import Executor, ThreadPoolExecutor
from datetime import datetime
from typing import Any

from computejobs.core.config import ComputeJobsSettings, SettingsProvider, get_settings
from computejobs.core.errors import JobNotFoundError
from computejobs.core.identity import CallerIdentity, ContextCallerIdentity
from computejobs.core.logging import get_logger

from .context_key import call_context
from .models import RESULT_NOT_AVAILABLE, SIMPLE_JOB, Job, JobStatus, utcnow
from .registry import JobRegistry
from .resolver import CacheResolver
from .runner import JobRunner
from .store import JobStore, ResultStore

logger = get_logger(__name__)


def is_done(job: Job) -> bool:
    """Is the computation job done (successfully or not)?"""
    return job.status in (JobStatus.DONE, JobStatus.ERROR)


def is_running(job: Job) -> bool:
    """Is the computation job still running?"""
    return job.status is JobStatus.RUNNING


class ComputationJobs:
    """Submit, track, cancel and read back asynchronous computations.

    Parameters
    ----------
    store:
        Persists jobs (and, unless *results* is given, their results).
    results:
        Result store; defaults to *store* (both shipped stores play both roles).
    settings:
        Caching switch and TTL ratio; defaults to :func:`get_settings`.
    registry:
        Live handle table; a fresh one per instance by default.
    identity:
        Caller identity provider; defaults to :func:`caller_scope` binding.
    executor:
        Pool that runs computations.  Created (and owned) when omitted.
    max_workers:
        Size of the owned pool; defaults to ``settings.max_workers`` or 16.
    clock:
        Time source for freshness checks.
    """

    def __init__(
        self,
        store: JobStore,
        *,
        results: ResultStore | None = None,
        settings: SettingsProvider | None = None,
        registry: JobRegistry | None = None,
        identity: CallerIdentity | None = None,
        executor: Executor | None = None,
        max_workers: int | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.settings = settings if settings is not None else get_settings()
        self.store = store
        self.results: ResultStore = results if results is not None else store  # type: ignore[assignment]
        self.registry = registry if registry is not None else JobRegistry()
        self.identity = identity if identity is not None else ContextCallerIdentity()

        self._owns_executor = executor is None
        if executor is None:
            workers = max_workers or getattr(self.settings, "max_workers", None) or 16
            executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="computejobs")
        self._executor = executor

        self.resolver = CacheResolver(store, self.settings, clock=clock)
        self.runner = JobRunner(store, self.registry, self.resolver, executor, self.identity)

    @classmethod
    def from_settings(cls, settings: ComputeJobsSettings | None = None, **kwargs: Any) -> "ComputationJobs":
        """Build a SQL-backed instance from settings (database URL, pool size)."""
        from .sql_store import SqlJobStore

        settings = settings or get_settings()
        store = SqlJobStore.from_url(settings.database_url, echo=settings.database_echo)
        return cls(store, settings=settings, max_workers=settings.max_workers, **kwargs)

    # ── Submission ───────────────────────────────────────────────────

    def submit(
        self,
        context: Any,
        computation: Callable[[], Any],
        *,
        job_type: str = SIMPLE_JOB,
    ) -> str:
        """Compute *computation* asynchronously; return the id of its job.

        When caching is enabled and a job with an identical context ran
        recently enough (or is still running), that job's id is returned
        and nothing new is launched.  *context* must therefore contain
        everything that distinguishes one call from another.
        """
        return self.runner.submit(context, computation, job_type=job_type)

    def submit_call(self, fn: Callable[..., Any], /, *args: Any, **kwargs: Any) -> str:
        """Submit ``fn(*args, **kwargs)``; its name and arguments form the context."""
        context = call_context(fn, args, kwargs)
        return self.runner.submit(context, lambda: fn(*args, **kwargs))

    # ── Inspection ───────────────────────────────────────────────────

    def get_job(self, job_id: str) -> Job | None:
        return self.store.get_job(job_id)

    def require_job(self, job_id: str) -> Job:
        job = self.store.get_job(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    is_done = staticmethod(is_done)
    is_running = staticmethod(is_running)

    def result(self, job: Job) -> dict[str, Any]:
        """Get result of an asynchronous computation job.

        Returns:
            ``{"status": ...}`` while the job has no outcome;
            ``{"status", "result", "created_at"}`` once it is done or failed;
            ``{"status": "result-not-available"}`` if a finished job has no
            stored result.
        """
        if not is_done(job):
            return {"status": job.status.value}

        result = self.results.get_result(job.id)
        if result is None:
            logger.warning("jobs.result_missing", job_id=job.id, status=job.status.value)
            return {"status": RESULT_NOT_AVAILABLE}
        return {
            "status": job.status.value,
            "result": result.payload,
            "created_at": result.created_at,
        }

    def list_running(self, creator: str | None = None) -> list[Job]:
        """Get all running jobs for *creator* (default: the current caller)."""
        if creator is None:
            creator = self.identity.current()
        return self.store.list_jobs(creator=creator, status=JobStatus.RUNNING)

    def wait(self, job_id: str, timeout: float | None = None) -> Job | None:
        """Block until the job's live handle finishes, then re-read the job.

        Returns immediately for jobs without a live handle.
        """
        handle = self.registry.get(job_id)
        if handle is not None:
            handle.wait(timeout)
        return self.store.get_job(job_id)

    # ── Control ──────────────────────────────────────────────────────

    def cancel(self, job: Job) -> bool:
        """Cancel computation job (if still running in this process)."""
        return self.runner.cancel(job)

    def close(self, wait: bool = True) -> None:
        """Shut down the owned worker pool."""
        if self._owns_executor:
            self._executor.shutdown(wait=wait)

    def __enter__(self) -> "ComputationJobs":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close(wait=True)
