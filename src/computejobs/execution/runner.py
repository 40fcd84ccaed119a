"""Job Runner — launch computations in the background and record outcomes.

Manifesto:
Submitting work must never block on the work itself and must never fail
because the work fails.  The runner turns ``(context, computation)`` into a
job id right away, and leaves the rest to a worker thread that records
either the return value or a structured error description.

ARCHITECTURE
────────────
::

    submit(context, computation)
      ├── CacheResolver.resolve(key) ── hit ──▶ return cached job id
      ├── store.create_job(...)            status = running
      ├── registry.put(id, JobHandle)      before launch
      └── pool.submit(_execute) → handle.attach(future) → return id

    _execute (worker thread)
      ├── computation()                    bound to the handle
      ├── handle canceled?  ── yes ──▶ discard outcome
      ├── store.finish_job(id, DONE|ERROR, JobResult)   one transaction
      └── registry.remove(id)              strictly after persisting

    cancel(job)
      ├── job.status != running  ──▶ no-op
      ├── registry.remove(id) is None ──▶ no-op (not ours / finished)
      ├── handle.cancel()
      └── store.finish_job(id, CANCELED)   only if still running

Persistence failures inside ``_execute`` are logged and re-raised: the
worker's future carries the error, the handle stays registered and the job
stays ``running``.  There is no retry.

Tags:
    computejobs, execution, runner, thread-pool, cancellation
"""

from collections.abc import Callable
from concurrent.futures import Executor
from typing import Any

from computejobs.core.errors import PersistenceError, describe_exception
from computejobs.core.identity import CallerIdentity
from computejobs.core.logging import get_logger, job_log_context

from .context_key import ContextKey
from .models import SIMPLE_JOB, Job, JobResult, JobStatus, Permanence
from .registry import JobHandle, JobRegistry, bind_handle
from .resolver import CacheResolver
from .store import JobStore

logger = get_logger(__name__)


class JobRunner:
    """Starts computations on a managed pool and tracks their handles."""

    def __init__(
        self,
        store: JobStore,
        registry: JobRegistry,
        resolver: CacheResolver,
        executor: Executor,
        identity: CallerIdentity,
    ) -> None:
        self._store = store
        self._registry = registry
        self._resolver = resolver
        self._executor = executor
        self._identity = identity

    def submit(
        self,
        context: Any,
        computation: Callable[[], Any],
        *,
        job_type: str = SIMPLE_JOB,
    ) -> str:
        """Run *computation* asynchronously; return the id of its job.

        Returns the id of an existing job instead when caching is enabled
        and a fresh job with the same context exists.

        Raises:
            ContextKeyError: If *context* cannot be canonicalized.
            PersistenceError: If the job row cannot be created.
            RuntimeError: If the worker pool has been shut down.
        """
        key = ContextKey.of(context)

        cached = self._resolver.resolve(key)
        if cached is not None:
            logger.info("jobs.cache_hit", job_id=cached.id, status=cached.status.value)
            return cached.id

        job = self._store.create_job(
            creator=self._identity.current(),
            job_type=job_type,
            context=key,
        )
        handle = JobHandle(job.id)
        self._registry.put(job.id, handle)

        try:
            future = self._executor.submit(self._execute, job, handle, computation)
        except RuntimeError as e:
            self._registry.remove(job.id)
            handle.abandon()
            self._store.finish_job(
                job.id,
                JobStatus.ERROR,
                JobResult(job.id, payload=describe_exception(e), permanence=Permanence.TEMPORARY),
            )
            logger.error("jobs.launch_failed", job_id=job.id, error=str(e))
            raise
        handle.attach(future)

        logger.info("jobs.submitted", job_id=job.id, job_type=job_type, creator=job.creator)
        return job.id

    def _execute(self, job: Job, handle: JobHandle, computation: Callable[[], Any]) -> None:
        with job_log_context(job.id):
            with bind_handle(handle):
                try:
                    value = computation()
                except BaseException as e:  # SystemExit and KeyboardInterrupt included
                    status = JobStatus.ERROR
                    payload: Any = describe_exception(e)
                    logger.warning("jobs.failed", error_type=type(e).__name__, error=str(e))
                else:
                    status = JobStatus.DONE
                    payload = value

            if handle.cancel_requested:
                logger.info("jobs.discarded", status=status.value)
                return

            try:
                saved = self._store.finish_job(
                    job.id,
                    status,
                    JobResult(job.id, payload=payload, permanence=Permanence.TEMPORARY),
                )
            except PersistenceError as e:
                logger.exception("jobs.persist_failed", status=status.value, **e.to_dict())
                raise

            self._registry.remove(job.id)
            if saved:
                logger.info("jobs.completed", status=status.value)
            else:
                logger.info("jobs.discarded", status=status.value, reason="no_longer_running")

    def cancel(self, job: Job) -> bool:
        """Cancel *job* if this process is still running it.

        The status check uses the caller's copy of the job.  Jobs without a
        live handle (finished, served from cache, launched by another
        process) are left untouched.

        Returns:
            True if the job was moved to ``canceled``.
        """
        if job.status is not JobStatus.RUNNING:
            return False

        handle = self._registry.remove(job.id)
        if handle is None:
            logger.debug("jobs.cancel_no_handle", job_id=job.id)
            return False

        handle.cancel()
        canceled = self._store.finish_job(job.id, JobStatus.CANCELED)
        logger.info("jobs.canceled", job_id=job.id, applied=canceled)
        return canceled
