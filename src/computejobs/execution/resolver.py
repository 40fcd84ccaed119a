"""Cache resolver — find a reusable job for a context.

Looks up the most recently updated job with the same context whose status
is not ``error`` and returns it when it passes the freshness policy.  A
``running`` job counts: identical work is already in flight, so the caller
gets that job's id instead of starting a duplicate.

Read-only; consulted by :class:`~computejobs.execution.runner.JobRunner`
before every launch.
"""

from collections.abc import Callable
from datetime import datetime

from computejobs.core.config import SettingsProvider
from computejobs.core.logging import get_logger

from .context_key import ContextKey
from .freshness import is_fresh
from .models import Job, JobStatus, utcnow
from .store import JobStore

logger = get_logger(__name__)


class CacheResolver:
    """Resolve a context to a fresh, previously submitted job.

    Settings are read on every call, so toggling caching at runtime takes
    effect immediately.
    """

    def __init__(
        self,
        store: JobStore,
        settings: SettingsProvider,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._settings = settings
        self._clock = clock

    def resolve(self, context: ContextKey) -> Job | None:
        """Return the cached job for *context*, or None on a miss."""
        if not self._settings.caching_enabled:
            return None

        job = self._store.latest_by_context(context, exclude_status=JobStatus.ERROR)
        if job is None:
            return None

        if not is_fresh(job, self._settings.ttl_ratio, self._clock()):
            logger.debug("jobs.cache_stale", job_id=job.id, status=job.status.value)
            return None
        return job
