"""computejobs execution — asynchronous computations with result caching.

WHY
───
Expensive computations (reports, feature extraction, model scoring) are
too slow to run inside a request, and are often requested again with the
same inputs.  This package runs them on background threads, tracks each
attempt as a job, and, when caching is enabled, hands back a recent job
with the same inputs instead of computing again.

ARCHITECTURE
────────────
::

    ComputationJobs (jobs.py)                 public surface
      ├── JobRunner (runner.py)               launch / record / cancel
      │     ├── CacheResolver (resolver.py)   reuse a fresh job?
      │     │     └── is_fresh (freshness.py) ttl = duration × ratio
      │     ├── JobRegistry (registry.py)     job_id → JobHandle
      │     └── ThreadPoolExecutor            background units
      └── JobStore / ResultStore (store.py)
            ├── InMemoryJobStore
            └── SqlJobStore (sql_store.py)

    ContextKey (context_key.py)  canonical JSON of the inputs
    create_jobs_router (fastapi.py)  /jobs REST API

MODULE MAP (recommended reading order)
──────────────────────────────────────
  1. models.py       ─ Job, JobResult, JobStatus transitions
  2. context_key.py  ─ canonicalization
  3. freshness.py    ─ TTL policy
  4. store.py        ─ persistence protocols + in-memory store
  5. sql_store.py    ─ SQLAlchemy store
  6. resolver.py     ─ cache lookup
  7. registry.py     ─ live handles, cooperative cancellation
  8. runner.py       ─ background execution
  9. jobs.py         ─ facade
 10. fastapi.py      ─ HTTP surface
"""

from .context_key import ContextKey, call_context, canonicalize
from .freshness import is_fresh, time_delta_seconds
from .jobs import ComputationJobs, is_done, is_running
from .models import (
    JOB_VALID_TRANSITIONS,
    RESULT_NOT_AVAILABLE,
    SIMPLE_JOB,
    Job,
    JobResult,
    JobStatus,
    Permanence,
    validate_job_transition,
)
from .registry import (
    JobHandle,
    JobRegistry,
    cancellation_requested,
    raise_if_cancelled,
)
from .resolver import CacheResolver
from .runner import JobRunner
from .sql_store import SqlJobStore
from .store import InMemoryJobStore, JobStore, ResultStore

__all__ = [
    "ContextKey",
    "call_context",
    "canonicalize",
    "is_fresh",
    "time_delta_seconds",
    "ComputationJobs",
    "is_done",
    "is_running",
    "JOB_VALID_TRANSITIONS",
    "RESULT_NOT_AVAILABLE",
    "SIMPLE_JOB",
    "Job",
    "JobResult",
    "JobStatus",
    "Permanence",
    "validate_job_transition",
    "JobHandle",
    "JobRegistry",
    "cancellation_requested",
    "raise_if_cancelled",
    "CacheResolver",
    "JobRunner",
    "SqlJobStore",
    "InMemoryJobStore",
    "JobStore",
    "ResultStore",
]
