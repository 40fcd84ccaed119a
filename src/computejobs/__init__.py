"""
computejobs - asynchronous computation jobs with result caching.

- computejobs.core: logging, errors, settings, caller identity, ORM
- computejobs.execution: jobs, cache policy, runner, stores, HTTP router
"""

__version__ = "0.1.0"

from computejobs.execution import (  # noqa: F401
    ComputationJobs,
    ContextKey,
    InMemoryJobStore,
    Job,
    JobResult,
    JobStatus,
    SqlJobStore,
    cancellation_requested,
    is_done,
    is_running,
    raise_if_cancelled,
)
