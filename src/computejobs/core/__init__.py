"""computejobs core — logging, errors, configuration, identity and ORM.

Modules
-------
logging     structlog configuration and context binding
errors      ComputeJobsError hierarchy + describe_exception
config      ComputeJobsSettings (pydantic-settings) and SettingsProvider
identity    CallerIdentity protocol and caller_scope
orm         SQLAlchemy tables for jobs and results
"""

from computejobs.core.errors import (
    ComputeJobsError,
    ContextKeyError,
    DuplicateHandleError,
    ErrorCategory,
    InvalidTransitionError,
    JobCancelledError,
    JobNotFoundError,
    PersistenceError,
    describe_exception,
)
from computejobs.core.identity import (
    CallerIdentity,
    ContextCallerIdentity,
    FixedCallerIdentity,
    caller_scope,
    current_caller,
)
from computejobs.core.logging import configure_from_settings, configure_logging, get_logger, job_log_context

__all__ = [
    "ComputeJobsError",
    "ContextKeyError",
    "DuplicateHandleError",
    "ErrorCategory",
    "InvalidTransitionError",
    "JobCancelledError",
    "JobNotFoundError",
    "PersistenceError",
    "describe_exception",
    "CallerIdentity",
    "ContextCallerIdentity",
    "FixedCallerIdentity",
    "caller_scope",
    "current_caller",
    "job_log_context",
    "configure_logging",
    "configure_from_settings",
    "get_logger",
]
