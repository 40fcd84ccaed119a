"""
Structured error types for computejobs.

Every error raised by the library carries a category, a context mapping and
an optional chained cause, so that failures can be logged and stored as
structured data instead of bare strings.

Architecture:
    ::

        ComputeJobsError (category, context, cause)
        ├── ContextKeyError        (VALIDATION)
        ├── InvalidTransitionError (INTERNAL)
        ├── DuplicateHandleError   (INTERNAL)
        ├── JobNotFoundError       (NOT_FOUND)
        ├── JobCancelledError      (EXECUTION)
        └── PersistenceError       (STORAGE)

    describe_exception(exc) → dict
        The structured error description persisted as the payload of a job
        whose computation raised.

Examples:
    >>> err = PersistenceError("insert failed").with_context(job_id="abc")
    >>> err.to_dict()["category"]
    'STORAGE'

    >>> try:
    ...     1 / 0
    ... except ZeroDivisionError as exc:
    ...     describe_exception(exc)["type"]
    'ZeroDivisionError'

Tags:
    error-handling, exception-hierarchy, computejobs
"""

from __future__ import annotations

import traceback
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and logging."""

    VALIDATION = "VALIDATION"  # Bad input (e.g. unserializable context)
    STORAGE = "STORAGE"  # Job/result persistence failures
    EXECUTION = "EXECUTION"  # Computation lifecycle (cancellation)
    CONFIG = "CONFIG"  # Invalid settings
    NOT_FOUND = "NOT_FOUND"  # Unknown job id
    INTERNAL = "INTERNAL"  # Broken invariants


class ComputeJobsError(Exception):
    """Base exception for all computejobs errors.

    Subclasses set ``default_category``. Instances carry:

    - **category:** ErrorCategory for classification
    - **context:** free-form metadata (job_id, status, ...)
    - **cause:** the underlying exception, also set as ``__cause__``
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context: dict[str, Any] = dict(context or {})
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> "ComputeJobsError":
        """Add context fields and return self for chaining."""
        self.context.update(kwargs)
        return self

    def to_dict(self) -> dict[str, Any]:
        """Serialize for logging."""
        result: dict[str, Any] = {
            "error_type": type(self).__name__,
            "message": self.message,
            "category": self.category.value,
        }
        if self.context:
            result["context"] = dict(self.context)
        if self.cause is not None:
            result["cause"] = f"{type(self.cause).__name__}: {self.cause}"
        return result

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, category={self.category.value})"


class ContextKeyError(ComputeJobsError, TypeError):
    """The context of a computation cannot be canonically serialized."""

    default_category = ErrorCategory.VALIDATION


class InvalidTransitionError(ComputeJobsError, ValueError):
    """An illegal job status transition was attempted (e.g. done → running)."""

    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__(
            f"Invalid JobStatus transition: {current} → {target}",
            context={"current": current, "target": target},
        )


class DuplicateHandleError(ComputeJobsError):
    """A live handle is already registered for the job."""


class JobNotFoundError(ComputeJobsError, LookupError):
    """No job exists with the requested id."""

    default_category = ErrorCategory.NOT_FOUND

    def __init__(self, job_id: str) -> None:
        self.job_id = job_id
        super().__init__(f"Job {job_id} not found", context={"job_id": job_id})


class JobCancelledError(ComputeJobsError):
    """Raised from inside a computation that noticed its cancellation."""

    default_category = ErrorCategory.EXECUTION


class PersistenceError(ComputeJobsError):
    """Saving or loading a job or its result failed."""

    default_category = ErrorCategory.STORAGE


def _trace_lines(exc: BaseException) -> list[str]:
    return [
        f"{frame.filename}:{frame.lineno} in {frame.name}"
        for frame in traceback.extract_tb(exc.__traceback__)
    ]


def describe_exception(exc: BaseException) -> dict[str, Any]:
    """Build the structured description of an exception.

    Returns a JSON-serializable mapping::

        {
            "type": "ValueError",
            "message": "bad input",
            "trace": ["path.py:12 in compute", ...],
            "via": [{"type": ..., "message": ...}, ...],   # exc and its causes
        }

    Library errors additionally carry ``category`` and ``context``.
    """
    description: dict[str, Any] = {
        "type": type(exc).__name__,
        "message": str(exc),
        "trace": _trace_lines(exc),
    }
    if isinstance(exc, ComputeJobsError):
        description["category"] = exc.category.value
        if exc.context:
            description["context"] = {k: str(v) for k, v in exc.context.items()}

    via: list[dict[str, str]] = []
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        via.append({"type": type(current).__name__, "message": str(current)})
        current = current.__cause__ or current.__context__
    description["via"] = via
    return description


__all__ = [
    "ErrorCategory",
    "ComputeJobsError",
    "ContextKeyError",
    "InvalidTransitionError",
    "DuplicateHandleError",
    "JobNotFoundError",
    "JobCancelledError",
    "PersistenceError",
    "describe_exception",
]
