"""Computation job domain models.

Defines the core data structures of the job system:

- Job: one computation attempt and its lifecycle status
- JobResult: the outcome (return value or error description) of a job
- JobStatus / Permanence: the enums stored alongside them

These models are produced by the job stores and consumed by the runner,
the facade and the API layer.
"""

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from computejobs.core.errors import InvalidTransitionError


def utcnow() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(UTC)


SIMPLE_JOB = "simple-job"
RESULT_NOT_AVAILABLE = "result-not-available"


class JobStatus(str, Enum):
    """Status of a computation job.

    Valid transition graph::

        RUNNING  → DONE | ERROR | CANCELED
        DONE     → (terminal)
        ERROR    → (terminal)
        CANCELED → (terminal)

    A job is created ``running`` and never re-enters it.
    """

    RUNNING = "running"
    DONE = "done"
    ERROR = "error"
    CANCELED = "canceled"

    @property
    def is_terminal(self) -> bool:
        return self is not JobStatus.RUNNING


JOB_VALID_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.RUNNING: frozenset({
        JobStatus.DONE,
        JobStatus.ERROR,
        JobStatus.CANCELED,
    }),
    JobStatus.DONE: frozenset(),  # terminal
    JobStatus.ERROR: frozenset(),  # terminal
    JobStatus.CANCELED: frozenset(),  # terminal
}


def validate_job_transition(current: JobStatus, target: JobStatus) -> None:
    """Raise :class:`InvalidTransitionError` if *current → target* is illegal.

    Example:
        >>> validate_job_transition(JobStatus.RUNNING, JobStatus.DONE)
        >>> validate_job_transition(JobStatus.DONE, JobStatus.CANCELED)
        InvalidTransitionError: Invalid JobStatus transition: done → canceled
    """
    if target not in JOB_VALID_TRANSITIONS.get(current, frozenset()):
        raise InvalidTransitionError(current.value, target.value)


class Permanence(str, Enum):
    """Retention class of a stored result."""

    TEMPORARY = "temporary"
    PERMANENT = "permanent"


def new_job_id() -> str:
    return uuid.uuid4().hex


@dataclass
class Job:
    """One computation attempt.

    ``context`` is the canonical serialization of the computation's inputs
    (see :mod:`computejobs.execution.context_key`).  ``updated_at`` equals
    ``created_at`` while the job runs and moves once, at the terminal
    transition.
    """

    id: str
    creator: str | None
    status: JobStatus
    type: str
    context: str
    created_at: datetime
    updated_at: datetime

    @property
    def is_done(self) -> bool:
        return self.status in (JobStatus.DONE, JobStatus.ERROR)

    @property
    def is_running(self) -> bool:
        return self.status is JobStatus.RUNNING

    @property
    def duration_seconds(self) -> float:
        return (self.updated_at - self.created_at).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "creator": self.creator,
            "status": self.status.value,
            "type": self.type,
            "context": self.context,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass
class JobResult:
    """Outcome of a finished job: a return value or an error description."""

    job_id: str
    payload: Any
    permanence: Permanence = Permanence.TEMPORARY
    created_at: datetime = field(default_factory=utcnow)
