"""Freshness policy — is a past job's result still worth reusing?

A job's result stays fresh for ``ttl_ratio`` times as long as it took to
compute::

    duration = updated_at - created_at        (whole seconds)
    ttl      = duration * ttl_ratio
    age      = now - updated_at               (whole seconds)
    fresh   ⇔ age <= ttl

Slow computations are therefore cached longer than cheap ones.  A job that
finished within the same second it started has ``ttl == 0`` and is only
fresh while its age still rounds to zero.  ``ttl_ratio == 0`` disables
reuse the same way.

Example::

    >>> t0 = datetime(2026, 1, 1, tzinfo=UTC)
    >>> job = Job(..., created_at=t0, updated_at=t0 + timedelta(seconds=10))
    >>> is_fresh(job, ttl_ratio=2.0, now=t0 + timedelta(seconds=29))
    True
    >>> is_fresh(job, ttl_ratio=2.0, now=t0 + timedelta(seconds=31))
    False
"""

import math
from datetime import datetime

from .models import Job


def time_delta_seconds(start: datetime, end: datetime) -> int:
    """Whole seconds from *start* to *end*, rounded half up."""
    return math.floor((end - start).total_seconds() + 0.5)


def is_fresh(job: Job, ttl_ratio: float, now: datetime) -> bool:
    """Return True if *job* is still within its time-to-live at *now*.

    Raises:
        ValueError: If ``ttl_ratio`` is negative.
    """
    if ttl_ratio < 0:
        raise ValueError(f"ttl_ratio must be non-negative, got {ttl_ratio}")
    duration = time_delta_seconds(job.created_at, job.updated_at)
    ttl = duration * ttl_ratio
    age = time_delta_seconds(job.updated_at, now)
    return age <= ttl
