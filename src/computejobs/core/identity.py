"""Caller identity — who is submitting work.

The identity is bound per request/thread with :func:`caller_scope` and read
back when a job row is created or when running jobs are listed for "the
current caller".  Authentication itself happens elsewhere; this module only
carries the already-authenticated id.

Example::

    with caller_scope("user-42"):
        job_id = jobs.submit({"q": 1}, compute)

Tags:
    computejobs, identity, contextvars
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Protocol, runtime_checkable

_current_caller: ContextVar[str | None] = ContextVar("computejobs_caller", default=None)


@runtime_checkable
class CallerIdentity(Protocol):
    """Supplies the identity stamped on new jobs."""

    def current(self) -> str | None:
        ...


def current_caller() -> str | None:
    """Return the caller bound to the current context, if any."""
    return _current_caller.get()


@contextmanager
def caller_scope(caller_id: str | None) -> Iterator[str | None]:
    """Bind *caller_id* as the current caller for the enclosed block."""
    token = _current_caller.set(caller_id)
    try:
        yield caller_id
    finally:
        _current_caller.reset(token)


class ContextCallerIdentity:
    """Default identity provider backed by :func:`caller_scope`."""

    def current(self) -> str | None:
        return current_caller()


class FixedCallerIdentity:
    """Identity provider that always answers with the same id."""

    def __init__(self, caller_id: str | None) -> None:
        self.caller_id = caller_id

    def current(self) -> str | None:
        return self.caller_id
