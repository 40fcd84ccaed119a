"""SQLAlchemy 2.0 ORM table models for computation jobs.

Two tables::

    computation_job            computation_job_result
    ───────────────            ──────────────────────
    id          PK             id          PK
    creator_id                 job_id      FK, unique
    status                     permanence
    type                       payload     JSON
    context                    created_at
    context_hash (indexed)
    created_at
    updated_at

``context`` holds the canonical JSON of the computation's inputs; the hash
column exists only so the cache lookup hits an index instead of comparing
long text values.
"""

from __future__ import annotations

import datetime
from typing import Any

from sqlalchemy import JSON, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import ComputeBase


class ComputationJobTable(ComputeBase):
    __tablename__ = "computation_job"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    creator_id: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="running")
    type: Mapped[str] = mapped_column(Text, nullable=False, default="simple-job")
    context: Mapped[str] = mapped_column(Text, nullable=False)
    context_hash: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime.datetime] = mapped_column(nullable=False)
    updated_at: Mapped[datetime.datetime] = mapped_column(nullable=False)

    __table_args__ = (
        Index("idx_computation_job_context", "context_hash", "updated_at"),
        Index("idx_computation_job_creator_status", "creator_id", "status"),
    )


class ComputationJobResultTable(ComputeBase):
    __tablename__ = "computation_job_result"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    job_id: Mapped[str] = mapped_column(
        Text, ForeignKey("computation_job.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    permanence: Mapped[str] = mapped_column(Text, nullable=False, default="temporary")
    payload: Mapped[Any] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime.datetime] = mapped_column(nullable=False)


__all__ = ["ComputationJobTable", "ComputationJobResultTable"]
