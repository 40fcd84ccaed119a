"""SQL job store — SQLAlchemy-backed JobStore + ResultStore.

Persists jobs to ``computation_job`` and results to
``computation_job_result`` (see :mod:`computejobs.core.orm.tables`).

``finish_job`` runs one transaction::

    UPDATE computation_job SET status=?, updated_at=?
     WHERE id=? AND status='running'
    -- only if exactly one row changed:
    INSERT INTO computation_job_result (job_id, permanence, payload, created_at)

so the terminal status and the result appear together or not at all.

Example::

    store = SqlJobStore.from_url("sqlite:///data/computejobs.db")
    job = store.create_job(creator="user-1", job_type="simple-job", context=key)
    store.finish_job(job.id, JobStatus.DONE, JobResult(job.id, payload=42))

Tags:
    computejobs, persistence, sqlalchemy, repository
"""

from collections.abc import Callable
from datetime import UTC, datetime

from sqlalchemy import select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from computejobs.core.errors import PersistenceError
from computejobs.core.orm.session import create_jobs_engine, init_schema, job_session_factory
from computejobs.core.orm.tables import ComputationJobResultTable, ComputationJobTable

from .context_key import ContextKey
from .models import (
    SIMPLE_JOB,
    Job,
    JobResult,
    JobStatus,
    Permanence,
    new_job_id,
    utcnow,
    validate_job_transition,
)


def _aware(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back.
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def _row_to_job(row: ComputationJobTable) -> Job:
    return Job(
        id=row.id,
        creator=row.creator_id,
        status=JobStatus(row.status),
        type=row.type,
        context=row.context,
        created_at=_aware(row.created_at),
        updated_at=_aware(row.updated_at),
    )


class SqlJobStore:
    """Job and result persistence on a SQLAlchemy engine.

    Every method opens its own short transaction; the store holds no
    session between calls and is safe to share across worker threads.
    Database errors surface as :class:`PersistenceError`.
    """

    def __init__(self, engine: Engine, clock: Callable[[], datetime] = utcnow) -> None:
        self._engine = engine
        self._sessions = job_session_factory(engine)
        self._clock = clock

    @classmethod
    def from_url(
        cls,
        url: str,
        *,
        echo: bool = False,
        create_schema: bool = True,
        clock: Callable[[], datetime] = utcnow,
    ) -> "SqlJobStore":
        """Create an engine for *url* (and the tables, unless disabled)."""
        engine = create_jobs_engine(url, echo=echo)
        if create_schema:
            init_schema(engine)
        return cls(engine, clock=clock)

    @property
    def engine(self) -> Engine:
        return self._engine

    # =========================================================================
    # JobStore
    # =========================================================================

    def create_job(
        self,
        *,
        creator: str | None,
        job_type: str = SIMPLE_JOB,
        context: ContextKey,
    ) -> Job:
        now = self._clock()
        row = ComputationJobTable(
            id=new_job_id(),
            creator_id=creator,
            status=JobStatus.RUNNING.value,
            type=job_type,
            context=context.serialized,
            context_hash=context.digest,
            created_at=now,
            updated_at=now,
        )
        try:
            with self._sessions.begin() as session:
                session.add(row)
        except SQLAlchemyError as e:
            raise PersistenceError("Failed to create job", cause=e) from e
        return _row_to_job(row)

    def get_job(self, job_id: str) -> Job | None:
        try:
            with self._sessions() as session:
                row = session.get(ComputationJobTable, job_id)
                return _row_to_job(row) if row is not None else None
        except SQLAlchemyError as e:
            raise PersistenceError("Failed to load job", context={"job_id": job_id}, cause=e) from e

    def latest_by_context(
        self,
        context: ContextKey,
        *,
        exclude_status: JobStatus | None = None,
    ) -> Job | None:
        stmt = (
            select(ComputationJobTable)
            .where(
                ComputationJobTable.context_hash == context.digest,
                ComputationJobTable.context == context.serialized,
            )
            .order_by(ComputationJobTable.updated_at.desc(), ComputationJobTable.created_at.desc())
            .limit(1)
        )
        if exclude_status is not None:
            stmt = stmt.where(ComputationJobTable.status != exclude_status.value)
        try:
            with self._sessions() as session:
                row = session.scalars(stmt).first()
                return _row_to_job(row) if row is not None else None
        except SQLAlchemyError as e:
            raise PersistenceError("Failed to look up cached job", cause=e) from e

    def list_jobs(self, *, creator: str | None, status: JobStatus) -> list[Job]:
        creator_clause = (
            ComputationJobTable.creator_id.is_(None)
            if creator is None
            else ComputationJobTable.creator_id == creator
        )
        stmt = (
            select(ComputationJobTable)
            .where(creator_clause, ComputationJobTable.status == status.value)
            .order_by(ComputationJobTable.created_at)
        )
        try:
            with self._sessions() as session:
                return [_row_to_job(row) for row in session.scalars(stmt)]
        except SQLAlchemyError as e:
            raise PersistenceError("Failed to list jobs", cause=e) from e

    def finish_job(self, job_id: str, status: JobStatus, result: JobResult | None = None) -> bool:
        validate_job_transition(JobStatus.RUNNING, status)
        now = self._clock()
        stmt = (
            update(ComputationJobTable)
            .where(
                ComputationJobTable.id == job_id,
                ComputationJobTable.status == JobStatus.RUNNING.value,
            )
            .values(status=status.value, updated_at=now)
        )
        try:
            with self._sessions.begin() as session:
                if session.execute(stmt).rowcount != 1:
                    return False
                if result is not None:
                    session.add(
                        ComputationJobResultTable(
                            job_id=job_id,
                            permanence=result.permanence.value,
                            payload=result.payload,
                            created_at=now,
                        )
                    )
                    session.flush()
        except (SQLAlchemyError, TypeError, ValueError) as e:
            # TypeError/ValueError: payload the JSON column cannot encode.
            raise PersistenceError(
                "Failed to save job outcome",
                context={"job_id": job_id, "status": status.value},
                cause=e,
            ) from e
        return True

    # =========================================================================
    # ResultStore
    # =========================================================================

    def get_result(self, job_id: str) -> JobResult | None:
        stmt = select(ComputationJobResultTable).where(ComputationJobResultTable.job_id == job_id)
        try:
            with self._sessions() as session:
                row = session.scalars(stmt).first()
        except SQLAlchemyError as e:
            raise PersistenceError("Failed to load result", context={"job_id": job_id}, cause=e) from e
        if row is None:
            return None
        return JobResult(
            job_id=row.job_id,
            payload=row.payload,
            permanence=Permanence(row.permanence),
            created_at=_aware(row.created_at),
        )
