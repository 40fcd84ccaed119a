"""SQLAlchemy 2.0 ORM layer backing :class:`~computejobs.execution.sql_store.SqlJobStore`.

Modules
-------
base        ComputeBase (declarative base)
session     create_jobs_engine, job_session_factory, init_schema
tables      ComputationJobTable, ComputationJobResultTable
"""

from __future__ import annotations

from computejobs.core.orm.base import ComputeBase
from computejobs.core.orm.session import create_jobs_engine, init_schema, job_session_factory
from computejobs.core.orm.tables import ComputationJobResultTable, ComputationJobTable

__all__ = [
    "ComputeBase",
    "create_jobs_engine",
    "init_schema",
    "job_session_factory",
    "ComputationJobTable",
    "ComputationJobResultTable",
]
