"""FastAPI Router — ``/jobs`` REST API over :class:`ComputationJobs`.

WHY
───
Computations are Python closures, so they are submitted in-process by the
feature that owns them.  What HTTP clients need is to poll a job they were
handed the id of, fetch its result, see what they still have running, and
cancel.  That is all this router exposes.

ARCHITECTURE
────────────
::

    create_jobs_router(jobs) → APIRouter
      GET    /jobs/running            ─ running jobs of ?creator= or X-Caller-Id
      GET    /jobs/{job_id}           ─ job details
      GET    /jobs/{job_id}/result    ─ status (+ result when done)
      POST   /jobs/{job_id}/cancel    ─ cancel a running job

Example::

    app = FastAPI()
    app.include_router(create_jobs_router(jobs))
"""

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Header, HTTPException, Query
from pydantic import BaseModel

from .jobs import ComputationJobs
from .models import Job


class JobResponse(BaseModel):
    """Response for a single job."""

    id: str
    creator: str | None = None
    status: str
    type: str
    context: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_job(cls, job: Job) -> "JobResponse":
        return cls(
            id=job.id,
            creator=job.creator,
            status=job.status.value,
            type=job.type,
            context=job.context,
            created_at=job.created_at,
            updated_at=job.updated_at,
        )


class JobResultResponse(BaseModel):
    """Response for ``GET /{job_id}/result``."""

    status: str
    result: Any = None
    created_at: datetime | None = None


def create_jobs_router(
    jobs: ComputationJobs,
    prefix: str = "/api/v1/jobs",
    tags: list[str] | None = None,
) -> APIRouter:
    """Create the jobs router.

    Args:
        jobs: Configured ComputationJobs instance
        prefix: URL prefix (default: /api/v1/jobs)
        tags: OpenAPI tags (default: ["jobs"])
    """
    router = APIRouter(prefix=prefix, tags=tags or ["jobs"])

    def _get_or_404(job_id: str) -> Job:
        job = jobs.get_job(job_id)
        if job is None:
            raise HTTPException(404, f"Job {job_id} not found")
        return job

    # Declared before /{job_id} so "running" is not captured as an id.
    @router.get("/running", response_model=list[JobResponse])
    def list_running(
        creator: str | None = Query(None),
        x_caller_id: str | None = Header(None),
    ):
        """Running jobs of ``creator`` (falls back to the X-Caller-Id header)."""
        return [JobResponse.from_job(job) for job in jobs.list_running(creator or x_caller_id)]

    @router.get("/{job_id}", response_model=JobResponse)
    def get_job(job_id: str):
        """Get job details by ID."""
        return JobResponse.from_job(_get_or_404(job_id))

    @router.get("/{job_id}/result", response_model=JobResultResponse, response_model_exclude_unset=True)
    def get_result(job_id: str):
        """Status of the job, plus its result once it is done."""
        return JobResultResponse(**jobs.result(_get_or_404(job_id)))

    @router.post("/{job_id}/cancel")
    def cancel_job(job_id: str):
        """Cancel a running job."""
        job = _get_or_404(job_id)
        if not jobs.cancel(job):
            raise HTTPException(409, f"Cannot cancel job {job_id} (status: {job.status.value})")
        return {"status": "canceled", "job_id": job_id}

    return router
