"""Tests for job models and the status state machine."""

import pytest

from computejobs.core.errors import InvalidTransitionError
from computejobs.execution.models import (
    JOB_VALID_TRANSITIONS,
    Job,
    JobStatus,
    validate_job_transition,
)

from conftest import T0


def _job(status: JobStatus) -> Job:
    return Job(
        id="j1",
        creator="u1",
        status=status,
        type="simple-job",
        context="{}",
        created_at=T0,
        updated_at=T0,
    )


class TestJobStatus:
    @pytest.mark.parametrize("target", [JobStatus.DONE, JobStatus.ERROR, JobStatus.CANCELED])
    def test_running_to_terminal(self, target):
        validate_job_transition(JobStatus.RUNNING, target)

    @pytest.mark.parametrize("current", [JobStatus.DONE, JobStatus.ERROR, JobStatus.CANCELED])
    @pytest.mark.parametrize("target", list(JobStatus))
    def test_terminal_is_final(self, current, target):
        with pytest.raises(InvalidTransitionError):
            validate_job_transition(current, target)

    def test_never_reenters_running(self):
        assert all(JobStatus.RUNNING not in targets for targets in JOB_VALID_TRANSITIONS.values())

    def test_is_terminal(self):
        assert not JobStatus.RUNNING.is_terminal
        assert JobStatus.CANCELED.is_terminal


class TestJob:
    def test_done_includes_error(self):
        assert _job(JobStatus.DONE).is_done
        assert _job(JobStatus.ERROR).is_done
        assert not _job(JobStatus.CANCELED).is_done
        assert not _job(JobStatus.RUNNING).is_done

    def test_running(self):
        assert _job(JobStatus.RUNNING).is_running
        assert not _job(JobStatus.DONE).is_running

    def test_to_dict(self):
        d = _job(JobStatus.DONE).to_dict()
        assert d["status"] == "done"
        assert d["created_at"] == T0.isoformat()
