"""Contract tests run against every shipped job store."""

import pytest

from computejobs.core.errors import InvalidTransitionError, PersistenceError
from computejobs.execution.context_key import ContextKey
from computejobs.execution.models import JobResult, JobStatus, Permanence
from computejobs.execution.store import JobStore, ResultStore

from conftest import T0

KEY = ContextKey.of({"q": 1})


def _create(store, creator="u1", key=KEY):
    return store.create_job(creator=creator, job_type="simple-job", context=key)


class TestCreateAndGet:
    def test_protocols(self, any_store):
        assert isinstance(any_store, JobStore)
        assert isinstance(any_store, ResultStore)

    def test_create_job_is_running(self, any_store):
        job = _create(any_store)
        assert job.status is JobStatus.RUNNING
        assert job.created_at == job.updated_at == T0
        assert job.context == KEY.serialized

    def test_get_job_roundtrip(self, any_store):
        job = _create(any_store)
        loaded = any_store.get_job(job.id)
        assert loaded == job

    def test_get_unknown(self, any_store):
        assert any_store.get_job("missing") is None
        assert any_store.get_result("missing") is None

    def test_ids_are_unique(self, any_store):
        assert _create(any_store).id != _create(any_store).id


class TestFinishJob:
    def test_done_with_result(self, any_store, clock):
        job = _create(any_store)
        clock.advance(5)
        assert any_store.finish_job(job.id, JobStatus.DONE, JobResult(job.id, payload={"rows": [1, 2]}))

        loaded = any_store.get_job(job.id)
        assert loaded.status is JobStatus.DONE
        assert loaded.duration_seconds == 5

        result = any_store.get_result(job.id)
        assert result.payload == {"rows": [1, 2]}
        assert result.permanence is Permanence.TEMPORARY
        assert result.created_at == clock.now

    def test_terminal_status_is_never_overwritten(self, any_store):
        job = _create(any_store)
        assert any_store.finish_job(job.id, JobStatus.CANCELED)
        assert not any_store.finish_job(job.id, JobStatus.DONE, JobResult(job.id, payload=1))

        assert any_store.get_job(job.id).status is JobStatus.CANCELED
        assert any_store.get_result(job.id) is None

    def test_running_is_not_a_terminal_status(self, any_store):
        job = _create(any_store)
        with pytest.raises(InvalidTransitionError):
            any_store.finish_job(job.id, JobStatus.RUNNING)

    def test_finish_unknown_job(self, any_store):
        assert not any_store.finish_job("missing", JobStatus.DONE, JobResult("missing", payload=1))

    def test_none_payload_is_a_result(self, any_store):
        job = _create(any_store)
        any_store.finish_job(job.id, JobStatus.DONE, JobResult(job.id, payload=None))
        result = any_store.get_result(job.id)
        assert result is not None
        assert result.payload is None


class TestQueries:
    def test_latest_by_context_prefers_most_recent_update(self, any_store, clock):
        first = _create(any_store)
        clock.advance(1)
        second = _create(any_store)
        clock.advance(1)
        any_store.finish_job(second.id, JobStatus.DONE, JobResult(second.id, payload=2))
        clock.advance(1)
        any_store.finish_job(first.id, JobStatus.DONE, JobResult(first.id, payload=1))

        assert any_store.latest_by_context(KEY).id == first.id

    def test_latest_by_context_excludes_status(self, any_store, clock):
        ok = _create(any_store)
        any_store.finish_job(ok.id, JobStatus.DONE, JobResult(ok.id, payload=1))
        clock.advance(1)
        bad = _create(any_store)
        clock.advance(1)
        any_store.finish_job(bad.id, JobStatus.ERROR, JobResult(bad.id, payload={"type": "X"}))

        assert any_store.latest_by_context(KEY).id == bad.id
        assert any_store.latest_by_context(KEY, exclude_status=JobStatus.ERROR).id == ok.id

    def test_latest_by_context_exact_match(self, any_store):
        _create(any_store)
        assert any_store.latest_by_context(ContextKey.of({"q": 2})) is None

    def test_list_jobs_filters_creator_and_status(self, any_store, clock):
        a1 = _create(any_store, "a")
        clock.advance(1)
        a2 = _create(any_store, "a")
        _create(any_store, "b")
        done = _create(any_store, "a")
        any_store.finish_job(done.id, JobStatus.DONE, JobResult(done.id, payload=1))

        running = any_store.list_jobs(creator="a", status=JobStatus.RUNNING)
        assert [j.id for j in running] == [a1.id, a2.id]
        assert [j.id for j in any_store.list_jobs(creator="a", status=JobStatus.DONE)] == [done.id]

    def test_list_jobs_anonymous_creator(self, any_store):
        anon = _create(any_store, None)
        _create(any_store, "a")
        assert [j.id for j in any_store.list_jobs(creator=None, status=JobStatus.RUNNING)] == [anon.id]


@pytest.mark.integration
class TestSqlJobStore:
    def test_unserializable_payload_leaves_job_running(self, sql_store):
        job = _create(sql_store)
        with pytest.raises(PersistenceError):
            sql_store.finish_job(job.id, JobStatus.DONE, JobResult(job.id, payload=object()))

        assert sql_store.get_job(job.id).status is JobStatus.RUNNING
        assert sql_store.get_result(job.id) is None

    def test_datetimes_are_timezone_aware(self, sql_store):
        job = _create(sql_store)
        assert sql_store.get_job(job.id).created_at.tzinfo is not None

    def test_context_hash_indexed_lookup(self, sql_store, clock):
        key = ContextKey.of({"q": [1, 2, 3]})
        job = _create(sql_store, key=key)
        clock.advance(1)
        assert sql_store.latest_by_context(ContextKey.of({"q": (1, 2, 3)})).id == job.id
