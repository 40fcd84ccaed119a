"""Tests for cache resolution."""

from computejobs.execution.context_key import ContextKey
from computejobs.execution.models import JobResult, JobStatus
from computejobs.execution.resolver import CacheResolver
from computejobs.execution.store import InMemoryJobStore

from conftest import StaticSettings

KEY = ContextKey.of({"report": "daily"})


def _finished(store: InMemoryJobStore, clock, status: JobStatus, seconds: float, key=KEY):
    job = store.create_job(creator="u1", job_type="simple-job", context=key)
    clock.advance(seconds)
    store.finish_job(job.id, status, JobResult(job.id, payload=1))
    return job


class TestCacheResolver:
    def test_disabled_never_hits(self, memory_store, clock):
        _finished(memory_store, clock, JobStatus.DONE, 10)
        resolver = CacheResolver(memory_store, StaticSettings(caching_enabled=False), clock=clock)
        assert resolver.resolve(KEY) is None

    def test_fresh_done_job_hits(self, memory_store, clock, settings):
        job = _finished(memory_store, clock, JobStatus.DONE, 10)
        clock.advance(50)
        hit = CacheResolver(memory_store, settings, clock=clock).resolve(KEY)
        assert hit is not None and hit.id == job.id

    def test_stale_job_misses(self, memory_store, clock):
        _finished(memory_store, clock, JobStatus.DONE, 10)
        clock.advance(31)
        resolver = CacheResolver(memory_store, StaticSettings(ttl_ratio=2.0), clock=clock)
        assert resolver.resolve(KEY) is None

    def test_error_jobs_are_skipped(self, memory_store, clock, settings):
        _finished(memory_store, clock, JobStatus.ERROR, 10)
        assert CacheResolver(memory_store, settings, clock=clock).resolve(KEY) is None

    def test_older_success_behind_error_still_hits(self, memory_store, clock, settings):
        done = _finished(memory_store, clock, JobStatus.DONE, 10)
        _finished(memory_store, clock, JobStatus.ERROR, 1)
        hit = CacheResolver(memory_store, settings, clock=clock).resolve(KEY)
        assert hit is not None and hit.id == done.id

    def test_running_job_hits_while_fresh(self, memory_store, clock, settings):
        job = memory_store.create_job(creator="u1", job_type="simple-job", context=KEY)
        resolver = CacheResolver(memory_store, settings, clock=clock)
        hit = resolver.resolve(KEY)
        assert hit is not None and hit.id == job.id
        assert hit.status is JobStatus.RUNNING

        # A running job has zero duration, so its ttl is zero.
        clock.advance(1)
        assert resolver.resolve(KEY) is None

    def test_other_context_misses(self, memory_store, clock, settings):
        _finished(memory_store, clock, JobStatus.DONE, 10)
        other = ContextKey.of({"report": "weekly"})
        assert CacheResolver(memory_store, settings, clock=clock).resolve(other) is None

    def test_settings_read_per_call(self, memory_store, clock):
        _finished(memory_store, clock, JobStatus.DONE, 10)
        settings = StaticSettings(caching_enabled=False)
        resolver = CacheResolver(memory_store, settings, clock=clock)
        assert resolver.resolve(KEY) is None
        settings.caching_enabled = True
        assert resolver.resolve(KEY) is not None
