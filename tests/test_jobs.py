"""Tests for JobStore lifecycle and cancellation."""

from datetime import datetime, timedelta, timezone

import pytest

from skiptrace.jobs import (
    JobAlreadyCompleted,
    JobNotFound,
    JobProgress,
    JobStatus,
    JobStore,
)


def test_create_job_starts_processing():
    store = JobStore()
    job = store.create_job("a,b\n1,2\n")

    assert job.status == JobStatus.processing
    assert job.file_content == "a,b\n1,2\n"
    assert store.get_job(job.job_id) is job


def test_get_unknown_job():
    assert JobStore().get_job("nope") is None


def test_list_jobs_newest_first():
    store = JobStore()
    first = store.create_job("x")
    second = store.create_job("y")
    first.created_at = datetime.now(timezone.utc) - timedelta(minutes=5)

    assert [j.job_id for j in store.list_jobs()] == [second.job_id, first.job_id]


def test_update_progress():
    store = JobStore()
    job = store.create_job("x")

    store.update_progress(
        job.job_id,
        JobProgress(total_rows=10, rows_processed=4, processing_time=1.5, request_count=12),
    )

    assert job.total_rows == 10
    assert job.rows_processed == 4
    assert job.processing_time == 1.5
    assert job.request_count == 12


def test_mark_completed_replaces_content():
    store = JobStore()
    job = store.create_job("x")

    store.mark_completed(job.job_id, "enriched")

    assert job.status == JobStatus.completed
    assert job.file_content == "enriched"
    assert job.completed_at is not None


def test_mark_completed_ignored_after_cancel():
    """A cancelled job keeps its original content."""
    store = JobStore()
    job = store.create_job("x")
    store.cancel(job.job_id)

    store.mark_completed(job.job_id, "enriched")

    assert job.status == JobStatus.cancelled
    assert job.file_content == "x"


def test_mark_failed():
    store = JobStore()
    job = store.create_job("x")

    store.mark_failed(job.job_id, "Some error")

    assert job.status == JobStatus.failed
    assert job.error == "Some error"


def test_cancel_unknown_job():
    with pytest.raises(JobNotFound):
        JobStore().cancel("nope")


def test_cancel_completed_job():
    store = JobStore()
    job = store.create_job("x")
    store.mark_completed(job.job_id, "done")

    with pytest.raises(JobAlreadyCompleted):
        store.cancel(job.job_id)


def test_is_cancelled():
    store = JobStore()
    job = store.create_job("x")

    assert store.is_cancelled(job.job_id) is False
    store.cancel(job.job_id)
    assert store.is_cancelled(job.job_id) is True
    assert store.is_cancelled("unknown") is True


def test_eviction_drops_oldest_finished_jobs():
    store = JobStore(max_jobs=2)
    old = store.create_job("old")
    store.mark_completed(old.job_id, "old")
    old.created_at = datetime.now(timezone.utc) - timedelta(hours=1)
    active = store.create_job("active")

    store.create_job("new")

    assert store.get_job(old.job_id) is None
    assert store.get_job(active.job_id) is not None


def test_eviction_never_drops_active_jobs():
    store = JobStore(max_jobs=1)
    a = store.create_job("a")
    b = store.create_job("b")

    assert store.get_job(a.job_id) is not None
    assert store.get_job(b.job_id) is not None
