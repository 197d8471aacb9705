from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import StrEnum

from pydantic import BaseModel


class JobStatus(StrEnum):
    processing = "processing"
    completed = "completed"
    failed = "failed"
    cancelled = "cancelled"


_FINISHED = (JobStatus.completed, JobStatus.failed, JobStatus.cancelled)


class JobProgress(BaseModel):
    total_rows: int
    rows_processed: int
    processing_time: float
    request_count: int


class Job(BaseModel):
    job_id: str
    status: JobStatus
    created_at: datetime
    completed_at: datetime | None = None
    file_content: str
    total_rows: int = 0
    rows_processed: int = 0
    processing_time: float = 0.0
    request_count: int = 0
    error: str | None = None


class JobNotFound(Exception):
    pass


class JobAlreadyCompleted(Exception):
    pass


class JobStore:
    def __init__(self, max_jobs: int = 1000) -> None:
        self._jobs: dict[str, Job] = {}
        self._max_jobs = max_jobs

    def _evict(self) -> None:
        if len(self._jobs) <= self._max_jobs:
            return
        # Remove oldest finished jobs first
        candidates = sorted(
            (j for j in self._jobs.values() if j.status in _FINISHED),
            key=lambda j: j.created_at,
        )
        while len(self._jobs) > self._max_jobs and candidates:
            self._jobs.pop(candidates.pop(0).job_id, None)

    def create_job(self, file_content: str) -> Job:
        job = Job(
            job_id=uuid.uuid4().hex[:12],
            status=JobStatus.processing,
            created_at=datetime.now(timezone.utc),
            file_content=file_content,
        )
        self._jobs[job.job_id] = job
        self._evict()
        return job

    def get_job(self, job_id: str) -> Job | None:
        return self._jobs.get(job_id)

    def list_jobs(self) -> list[Job]:
        return sorted(self._jobs.values(), key=lambda j: j.created_at, reverse=True)

    def update_progress(self, job_id: str, progress: JobProgress) -> None:
        if job := self._jobs.get(job_id):
            job.total_rows = progress.total_rows
            job.rows_processed = progress.rows_processed
            job.processing_time = progress.processing_time
            job.request_count = progress.request_count

    def mark_completed(self, job_id: str, file_content: str) -> None:
        job = self._jobs.get(job_id)
        if job is None or job.status == JobStatus.cancelled:
            return
        job.status = JobStatus.completed
        job.file_content = file_content
        job.completed_at = datetime.now(timezone.utc)

    def mark_failed(self, job_id: str, error: str) -> None:
        if job := self._jobs.get(job_id):
            job.status = JobStatus.failed
            job.error = error
            job.completed_at = datetime.now(timezone.utc)

    def cancel(self, job_id: str) -> Job:
        job = self._jobs.get(job_id)
        if job is None:
            raise JobNotFound(job_id)
        if job.status == JobStatus.completed:
            raise JobAlreadyCompleted(job_id)
        job.status = JobStatus.cancelled
        return job

    def is_cancelled(self, job_id: str) -> bool:
        """Unknown jobs count as cancelled so orphaned work stops."""
        job = self._jobs.get(job_id)
        return job is None or job.status == JobStatus.cancelled
