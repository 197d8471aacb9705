from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class JobSubmittedResponse(BaseModel):
    job_id: str
    status: str
    message: str


class JobStatusResponse(BaseModel):
    job_id: str
    status: str
    created_at: datetime
    completed_at: datetime | None = None
    total_rows: int = 0
    rows_processed: int = 0
    processing_time: float = 0.0
    request_count: int = 0
    file_content: str
    error: str | None = None


class JobListResponse(BaseModel):
    data: list[JobStatusResponse]


class CancelResponse(BaseModel):
    success: bool
