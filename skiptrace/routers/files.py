import asyncio
import logging

from fastapi import APIRouter, HTTPException, UploadFile

from skiptrace.dependencies import JobStoreDep, ProcessingDep
from skiptrace.exceptions.custom import CsvFormatError
from skiptrace.jobs import Job, JobAlreadyCompleted, JobNotFound
from skiptrace.mappers.csv_rows import parse_csv
from skiptrace.schemas.responses import (
    CancelResponse,
    JobListResponse,
    JobStatusResponse,
    JobSubmittedResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/files")

# Keep references so background jobs are not garbage collected mid-run.
_background_tasks: set[asyncio.Task] = set()


def _status(job: Job) -> JobStatusResponse:
    return JobStatusResponse(**job.model_dump())


@router.post("/upload", response_model=JobSubmittedResponse, status_code=202)
async def upload_file(
    file: UploadFile,
    service: ProcessingDep,
    store: JobStoreDep,
) -> JobSubmittedResponse:
    raw = await file.read()
    try:
        content = raw.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise CsvFormatError("File is not UTF-8 text") from exc
    if not content.strip():
        raise CsvFormatError("No file content uploaded")
    parse_csv(content)

    job = store.create_job(file_content=content)
    task = asyncio.create_task(service.run_job(job.job_id, content))
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)
    logger.info("Started job %s for %s", job.job_id, file.filename)
    return JobSubmittedResponse(
        job_id=job.job_id,
        status=job.status,
        message="File accepted for processing",
    )


@router.post("/{job_id}/cancel", response_model=CancelResponse)
async def cancel_processing(job_id: str, store: JobStoreDep) -> CancelResponse:
    try:
        store.cancel(job_id)
    except JobNotFound:
        raise HTTPException(status_code=404, detail="Job not found") from None
    except JobAlreadyCompleted:
        raise HTTPException(status_code=400, detail="Job has already been processed") from None
    return CancelResponse(success=True)


@router.get("/{job_id}/status", response_model=JobStatusResponse)
async def check_status(job_id: str, store: JobStoreDep) -> JobStatusResponse:
    job = store.get_job(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return _status(job)


@router.get("", response_model=JobListResponse)
async def list_files(store: JobStoreDep) -> JobListResponse:
    return JobListResponse(data=[_status(job) for job in store.list_jobs()])
