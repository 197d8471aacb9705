from typing import Annotated

from fastapi import Depends, Request

from skiptrace.jobs import JobStore
from skiptrace.services.csv_processing import CsvProcessingService


def get_processing_service(request: Request) -> CsvProcessingService:
    return request.app.state.processing_service


def get_job_store(request: Request) -> JobStore:
    return request.app.state.job_store


ProcessingDep = Annotated[CsvProcessingService, Depends(get_processing_service)]
JobStoreDep = Annotated[JobStore, Depends(get_job_store)]
