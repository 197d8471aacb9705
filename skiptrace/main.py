import logging
import sys
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from skiptrace.config import Settings, split_patterns
from skiptrace.exceptions.custom import CsvFormatError
from skiptrace.exceptions.handlers import csv_format_error_handler
from skiptrace.jobs import JobStore
from skiptrace.routers.files import router as files_router
from skiptrace.services.business_registry import BusinessRegistryService
from skiptrace.services.csv_processing import CsvProcessingService
from skiptrace.services.page_fetcher import build_fetcher
from skiptrace.services.slack import SlackNotifier
from skiptrace.services.text_classifier import TextClassifier


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = Settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)

    async with httpx.AsyncClient(timeout=30.0) as client:
        api_key = (
            settings.zyte_api_key
            if settings.fetch_backend.lower() == "zyte"
            else settings.scrapingbee_api_key
        )
        fetcher = build_fetcher(
            settings.fetch_backend,
            client,
            api_key,
            delay_range=(settings.fetch_delay_min, settings.fetch_delay_max),
            error_delay=settings.fetch_error_delay,
        )

        notifier: SlackNotifier | None = None
        if settings.slack_webhook_url:
            notifier = SlackNotifier(client, settings.slack_webhook_url)

        store = JobStore()
        app.state.job_store = store
        app.state.processing_service = CsvProcessingService(
            fetcher,
            TextClassifier(settings.anthropic_api_key),
            BusinessRegistryService(client),
            store,
            notifier=notifier,
            max_parallel_rows=settings.max_parallel_rows,
            max_parallel_relatives=settings.max_parallel_relatives,
            max_relatives=settings.max_relatives_to_crawl,
            relative_delay=settings.relative_delay,
            fund_patterns=split_patterns(settings.fund_detection_strings),
            ignore_llc_patterns=split_patterns(settings.ignore_llc_results_strings),
        )

        yield


app = FastAPI(title="Skiptrace", lifespan=lifespan)

app.add_exception_handler(CsvFormatError, csv_format_error_handler)

app.include_router(files_router)
