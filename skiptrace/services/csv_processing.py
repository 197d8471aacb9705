import asyncio
import logging
import time

from skiptrace.jobs import JobProgress, JobStore
from skiptrace.mappers.csv_rows import (
    apply_updates,
    owner_details_from,
    parse_csv,
    render_csv,
    row_fields_from,
)
from skiptrace.mappers.row_updates import RowUpdateMap
from skiptrace.schemas.owner import OwnerDetails, RowFields
from skiptrace.services.business_registry import BusinessRegistryService
from skiptrace.services.page_fetcher import PageFetcher, RequestCounter
from skiptrace.services.phone_labeler import PhoneLabeler
from skiptrace.services.profile_extractor import ProfileExtractor
from skiptrace.services.relatives import RelativeGraphCrawler
from skiptrace.services.row_engine import RowDecisionEngine
from skiptrace.services.search import SearchOrchestrator
from skiptrace.services.slack import SlackNotifier
from skiptrace.services.text_classifier import TextClassifier

logger = logging.getLogger(__name__)

MAX_PARALLEL_ROWS = 10


class CsvProcessingService:
    """Enrich every data row of an uploaded CSV for one job."""

    def __init__(
        self,
        fetcher: PageFetcher,
        classifier: TextClassifier,
        registry: BusinessRegistryService,
        store: JobStore,
        notifier: SlackNotifier | None = None,
        max_parallel_rows: int = MAX_PARALLEL_ROWS,
        max_parallel_relatives: int = 10,
        max_relatives: int = 5,
        relative_delay: float = 0.02,
        fund_patterns: list[str] | None = None,
        ignore_llc_patterns: list[str] | None = None,
    ):
        self._fetcher = fetcher
        self._classifier = classifier
        self._registry = registry
        self._store = store
        self._notifier = notifier
        self._max_parallel_rows = max_parallel_rows
        self._max_parallel_relatives = max_parallel_relatives
        self._max_relatives = max_relatives
        self._relative_delay = relative_delay
        self._fund_patterns = fund_patterns or []
        self._ignore_llc_patterns = ignore_llc_patterns or []

    def build_engine(self, job_id: str, counter: RequestCounter) -> RowDecisionEngine:
        fetcher = self._fetcher.bind(counter)
        extractor = ProfileExtractor(fetcher)
        return RowDecisionEngine(
            search=SearchOrchestrator(fetcher, extractor),
            extractor=extractor,
            relatives=RelativeGraphCrawler(
                extractor,
                max_relatives=self._max_relatives,
                max_parallel=self._max_parallel_relatives,
                delay=self._relative_delay,
            ),
            labeler=PhoneLabeler(self._classifier),
            classifier=self._classifier,
            registry=self._registry,
            fund_patterns=self._fund_patterns,
            ignore_llc_patterns=self._ignore_llc_patterns,
            is_cancelled=lambda: self._store.is_cancelled(job_id),
        )

    async def process_all_rows(
        self,
        rows: list[tuple[RowFields, OwnerDetails]],
        job_id: str,
        engine: RowDecisionEngine | None = None,
        counter: RequestCounter | None = None,
    ) -> dict[int, RowUpdateMap]:
        counter = counter or RequestCounter()
        engine = engine or self.build_engine(job_id, counter)
        results: dict[int, RowUpdateMap] = {}
        semaphore = asyncio.Semaphore(self._max_parallel_rows)
        started = time.monotonic()
        processed = 0

        async def process_one(row: RowFields, owner: OwnerDetails) -> None:
            nonlocal processed
            async with semaphore:
                if self._store.is_cancelled(job_id):
                    return
                results[row.index] = await engine.process_row(row, owner)
                processed += 1
                self._store.update_progress(
                    job_id,
                    JobProgress(
                        total_rows=len(rows),
                        rows_processed=processed,
                        processing_time=time.monotonic() - started,
                        request_count=counter.value,
                    ),
                )

        await asyncio.gather(*(process_one(row, owner) for row, owner in rows))
        return results

    async def process_file(self, content: str, job_id: str) -> str:
        """Return the CSV with enrichment written in, or unchanged if cancelled."""
        data = parse_csv(content)
        if len(data) <= 1:
            return content

        rows = [
            (row_fields_from(raw, index), owner_details_from(raw))
            for index, raw in enumerate(data)
            if index != 0
        ]
        counter = RequestCounter()
        engine = self.build_engine(job_id, counter)
        results = await self.process_all_rows(rows, job_id, engine, counter)

        if self._store.is_cancelled(job_id):
            logger.info("Job %s cancelled, leaving file unchanged", job_id)
            return content

        for index in sorted(results):
            if results[index]:
                data[index] = apply_updates(data[index], results[index])
        logger.info(
            "Job %s enriched %d of %d rows with %d requests",
            job_id, sum(1 for u in results.values() if u), len(rows), counter.value,
        )
        return render_csv(data)

    async def run_job(self, job_id: str, content: str) -> None:
        try:
            updated = await self.process_file(content, job_id)
        except Exception as exc:
            logger.exception("Processing job %s failed", job_id)
            self._store.mark_failed(job_id, str(exc))
            await self._notify(f"Job {job_id} failed: {exc}")
            return

        if self._store.is_cancelled(job_id):
            await self._notify(f"Job {job_id} cancelled")
            return
        self._store.mark_completed(job_id, updated)
        await self._notify(f"Job {job_id} completed")

    async def _notify(self, text: str) -> None:
        if self._notifier:
            await self._notifier.notify(text)
