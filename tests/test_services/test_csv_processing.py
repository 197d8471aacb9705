"""Tests for CsvProcessingService batch orchestration."""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from skiptrace.jobs import JobStatus, JobStore
from skiptrace.mappers.csv_rows import COLUMN_MAPPINGS, parse_csv
from skiptrace.services.business_registry import BusinessRegistryService
from skiptrace.services.csv_processing import CsvProcessingService
from skiptrace.services.page_fetcher import PageFetcher, RequestCounter
from skiptrace.services.row_engine import RowDecisionEngine
from skiptrace.services.slack import SlackNotifier
from skiptrace.services.text_classifier import TextClassifier

HEADER = "address,unitNumber,city,state,zip,county,apn,ownerOccupied,ownerOneFirstName,ownerOneLastName"
CSV_CONTENT = (
    f"{HEADER}\n"
    "123 Main St,,Los Angeles,CA,90001,,,,Jane,Smith\n"
    "9 Oak Ave,,Pasadena,CA,91101,,,,John,Doe\n"
)


@pytest.fixture
def store():
    return JobStore()


@pytest.fixture
def notifier():
    return AsyncMock(spec=SlackNotifier)


@pytest.fixture
def engine():
    updates = {
        1: {
            "ownerMobile1": "(818) 216-1919",
            "ownerMobile1Type": "Wireless",
            "relative0Name": "Bob Smith",
            "relative0URL": "https://www.cyberbackgroundchecks.com/name/bob",
        },
    }
    mock = AsyncMock(spec=RowDecisionEngine)
    mock.process_row.side_effect = lambda row, owner: updates.get(row.index, {})
    return mock


@pytest.fixture
def fetcher():
    return AsyncMock(spec=PageFetcher)


@pytest.fixture
def service(fetcher, store, notifier, engine):
    svc = CsvProcessingService(
        fetcher,
        AsyncMock(spec=TextClassifier),
        AsyncMock(spec=BusinessRegistryService),
        store,
        notifier=notifier,
    )
    with patch.object(svc, "build_engine", return_value=engine):
        yield svc


async def test_process_file_writes_updates_into_matched_rows(service, store, engine):
    job = store.create_job(CSV_CONTENT)

    output = await service.process_file(CSV_CONTENT, job.job_id)

    rows = parse_csv(output)
    assert rows[0] == HEADER.split(",")
    assert rows[1][COLUMN_MAPPINGS["ownerMobile1"]] == "(818) 216-1919"
    assert rows[1][COLUMN_MAPPINGS["ownerMobile1Type"]] == "Wireless"
    assert rows[1][COLUMN_MAPPINGS["relative0Name"]] == "Bob Smith"
    assert rows[2] == "9 Oak Ave,,Pasadena,CA,91101,,,,John,Doe".split(",")
    assert engine.process_row.await_count == 2


async def test_rows_are_read_from_their_columns(service, store, engine):
    job = store.create_job(CSV_CONTENT)

    await service.process_file(CSV_CONTENT, job.job_id)

    seen = {c.args[0].index: c.args for c in engine.process_row.await_args_list}
    row, owner = seen[1]
    assert row.address == "123 Main St"
    assert row.city == "Los Angeles"
    assert owner.owner_one_first_name == "Jane"
    assert owner.owner_one_last_name == "Smith"


async def test_header_only_file_is_unchanged(service, store, engine):
    job = store.create_job(HEADER)

    assert await service.process_file(HEADER, job.job_id) == HEADER
    engine.process_row.assert_not_awaited()


async def test_progress_is_reported(service, store):
    job = store.create_job(CSV_CONTENT)

    await service.process_file(CSV_CONTENT, job.job_id)

    stored = store.get_job(job.job_id)
    assert stored.total_rows == 2
    assert stored.rows_processed == 2


async def test_cancelled_job_returns_original_content(service, store, engine):
    job = store.create_job(CSV_CONTENT)
    store.cancel(job.job_id)

    assert await service.process_file(CSV_CONTENT, job.job_id) == CSV_CONTENT
    engine.process_row.assert_not_awaited()


async def test_run_job_marks_completed_and_notifies(service, store, notifier):
    job = store.create_job(CSV_CONTENT)

    await service.run_job(job.job_id, CSV_CONTENT)

    stored = store.get_job(job.job_id)
    assert stored.status == JobStatus.completed
    assert stored.completed_at is not None
    assert "(818) 216-1919" in stored.file_content
    notifier.notify.assert_awaited_once()
    assert "completed" in notifier.notify.await_args.args[0]


async def test_run_job_failure_marks_failed(service, store, notifier):
    job = store.create_job(CSV_CONTENT)

    with patch.object(service, "process_file", side_effect=RuntimeError("boom")):
        await service.run_job(job.job_id, CSV_CONTENT)

    stored = store.get_job(job.job_id)
    assert stored.status == JobStatus.failed
    assert stored.error == "boom"
    assert "failed" in notifier.notify.await_args.args[0]


async def test_run_job_cancelled_stays_cancelled(service, store, notifier):
    job = store.create_job(CSV_CONTENT)
    store.cancel(job.job_id)

    await service.run_job(job.job_id, CSV_CONTENT)

    stored = store.get_job(job.job_id)
    assert stored.status == JobStatus.cancelled
    assert stored.file_content == CSV_CONTENT
    assert "cancelled" in notifier.notify.await_args.args[0]


def test_build_engine_binds_fetcher_to_job_counter(fetcher, store):
    svc = CsvProcessingService(
        fetcher,
        AsyncMock(spec=TextClassifier),
        AsyncMock(spec=BusinessRegistryService),
        store,
    )
    counter = RequestCounter()

    engine = svc.build_engine("job-1", counter)

    fetcher.bind.assert_called_once_with(counter)
    assert isinstance(engine, RowDecisionEngine)


async def test_row_fan_out_is_bounded(fetcher, store):
    in_flight = {"now": 0, "peak": 0}

    async def slow_row(row, owner):
        in_flight["now"] += 1
        in_flight["peak"] = max(in_flight["peak"], in_flight["now"])
        await asyncio.sleep(0.01)
        in_flight["now"] -= 1
        return {}

    engine = AsyncMock(spec=RowDecisionEngine)
    engine.process_row.side_effect = slow_row
    svc = CsvProcessingService(
        fetcher,
        AsyncMock(spec=TextClassifier),
        AsyncMock(spec=BusinessRegistryService),
        store,
        max_parallel_rows=2,
    )
    content = HEADER + "\n" + "".join(f"{i} Main St,,LA,CA,90001,,,,Jane,Smith\n" for i in range(6))
    job = store.create_job(content)

    with patch.object(svc, "build_engine", return_value=engine):
        await svc.process_file(content, job.job_id)

    assert in_flight["peak"] == 2
    assert engine.process_row.await_count == 6
    assert store.get_job(job.job_id).rows_processed == 6
