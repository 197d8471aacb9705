from unittest.mock import AsyncMock, patch

import httpx
import pytest
from httpx import ASGITransport


@pytest.fixture
def mock_env(monkeypatch):
    monkeypatch.setenv("FETCH_BACKEND", "scrapingbee")
    monkeypatch.setenv("SCRAPINGBEE_API_KEY", "test-sb-key")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "test-anthropic-key")
    monkeypatch.setenv("SLACK_WEBHOOK_URL", "")


@pytest.fixture
def run_job():
    # Background processing would hit the scraping backend; tests drive it directly.
    with patch(
        "skiptrace.services.csv_processing.CsvProcessingService.run_job",
        new_callable=AsyncMock,
    ) as mock:
        yield mock


@pytest.fixture
async def client(mock_env, run_job):
    from skiptrace.main import app, lifespan

    async with lifespan(app):
        async with httpx.AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as c:
            yield c
