import logging

import httpx

logger = logging.getLogger(__name__)


class SlackNotifier:
    """Post one-line job notifications to an incoming webhook. Never raises."""

    def __init__(self, client: httpx.AsyncClient, webhook_url: str):
        self._client = client
        self._webhook_url = webhook_url

    async def notify(self, text: str) -> None:
        if not self._webhook_url:
            return
        try:
            resp = await self._client.post(self._webhook_url, json={"text": text})
            resp.raise_for_status()
        except (httpx.HTTPError, httpx.TimeoutException):
            logger.exception("Slack notification failed")
