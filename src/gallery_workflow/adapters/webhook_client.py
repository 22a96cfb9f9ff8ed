"""Outbound webhook client adapter."""

import asyncio
import logging
from dataclasses import dataclass

import httpx

from gallery_workflow.services.notifications import WebhookClient

logger = logging.getLogger(__name__)

_SERVER_ERROR = 500


@dataclass
class HttpxWebhookClient(WebhookClient):
    """Webhook client implemented with httpx.

    Transport errors and 5xx responses are retried with exponential backoff up
    to ``max_attempts``; the last outcome is returned or raised.
    """

    http_client: httpx.AsyncClient
    timeout: float = 10.0
    max_attempts: int = 3
    backoff_seconds: float = 0.5

    @classmethod
    def create(
        cls, timeout: float, max_attempts: int, backoff_seconds: float
    ) -> "HttpxWebhookClient":
        """Create a webhook client with a managed httpx session."""
        return cls(
            http_client=httpx.AsyncClient(),
            timeout=timeout,
            max_attempts=max(1, max_attempts),
            backoff_seconds=backoff_seconds,
        )

    async def post_json(self, url: str, payload: dict[str, object]) -> int:
        """Post a JSON payload and return the final status code."""
        attempt = 0
        while True:
            attempt += 1
            try:
                response = await self.http_client.post(
                    url, json=payload, timeout=self.timeout
                )
            except httpx.TransportError:
                if attempt >= self.max_attempts:
                    raise
                logger.warning(
                    "Webhook transport error, retrying", extra={"attempt": attempt}
                )
            else:
                if (
                    response.status_code < _SERVER_ERROR
                    or attempt >= self.max_attempts
                ):
                    return response.status_code
                logger.warning(
                    "Webhook server error, retrying",
                    extra={"attempt": attempt, "status": response.status_code},
                )
            await asyncio.sleep(self.backoff_seconds * (2 ** (attempt - 1)))

    async def close(self) -> None:
        """Close the underlying HTTP client session."""
        await self.http_client.aclose()
