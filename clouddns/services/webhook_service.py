"""
clouddns/services/webhook_service.py

Responsibility: Announces a successful record update to the record's webhook
endpoints, retrying each endpoint independently.
Does NOT: update DNS records, read the cache, or raise delivery failures to
its caller.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any

import httpx
import structlog

from clouddns.exceptions import WebhookDeliveryError

logger = structlog.get_logger(__name__)

# NOTE: Discord webhooks only get the address as the message content.
DISCORD_WEBHOOK_PREFIX = "https://discord.com/api/webhooks/"

MAX_ATTEMPTS = 3
BASE_DELAY_SECONDS = 1.0


def is_discord_webhook(url: str) -> bool:
    return url.startswith(DISCORD_WEBHOOK_PREFIX)


def build_payload(url: str, record_name: str, record_type: str, address: str) -> dict[str, Any]:
    """
    Builds the JSON payload for an endpoint.

    Args:
        url: The webhook URL; decides which payload shape is used.
        record_name: FQDN of the updated record.
        record_type: "A" or "AAAA".
        address: The address that was applied.

    Returns:
        {"content": address} for Discord webhooks, otherwise
        {"record_name", "record_type", "ip_address"}.
    """
    if is_discord_webhook(url):
        return {"content": address}
    return {
        "record_name": record_name,
        "record_type": record_type,
        "ip_address": address,
    }


class WebhookService:
    """
    Best-effort notifier for successful DNS updates.

    Every endpoint gets up to `max_attempts` POSTs with a linearly growing
    delay between them (attempt number × base delay). All endpoints of one
    broadcast run concurrently in a task group that is joined before
    broadcast() returns.

    Collaborators:
        - httpx.AsyncClient: dedicated webhook client with its own short
          timeout; must be kept alive externally
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        max_attempts: int = MAX_ATTEMPTS,
        base_delay: float | None = None,
    ) -> None:
        """
        Initialises the service.

        Args:
            http_client: The webhook httpx.AsyncClient (5 second timeout).
            max_attempts: Total delivery attempts per endpoint.
            base_delay: Seconds multiplied by the attempt number between
                        attempts. Defaults to BASE_DELAY_SECONDS.
        """
        self._client = http_client
        self._max_attempts = max_attempts
        self._base_delay = BASE_DELAY_SECONDS if base_delay is None else base_delay

    # ---------------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------------

    async def broadcast(
        self,
        record_name: str,
        record_type: str,
        address: str,
        endpoints: list[str] | tuple[str, ...],
        log: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        """
        Notifies every endpoint about an applied address and waits for all
        of them to finish.

        Args:
            record_name: FQDN of the updated record.
            record_type: "A" or "AAAA".
            address: The address that was applied.
            endpoints: Webhook URLs; may be empty.
            log: Optional logger already bound to the record's context.

        Returns:
            None
        """
        if not endpoints:
            return

        log = (log or logger).bind(component="webhook")
        log.info("Starting webhook notifications", webhook_count=len(endpoints))

        async with asyncio.TaskGroup() as group:
            for url in endpoints:
                payload = build_payload(url, record_name, record_type, address)
                group.create_task(self._notify(url, payload, log.bind(url=url)))

        log.info("Completed all webhook notifications", webhook_count=len(endpoints))

    # ---------------------------------------------------------------------------
    # Internal helpers
    # ---------------------------------------------------------------------------

    async def _notify(self, url: str, payload: dict[str, Any], log: structlog.stdlib.BoundLogger) -> None:
        log.info("Preparing webhook", kind="discord" if is_discord_webhook(url) else "standard")
        try:
            await self._deliver(url, payload, log)
        except WebhookDeliveryError as exc:
            log.error("Webhook notification failed", error=str(exc))
        else:
            log.info("Webhook notification completed")

    async def _deliver(self, url: str, payload: dict[str, Any], log: structlog.stdlib.BoundLogger) -> None:
        """
        POSTs `payload` to `url` until it succeeds or attempts run out.

        Args:
            url: The webhook URL.
            payload: JSON-serialisable body.
            log: Logger bound to this endpoint.

        Returns:
            None

        Raises:
            WebhookDeliveryError: If every attempt failed.
        """
        headers = {"Content-Type": "application/json"}

        for attempt in range(1, self._max_attempts + 1):
            attempt_log = log.bind(attempt=attempt, max_retries=self._max_attempts)
            attempt_log.info("Sending webhook")
            started = time.monotonic()

            try:
                response = await self._client.post(url, json=payload, headers=headers)
            except (httpx.HTTPError, httpx.InvalidURL) as exc:
                attempt_log.error(
                    "Webhook request failed",
                    response_time_ms=_elapsed_ms(started),
                    error=str(exc),
                )
            else:
                if response.is_success:
                    attempt_log.info(
                        "Webhook sent successfully",
                        status_code=response.status_code,
                        response_time_ms=_elapsed_ms(started),
                    )
                    return
                attempt_log.error(
                    "Webhook returned non-OK status",
                    status_code=response.status_code,
                    response_body=response.text,
                    response_time_ms=_elapsed_ms(started),
                )

            if attempt < self._max_attempts:
                await asyncio.sleep(self._base_delay * attempt)

        raise WebhookDeliveryError(f"Webhook failed after {self._max_attempts} attempts")


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)
