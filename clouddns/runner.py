"""
clouddns/runner.py

Responsibility: Wires up the HTTP clients and collaborators for one run and
syncs every configured address family concurrently.
Does NOT: contain DNS business logic, parse the environment, or decide the
process exit code. Those are delegated to SyncService, config and __main__.
"""

from __future__ import annotations

import asyncio

import httpx
import structlog

from clouddns.cloudflare.cloudflare_client import CloudflareClient
from clouddns.config import DnsConfiguration, Settings
from clouddns.repositories.ip_cache_repository import IpCacheRepository
from clouddns.services.ip_service import IpService
from clouddns.services.sync_service import SyncOutcome, SyncService
from clouddns.services.webhook_service import WebhookService

logger = structlog.get_logger(__name__)

# Provider and IP discovery calls share one client; webhooks get their own.
API_TIMEOUT_SECONDS = 10.0
WEBHOOK_TIMEOUT_SECONDS = 5.0


async def run(settings: Settings, configuration: DnsConfiguration) -> dict[str, list[SyncOutcome]]:
    """
    Runs one complete sync pass over all address families.

    A family with no configured records is skipped. Families run as
    independent tasks; a failure in one never affects the other.

    Args:
        settings: Process settings (cache path, discovery URLs).
        configuration: The loaded record configuration.

    Returns:
        Outcomes per record type for the families that ran.
    """
    cache_repo = IpCacheRepository(settings.cache_path)
    logger.info("Cache path", path=settings.cache_path)

    async with (
        httpx.AsyncClient(timeout=API_TIMEOUT_SECONDS) as api_client,
        httpx.AsyncClient(timeout=WEBHOOK_TIMEOUT_SECONDS) as webhook_client,
    ):
        sync_service = SyncService(
            dns_provider=CloudflareClient(api_client),
            ip_service=IpService(api_client),
            cache_repo=cache_repo,
            webhook_service=WebhookService(webhook_client),
        )

        tasks: dict[str, asyncio.Task[list[SyncOutcome]]] = {}
        async with asyncio.TaskGroup() as group:
            for family in settings.address_families():
                records = configuration.records_for(family.record_type)
                if not records:
                    continue
                logger.info(
                    "Updating records", record_type=family.record_type, count=len(records)
                )
                tasks[family.record_type] = group.create_task(
                    sync_service.sync_family(family, records)
                )

    return {record_type: task.result() for record_type, task in tasks.items()}
