"""
clouddns/services/sync_service.py

Responsibility: Orchestrates the DDNS sync pass for one address family:
resolves the public address once, then for every record compares it with the
cached address, updates the provider, writes the cache back and notifies
webhooks.
Does NOT: make HTTP calls directly, parse configuration, or set up logging.
"""

from __future__ import annotations

import asyncio
import enum
from collections import Counter

import structlog

from clouddns.cloudflare.dns_provider import AddressFamily, DNSProvider, DnsRecord
from clouddns.exceptions import CacheError, DnsProviderError, IpFetchError
from clouddns.repositories.ip_cache_repository import IpCacheRepository, cache_key
from clouddns.services.ip_service import IpService
from clouddns.services.webhook_service import WebhookService

logger = structlog.get_logger(__name__)


class SyncOutcome(str, enum.Enum):
    """Result of one record task. Only surfaced through logs."""

    # Cached address equals the current address
    SKIPPED = "skipped"

    # Provider updated; cache written (or disabled); webhooks attempted
    UPDATED = "updated"

    # Provider update failed; nothing else happened
    FAILED = "failed"

    # Provider updated and webhooks attempted, but the cache write failed
    CACHE_WRITE_FAILED = "cache_write_failed"


class SyncService:
    """
    Drives the compare → update → cache → notify sequence for DNS records.

    One record task per record runs concurrently inside a task group scoped
    to the address family; every task handles its own errors so a failing
    record never cancels its siblings.

    Collaborators:
        - DNSProvider: applies the new address (CloudflareClient)
        - IpService: provides the current public address per family
        - IpCacheRepository: last applied address per record
        - WebhookService: best-effort notifications after an update
    """

    def __init__(
        self,
        dns_provider: DNSProvider,
        ip_service: IpService,
        cache_repo: IpCacheRepository,
        webhook_service: WebhookService,
    ) -> None:
        """
        Initialises the service with all required collaborators.

        Args:
            dns_provider: Any DNSProvider implementation.
            ip_service: Resolves the current public address.
            cache_repo: Reads and writes cached addresses.
            webhook_service: Notifies webhook endpoints.
        """
        self._provider = dns_provider
        self._ip_service = ip_service
        self._cache = cache_repo
        self._webhooks = webhook_service

    # ---------------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------------

    async def sync_family(
        self,
        family: AddressFamily,
        records: list[DnsRecord],
    ) -> list[SyncOutcome]:
        """
        Runs one sync pass for every record of an address family.

        The public address is resolved once and shared by all records. If it
        cannot be resolved the whole family is skipped for this run.

        Args:
            family: The address family (record type and discovery URL).
            records: The family's configured records.

        Returns:
            One outcome per record, in input order; empty when resolution
            failed or there are no records.
        """
        log = logger.bind(record_type=family.record_type)

        if not records:
            log.debug("No records for address family, skipping.")
            return []

        try:
            current_ip = await self._ip_service.get_public_ip(family.ip_api_url)
        except IpFetchError as exc:
            log.error("Failed to get current IP address", error=str(exc))
            return []

        log.info("Syncing records to current IP address", ip=current_ip, count=len(records))

        async with asyncio.TaskGroup() as group:
            tasks = [
                group.create_task(self.sync_record(record, family.record_type, current_ip, log))
                for record in records
            ]

        outcomes = [task.result() for task in tasks]
        counts = Counter(outcomes)
        log.info(
            "Address family pass finished",
            **{outcome.value: counts.get(outcome, 0) for outcome in SyncOutcome},
        )
        return outcomes

    async def sync_record(
        self,
        record: DnsRecord,
        record_type: str,
        current_ip: str,
        log: structlog.stdlib.BoundLogger | None = None,
    ) -> SyncOutcome:
        """
        Brings a single record up to date with `current_ip`.

        The cache is written and webhooks are notified only after the
        provider confirmed the update in this same call. Any unexpected
        error is logged and reported as FAILED so it never reaches the
        family's task group and cancels sibling records.

        Args:
            record: The configured record.
            record_type: "A" or "AAAA".
            current_ip: The freshly resolved public address.
            log: Optional logger already bound to the family context.

        Returns:
            The SyncOutcome for this record.
        """
        log = (log or logger).bind(
            record_type=record_type,
            record_id=record.record_id,
            record_name=record.name,
        )

        try:
            return await self._apply(record, record_type, current_ip, log)
        except Exception:
            log.exception("Unexpected error while syncing record")
            return SyncOutcome.FAILED

    # ---------------------------------------------------------------------------
    # Internal helpers
    # ---------------------------------------------------------------------------

    async def _apply(
        self,
        record: DnsRecord,
        record_type: str,
        current_ip: str,
        log: structlog.stdlib.BoundLogger,
    ) -> SyncOutcome:
        key = cache_key(record, record_type)

        try:
            cached_ip = await self._cache.read(key)
        except CacheError as exc:
            log.warning("Failed to read cached IP for record", error=str(exc))
            cached_ip = None

        if cached_ip == current_ip:
            log.info("IP address unchanged for record, skipping update", ip=current_ip)
            return SyncOutcome.SKIPPED

        log.info("Updating DNS record", old_ip=cached_ip or "", new_ip=current_ip)

        try:
            await self._provider.update_record(record, record_type, current_ip)
        except DnsProviderError as exc:
            log.error("Failed to update DNS record", error=str(exc))
            return SyncOutcome.FAILED

        log.info("Successfully updated DNS record", ip=current_ip)

        outcome = SyncOutcome.UPDATED
        if self._cache.enabled:
            try:
                await self._cache.write(key, current_ip)
            except CacheError as exc:
                log.warning("Failed to save cached IP for record", error=str(exc))
                outcome = SyncOutcome.CACHE_WRITE_FAILED
            else:
                log.info("Successfully cached new IP address for record", ip=current_ip)
        else:
            log.info("Not caching IP address because no cache directory is set", ip=current_ip)

        if record.webhooks:
            await self._webhooks.broadcast(record.name, record_type, current_ip, record.webhooks, log)

        return outcome
