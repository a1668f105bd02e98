"""
clouddns/exceptions.py

Responsibility: Defines all custom exception classes used across the application.
Does NOT: contain business logic, logging, or HTTP handling.
"""

from __future__ import annotations


class IpFetchError(Exception):
    """
    Raised by IpService when the public IP address cannot be determined.

    This may occur due to network connectivity issues or an unexpected
    response from the upstream IP provider (e.g. api.ipify.org). It aborts
    the whole address-family group for the current run.
    """


class DnsProviderError(Exception):
    """
    Raised by any DNSProvider implementation when a DNS API call fails.

    Includes a human-readable message describing the failure. Callers
    (typically SyncService) must catch this and mark only the affected
    record as failed.
    """


class CacheError(Exception):
    """
    Raised by IpCacheRepository when a cache file cannot be read or written.

    Never fatal: a read failure is treated as a cache miss and a write
    failure only costs an extra update on the next run.
    """


class WebhookDeliveryError(Exception):
    """
    Raised by WebhookService when an endpoint still fails after every
    delivery attempt. Caught inside WebhookService and logged.
    """


class ConfigLoadError(Exception):
    """
    Raised by the config loader when settings or the record configuration
    file are missing, unreadable, invalid, or contain no records.
    """
