"""
clouddns/cloudflare/dns_provider.py

Responsibility: Defines the DNSProvider Protocol, the DnsRecord value object
and the AddressFamily descriptor.
Does NOT: make HTTP calls, touch the cache, or implement any provider logic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable


# ---------------------------------------------------------------------------
# Value objects
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DnsRecord:
    """
    Represents a single DNS record managed by this client.

    Loaded once from the configuration file and never mutated during a run.
    """

    # Fully-qualified DNS name, e.g. "home.example.com"
    name: str

    # Provider API token; configured per record so different records may use
    # different tokens
    api_token: str = field(repr=False)

    # Provider zone ID the record belongs to
    zone_id: str

    # Provider-assigned record ID; only exposed through the provider API
    record_id: str

    # Webhook URLs POSTed to after a successful update
    webhooks: tuple[str, ...] = ()


@dataclass(frozen=True)
class AddressFamily:
    """
    An address family group: the record type written to the provider and
    the discovery endpoint that returns the matching public address.
    """

    # "A" for IPv4, "AAAA" for IPv6
    record_type: str

    # Plain-text public IP endpoint, e.g. "https://api.ipify.org"
    ip_api_url: str


# ---------------------------------------------------------------------------
# Abstract interface — all DNS providers must implement this contract
# ---------------------------------------------------------------------------


@runtime_checkable
class DNSProvider(Protocol):
    """
    Abstract protocol for applying an address to a single DNS record.

    SyncService depends on this abstraction, never on a concrete
    implementation.
    """

    async def update_record(self, record: DnsRecord, record_type: str, address: str) -> None:
        """
        Replaces the content of an existing record with a new address.

        Args:
            record: The configured record, including its own API token.
            record_type: "A" or "AAAA".
            address: The new address, passed through verbatim.

        Returns:
            None

        Raises:
            DnsProviderError: If the API call fails or the provider reports
                              an error.
        """
        ...
