"""
clouddns/cloudflare/cloudflare_client.py

Responsibility: Implements the DNSProvider protocol using the Cloudflare REST API.
All Cloudflare HTTP calls are concentrated here — no other file may call the
Cloudflare API directly.
Does NOT: read configuration, touch the IP cache, or send notifications.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from clouddns.cloudflare.dns_provider import DnsRecord
from clouddns.exceptions import DnsProviderError

logger = logging.getLogger(__name__)

_CLOUDFLARE_BASE = "https://api.cloudflare.com/client/v4"

# 1 = automatic TTL on Cloudflare
_AUTOMATIC_TTL = 1


class CloudflareClient:
    """
    Implements DNSProvider for the Cloudflare DNS REST API (v4).

    Unlike a zone-wide client, every request is authenticated with the token
    of the record being updated, so one instance serves records belonging to
    different accounts.

    Collaborators:
        - httpx.AsyncClient: injected HTTP client; must be kept alive externally
        - DNSProvider: this class satisfies the protocol contract
    """

    def __init__(self, http_client: httpx.AsyncClient) -> None:
        """
        Initialises the client with a shared HTTP client.

        Args:
            http_client: A long-lived httpx.AsyncClient instance. Its timeout
                         applies to every Cloudflare call.
        """
        self._client = http_client

    # ---------------------------------------------------------------------------
    # DNSProvider implementation
    # ---------------------------------------------------------------------------

    async def update_record(self, record: DnsRecord, record_type: str, address: str) -> None:
        """
        Overwrites an existing record's content with a new address.

        Args:
            record: The configured record to update.
            record_type: "A" or "AAAA".
            address: The new address to write.

        Returns:
            None

        Raises:
            DnsProviderError: If the HTTP call fails or the API reports an error.
        """
        url = f"{_CLOUDFLARE_BASE}/zones/{record.zone_id}/dns_records/{record.record_id}"
        payload: dict[str, Any] = {
            "type": record_type,
            "name": record.name,
            "content": address,
            "ttl": _AUTOMATIC_TTL,
        }

        logger.debug("PUT %s payload=%s", url, payload)
        await self._request("PUT", url, record.api_token, json=payload)

    # ---------------------------------------------------------------------------
    # Internal helpers
    # ---------------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        url: str,
        api_token: str,
        *,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Sends an authenticated HTTP request to the Cloudflare API.

        Args:
            method: HTTP verb.
            url: Full URL of the Cloudflare API endpoint.
            api_token: Bearer token for this request.
            json: Optional JSON request body.

        Returns:
            The parsed JSON response body as a dict (empty if the body is
            not JSON).

        Raises:
            DnsProviderError: If the HTTP call fails, the status is an error,
                              or the API returns success=false.
        """
        headers = {
            "Authorization": f"Bearer {api_token}",
            "Content-Type": "application/json",
        }
        try:
            response = await self._client.request(method, url, headers=headers, json=json)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise DnsProviderError(
                f"Network error calling Cloudflare API ({method} {url}): {exc}"
            ) from exc
        except ValueError as exc:
            # Header values must be ASCII; a pasted token can carry other text
            raise DnsProviderError(
                f"Could not build Cloudflare API request ({method} {url}): {exc}"
            ) from exc

        body = self._parse_body(response)

        if response.is_error:
            raise DnsProviderError(self._describe_error(response, body))

        # NOTE: Cloudflare wraps all responses in {"success": bool, "result": ...}
        if body and not body.get("success", False):
            raise DnsProviderError(
                f"Cloudflare API returned success=false for {method} {url}: "
                f"{self._describe_error(response, body)}"
            )

        return body

    @staticmethod
    def _parse_body(response: httpx.Response) -> dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}

    @staticmethod
    def _describe_error(response: httpx.Response, body: dict[str, Any]) -> str:
        """
        Builds an error message from the first structured Cloudflare error,
        falling back to the raw status and body.

        Args:
            response: The failed HTTP response.
            body: The parsed response body, possibly empty.

        Returns:
            A human-readable error description.
        """
        errors = body.get("errors") or []
        if errors and isinstance(errors[0], dict):
            first = errors[0]
            return f"API error: {first.get('message', '')} (code: {first.get('code')})"
        return f"API error: {response.status_code} {response.text}"
