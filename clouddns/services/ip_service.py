"""
clouddns/services/ip_service.py

Responsibility: Fetches the current public IP address of the host machine
for one address family.
Does NOT: parse DNS records, interact with Cloudflare, or read config files.
"""

from __future__ import annotations

import logging

import httpx

from clouddns.exceptions import IpFetchError

logger = logging.getLogger(__name__)

# NOTE: Both endpoints return the caller's public address as plain text.
IPV4_API_URL = "https://api.ipify.org"
IPV6_API_URL = "https://api6.ipify.org"


class IpService:
    """
    Fetches the host machine's current public address.

    The returned value is opaque: it is not parsed or validated as an IP
    address, only trimmed, and is passed through verbatim to the provider
    and the cache.

    Collaborators:
        - httpx.AsyncClient: injected; must be kept alive externally
    """

    def __init__(self, http_client: httpx.AsyncClient) -> None:
        """
        Initialises the service with a shared HTTP client.

        Args:
            http_client: A long-lived httpx.AsyncClient instance created
                         by the runner.
        """
        self._client = http_client

    async def get_public_ip(self, endpoint: str = IPV4_API_URL) -> str:
        """
        Returns the current public address as reported by `endpoint`.

        A single request is made; there is no retry.

        Args:
            endpoint: The discovery URL for the wanted address family.

        Returns:
            The public IP address as a plain string, e.g. "1.2.3.4".

        Raises:
            IpFetchError: If the upstream provider is unreachable, returns
                          a non-2xx response, or returns an empty body.
        """
        try:
            response = await self._client.get(endpoint)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise IpFetchError(
                f"IP provider returned status {exc.response.status_code}."
            ) from exc
        except (httpx.RequestError, httpx.InvalidURL) as exc:
            raise IpFetchError(
                f"Could not reach IP provider ({endpoint}): {exc}"
            ) from exc

        ip = response.text.strip()
        if not ip:
            raise IpFetchError(f"IP provider ({endpoint}) returned an empty response.")

        logger.debug("Current public IP from %s: %s", endpoint, ip)
        return ip
