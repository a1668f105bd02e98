"""
clouddns/config.py

Responsibility: Loads environment settings and the JSON record configuration,
validating both with pydantic and converting records to DnsRecord values.
Does NOT: contact any network service or touch the IP cache.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from clouddns.cloudflare.dns_provider import AddressFamily, DnsRecord
from clouddns.exceptions import ConfigLoadError
from clouddns.services.ip_service import IPV4_API_URL, IPV6_API_URL

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Environment settings
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    """
    Process settings read from DDNS_* environment variables.

    An empty cache_path disables caching: every run then updates every
    record.
    """

    model_config = SettingsConfigDict(env_prefix="DDNS_")

    config_path: str | None = None
    cache_path: str = ""
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    ipv4_api_url: str = IPV4_API_URL
    ipv6_api_url: str = IPV6_API_URL

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalise_log_level(cls, value):
        if isinstance(value, str):
            return value.strip().upper()
        return value

    def address_families(self) -> tuple[AddressFamily, AddressFamily]:
        return (
            AddressFamily(record_type="A", ip_api_url=self.ipv4_api_url),
            AddressFamily(record_type="AAAA", ip_api_url=self.ipv6_api_url),
        )


def load_settings() -> Settings:
    """
    Reads settings from the environment.

    Returns:
        A validated Settings instance.

    Raises:
        ConfigLoadError: If an environment variable has an invalid value.
    """
    try:
        return Settings()
    except ValidationError as exc:
        raise ConfigLoadError(f"Invalid DDNS_* environment settings: {exc}") from exc


# ---------------------------------------------------------------------------
# Record configuration file
# ---------------------------------------------------------------------------


class RecordConfig(BaseModel):
    """One entry of the "a" or "aaaa" list in the configuration file."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    api_token: str = Field(min_length=1, repr=False)
    zone_id: str = Field(min_length=1)
    record_id: str = Field(min_length=1)
    webhooks: list[str] = Field(default_factory=list)

    def to_record(self) -> DnsRecord:
        return DnsRecord(
            name=self.name,
            api_token=self.api_token,
            zone_id=self.zone_id,
            record_id=self.record_id,
            webhooks=tuple(self.webhooks),
        )


class DnsConfiguration(BaseModel):
    """Separate lists of A and AAAA records."""

    model_config = ConfigDict(frozen=True)

    a: list[RecordConfig] = Field(default_factory=list)
    aaaa: list[RecordConfig] = Field(default_factory=list)

    def records_for(self, record_type: str) -> list[DnsRecord]:
        """
        Returns the configured records for an address family.

        Args:
            record_type: "A" or "AAAA".

        Returns:
            A list of DnsRecord values, possibly empty.
        """
        entries = self.a if record_type == "A" else self.aaaa
        return [entry.to_record() for entry in entries]


def load_dns_configuration(config_path: str | None) -> DnsConfiguration:
    """
    Reads and validates the JSON record configuration.

    Args:
        config_path: Path to the configuration file (DDNS_CONFIG_PATH).

    Returns:
        A DnsConfiguration with at least one record.

    Raises:
        ConfigLoadError: If the path is unset, the file cannot be read or
                         parsed, or it contains no records.
    """
    if not config_path:
        raise ConfigLoadError("DDNS_CONFIG_PATH environment variable not set")

    try:
        raw = Path(config_path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigLoadError(f"Failed to read config file: {exc}") from exc

    try:
        configuration = DnsConfiguration.model_validate_json(raw)
    except ValidationError as exc:
        raise ConfigLoadError(f"Failed to parse config file: {exc}") from exc

    if not configuration.a and not configuration.aaaa:
        raise ConfigLoadError("No DNS records found in config file")

    logger.debug(
        "Loaded %d A and %d AAAA record(s) from %s",
        len(configuration.a),
        len(configuration.aaaa),
        config_path,
    )
    return configuration
