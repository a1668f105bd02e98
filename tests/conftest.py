"""
tests/conftest.py

Shared pytest fixtures used by both unit and integration test suites.
All HTTP fixtures use respx.mock, so no real network calls are made in any
test, and all cache directories live under pytest's tmp_path.
"""

from __future__ import annotations

import logging

import httpx
import pytest
import respx
import structlog

from clouddns.cloudflare.dns_provider import DnsRecord
from clouddns.logger import HANDLER_NAME

# ---------------------------------------------------------------------------
# HTTP mock fixture — intercepts all httpx calls
# ---------------------------------------------------------------------------


@pytest.fixture()
def mock_http():
    """
    Yields a respx router that intercepts all httpx.AsyncClient calls.

    No real network traffic is allowed during tests. Use this fixture
    wherever a service or client would normally make an outbound request.
    """
    with respx.mock(assert_all_called=False) as router:
        yield router


# ---------------------------------------------------------------------------
# Shared httpx.AsyncClient fixture
# ---------------------------------------------------------------------------


@pytest.fixture()
async def http_client():
    """
    Yields a real httpx.AsyncClient instance for use in tests.

    Pair with the mock_http fixture so all requests are intercepted by respx.
    The client is closed after each test.
    """
    async with httpx.AsyncClient() as client:
        yield client


# ---------------------------------------------------------------------------
# Domain fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def cache_dir(tmp_path):
    """Yields an (initially missing) cache directory under tmp_path."""
    return tmp_path / "cache"


@pytest.fixture()
def make_record():
    """Returns a factory for DnsRecord values with sensible defaults."""

    def _make(
        name: str = "home.example.com",
        record_id: str = "rec123",
        zone_id: str = "zone123",
        api_token: str = "test-token",
        webhooks: tuple[str, ...] = (),
    ) -> DnsRecord:
        return DnsRecord(
            name=name,
            api_token=api_token,
            zone_id=zone_id,
            record_id=record_id,
            webhooks=webhooks,
        )

    return _make


# ---------------------------------------------------------------------------
# Logging isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_app_logging():
    """Undoes configure_logging() after each test."""
    root_logger = logging.getLogger()
    level = root_logger.level
    yield
    for handler in list(root_logger.handlers):
        if handler.get_name() == HANDLER_NAME:
            root_logger.removeHandler(handler)
    root_logger.setLevel(level)
    structlog.reset_defaults()
