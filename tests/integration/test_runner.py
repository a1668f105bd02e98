"""
tests/integration/test_runner.py

End-to-end tests for clouddns/runner.py and the clouddns entry point.
Real collaborators are wired together; every outbound request (IP discovery,
Cloudflare, webhooks) is intercepted by respx and the cache lives under
tmp_path.
"""

from __future__ import annotations

import asyncio
import json

import pytest
import httpx

from clouddns.__main__ import main
from clouddns.config import DnsConfiguration, Settings
from clouddns.runner import run
from clouddns.services.sync_service import SyncOutcome

_IPV4 = "https://api.ipify.org"
_IPV6 = "https://api6.ipify.org"
_CF = "https://api.cloudflare.com/client/v4/zones/zone123/dns_records"
_DISCORD = "https://discord.com/api/webhooks/42/secret"
_GENERIC = "https://hooks.example.net/ddns"


def _record(record_id="rec123", name="home.example.com", **extra):
    return {
        "name": name,
        "api_token": "token",
        "zone_id": "zone123",
        "record_id": record_id,
        **extra,
    }


def _configuration(**lists) -> DnsConfiguration:
    return DnsConfiguration.model_validate(lists)


def _cf_ok():
    return httpx.Response(200, json={"success": True, "errors": [], "result": {}})


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_single_record_without_cache_dir(mock_http, tmp_path):
    """One A-record, caching disabled: one PUT, no cache file anywhere."""
    mock_http.get(_IPV4).mock(return_value=httpx.Response(200, text="203.0.113.9\n"))
    put = mock_http.put(f"{_CF}/rec123").mock(return_value=_cf_ok())

    outcomes = await run(
        Settings(config_path="unused", cache_path=""),
        _configuration(a=[_record()]),
    )

    assert outcomes == {"A": [SyncOutcome.UPDATED]}
    assert put.call_count == 1
    assert json.loads(put.calls.last.request.content)["content"] == "203.0.113.9"
    assert list(tmp_path.iterdir()) == []


@pytest.mark.asyncio
async def test_cached_address_skips_update(mock_http, tmp_path):
    """Cache already holds the resolved address: zero PUTs, file unchanged."""
    cache_dir = tmp_path / "cache"
    cache_dir.mkdir()
    cache_file = cache_dir / "cached_ip_A_home_example_com_rec123.txt"
    cache_file.write_text("203.0.113.9")
    mtime = cache_file.stat().st_mtime_ns

    mock_http.get(_IPV4).mock(return_value=httpx.Response(200, text="203.0.113.9"))
    put = mock_http.put(f"{_CF}/rec123").mock(return_value=_cf_ok())

    outcomes = await run(
        Settings(config_path="unused", cache_path=str(cache_dir)),
        _configuration(a=[_record()]),
    )

    assert outcomes == {"A": [SyncOutcome.SKIPPED]}
    assert not put.called
    assert cache_file.read_text() == "203.0.113.9"
    assert cache_file.stat().st_mtime_ns == mtime


@pytest.mark.asyncio
async def test_changed_address_updates_cache_and_notifies_both_webhooks(mock_http, tmp_path):
    cache_dir = tmp_path / "cache"
    mock_http.get(_IPV4).mock(return_value=httpx.Response(200, text="198.51.100.7"))
    mock_http.put(f"{_CF}/rec123").mock(return_value=_cf_ok())
    discord = mock_http.post(_DISCORD).mock(return_value=httpx.Response(204))
    generic = mock_http.post(_GENERIC).mock(return_value=httpx.Response(200))

    await run(
        Settings(config_path="unused", cache_path=str(cache_dir)),
        _configuration(a=[_record(webhooks=[_DISCORD, _GENERIC])]),
    )

    assert json.loads(discord.calls.last.request.content) == {"content": "198.51.100.7"}
    assert json.loads(generic.calls.last.request.content) == {
        "record_name": "home.example.com",
        "record_type": "A",
        "ip_address": "198.51.100.7",
    }
    assert (cache_dir / "cached_ip_A_home_example_com_rec123.txt").read_text() == "198.51.100.7"


@pytest.mark.asyncio
async def test_ipv6_discovery_failure_does_not_block_ipv4(mock_http, tmp_path):
    mock_http.get(_IPV4).mock(return_value=httpx.Response(200, text="203.0.113.9"))
    mock_http.get(_IPV6).mock(side_effect=httpx.ConnectTimeout("timed out"))
    a_put = mock_http.put(f"{_CF}/rec-a").mock(return_value=_cf_ok())
    aaaa_put = mock_http.put(f"{_CF}/rec-aaaa").mock(return_value=_cf_ok())

    outcomes = await run(
        Settings(config_path="unused", cache_path=str(tmp_path / "cache")),
        _configuration(a=[_record("rec-a")], aaaa=[_record("rec-aaaa")]),
    )

    assert outcomes == {"A": [SyncOutcome.UPDATED], "AAAA": []}
    assert a_put.call_count == 1
    assert not aaaa_put.called


@pytest.mark.asyncio
async def test_failed_update_sends_no_webhooks(mock_http, tmp_path):
    cache_dir = tmp_path / "cache"
    mock_http.get(_IPV4).mock(return_value=httpx.Response(200, text="203.0.113.9"))
    mock_http.put(f"{_CF}/rec123").mock(
        return_value=httpx.Response(
            401, json={"success": False, "errors": [{"code": 10000, "message": "Authentication error"}]}
        )
    )
    hook = mock_http.post(_GENERIC).mock(return_value=httpx.Response(200))

    outcomes = await run(
        Settings(config_path="unused", cache_path=str(cache_dir)),
        _configuration(a=[_record(webhooks=[_GENERIC])]),
    )

    assert outcomes == {"A": [SyncOutcome.FAILED]}
    assert not hook.called
    assert not (cache_dir / "cached_ip_A_home_example_com_rec123.txt").exists()


@pytest.mark.asyncio
async def test_family_without_records_is_not_resolved(mock_http):
    mock_http.get(_IPV4).mock(return_value=httpx.Response(200, text="203.0.113.9"))
    v6 = mock_http.get(_IPV6).mock(return_value=httpx.Response(200, text="2001:db8::1"))
    mock_http.put(f"{_CF}/rec123").mock(return_value=_cf_ok())

    outcomes = await run(Settings(config_path="unused"), _configuration(a=[_record()]))

    assert set(outcomes) == {"A"}
    assert not v6.called


@pytest.mark.asyncio
async def test_unencodable_token_does_not_cancel_sibling_record(mock_http, tmp_path):
    """A token httpx cannot put in a header fails only its own record."""
    cache_dir = tmp_path / "cache"

    async def slow_ok(request):
        await asyncio.sleep(0.2)
        return _cf_ok()

    mock_http.get(_IPV4).mock(return_value=httpx.Response(200, text="203.0.113.9"))
    bad_put = mock_http.put(f"{_CF}/rec-bad").mock(return_value=_cf_ok())
    good_put = mock_http.put(f"{_CF}/rec-good").mock(side_effect=slow_ok)

    outcomes = await run(
        Settings(config_path="unused", cache_path=str(cache_dir)),
        _configuration(
            a=[
                _record("rec-bad", name="bad.example.com", api_token="t\u00f6k\u00e9n"),
                _record("rec-good", name="good.example.com"),
            ]
        ),
    )

    assert outcomes == {"A": [SyncOutcome.FAILED, SyncOutcome.UPDATED]}
    assert not bad_put.called
    assert good_put.call_count == 1
    assert (cache_dir / "cached_ip_A_good_example_com_rec-good.txt").read_text() == "203.0.113.9"
    assert not (cache_dir / "cached_ip_A_bad_example_com_rec-bad.txt").exists()


# ---------------------------------------------------------------------------
# Entry point exit codes
# ---------------------------------------------------------------------------


def test_main_returns_zero_after_run(mock_http, tmp_path, monkeypatch):
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"a": [_record()]}))
    monkeypatch.setenv("DDNS_CONFIG_PATH", str(config_path))
    monkeypatch.setenv("DDNS_CACHE_PATH", "")
    mock_http.get(_IPV4).mock(return_value=httpx.Response(200, text="203.0.113.9"))
    put = mock_http.put(f"{_CF}/rec123").mock(return_value=_cf_ok())

    assert main() == 0
    assert put.call_count == 1


def test_main_returns_zero_when_records_fail(mock_http, tmp_path, monkeypatch):
    """Per-family failures are logged, not escalated to the exit code."""
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"a": [_record()]}))
    monkeypatch.setenv("DDNS_CONFIG_PATH", str(config_path))
    mock_http.get(_IPV4).mock(return_value=httpx.Response(500))

    assert main() == 0


def test_main_returns_one_without_config_path(monkeypatch):
    monkeypatch.delenv("DDNS_CONFIG_PATH", raising=False)
    assert main() == 1


def test_main_returns_one_for_empty_config(tmp_path, monkeypatch):
    config_path = tmp_path / "config.json"
    config_path.write_text("{}")
    monkeypatch.setenv("DDNS_CONFIG_PATH", str(config_path))

    assert main() == 1


def test_main_accepts_lowercase_log_level(mock_http, tmp_path, monkeypatch):
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"a": [_record()]}))
    monkeypatch.setenv("DDNS_CONFIG_PATH", str(config_path))
    monkeypatch.setenv("DDNS_LOG_LEVEL", "debug")
    mock_http.get(_IPV4).mock(return_value=httpx.Response(200, text="203.0.113.9"))
    mock_http.put(f"{_CF}/rec123").mock(return_value=_cf_ok())

    assert main() == 0
