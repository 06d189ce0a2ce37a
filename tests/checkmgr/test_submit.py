"""Tests for metric submission to the trap."""

import json
from datetime import datetime, timedelta
from unittest.mock import MagicMock, patch

import httpx
import pytest
import respx
from httpx import Response

from circmetrics.checkmgr.manager import CheckManager
from circmetrics.checkmgr.submit import submit_metrics
from circmetrics.config.schema import CheckConfig, CircMetricsConfig

API_URL = "https://api.example.com/v2"
TRAP_URL = "https://10.0.0.1:43191/module/httptrap/1111-2222/s3cr3t"

METRICS = {"requests": {"_type": "n", "_value": 10}, "errors": {"_type": "n", "_value": 0}}


def disabled_manager() -> CheckManager:
    return CheckManager(CircMetricsConfig(check=CheckConfig(submission_url=TRAP_URL)))


@pytest.mark.asyncio
@respx.mock
async def test_submit_metrics_disabled():
    """Test submitting to a configured trap URL."""
    route = respx.put(TRAP_URL).mock(return_value=Response(200, json={"stats": 2}))
    manager = disabled_manager()

    async with httpx.AsyncClient() as client:
        accepted = await submit_metrics(manager, METRICS, client=client)

    assert accepted == 2
    request = route.calls.last.request
    assert json.loads(request.content) == METRICS
    assert "sni_hostname" not in request.extensions

    await manager.close()


@pytest.mark.asyncio
@respx.mock
async def test_submit_metrics_uses_broker_cn(config, check_json, bundle_json, broker_json):
    """Test the TLS server name is the broker CN, not the IP in the URL."""
    config.check.id = 100
    respx.get(f"{API_URL}/check/100").mock(return_value=Response(200, json=check_json))
    respx.get(f"{API_URL}/check_bundle/10").mock(return_value=Response(200, json=bundle_json))
    respx.get(f"{API_URL}/broker/1").mock(return_value=Response(200, json=broker_json))
    respx.get(f"{API_URL}/pki/ca.crt").mock(return_value=Response(200, json={"contents": "PEM"}))
    route = respx.put(TRAP_URL).mock(return_value=Response(200, json={"stats": 2}))

    manager = CheckManager(config)
    with patch("circmetrics.checkmgr.manager.ssl.create_default_context", return_value=MagicMock()):
        async with httpx.AsyncClient() as client:
            accepted = await submit_metrics(manager, METRICS, client=client)

    assert accepted == 2
    assert route.calls.last.request.extensions["sni_hostname"] == "broker1.example.com"

    await manager.close()


@pytest.mark.asyncio
@respx.mock
async def test_submit_metrics_empty_response():
    respx.put(TRAP_URL).mock(return_value=Response(200))
    manager = disabled_manager()

    async with httpx.AsyncClient() as client:
        assert await submit_metrics(manager, METRICS, client=client) == 0

    await manager.close()


@pytest.mark.asyncio
@respx.mock
async def test_submit_failure_reraises_and_refreshes_stale_trap(caplog):
    """Test a failed submission re-resolves an expired trap and re-raises."""
    respx.put(TRAP_URL).mock(return_value=Response(500))
    manager = disabled_manager()
    await manager.initialize_trap_url()
    stale = datetime.now() - timedelta(seconds=manager.max_url_age + 10)
    manager.state.last_update = stale

    async with httpx.AsyncClient() as client:
        with caplog.at_level("WARNING"):
            with pytest.raises(httpx.HTTPStatusError):
                await submit_metrics(manager, METRICS, client=client)

    assert "Metric submission" in caplog.text
    assert manager.state.last_update > stale
    assert manager.trap_url == TRAP_URL

    await manager.close()


@pytest.mark.asyncio
@respx.mock
async def test_submit_failure_keeps_fresh_trap():
    respx.put(TRAP_URL).mock(side_effect=httpx.ConnectError("refused"))
    manager = disabled_manager()
    await manager.initialize_trap_url()
    resolved_at = manager.state.last_update

    async with httpx.AsyncClient() as client:
        with pytest.raises(httpx.ConnectError):
            await submit_metrics(manager, METRICS, client=client)

    assert manager.state.last_update == resolved_at

    await manager.close()
