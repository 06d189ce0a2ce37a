"""Pytest configuration and shared fixtures."""

import copy

import pytest

from circmetrics.api.client import API
from circmetrics.config.schema import APIConfig, CheckConfig, CircMetricsConfig

API_URL = "https://api.example.com/v2"
TRAP_URL = "https://10.0.0.1:43191/module/httptrap/1111-2222/s3cr3t"

BROKER = {
    "_cid": "/broker/1",
    "_name": "broker-one",
    "_type": "circonus",
    "_tags": ["region:us-east"],
    "_details": [
        {
            "cn": "broker1.example.com",
            "ipaddress": "10.0.0.1",
            "port": 43191,
            "status": "active",
            "modules": ["httptrap", "json"],
        }
    ],
}

CHECK_BUNDLE = {
    "_cid": "/check_bundle/10",
    "_checks": ["/check/100"],
    "_check_uuids": ["1111-2222"],
    "brokers": ["/broker/1"],
    "config": {"async_metrics": True, "secret": "s3cr3t", "submission_url": TRAP_URL},
    "display_name": "host1:testapp /circmetrics",
    "metrics": [
        {"name": "requests", "type": "numeric", "status": "active"},
        {"name": "errors", "type": "numeric", "status": "available"},
    ],
    "metric_limit": 0,
    "period": 60,
    "status": "active",
    "tags": ["service:testapp"],
    "target": "host1:testapp",
    "timeout": 10,
    "type": "httptrap",
}

CHECK = {
    "_cid": "/check/100",
    "_active": True,
    "_broker": "/broker/1",
    "_check_bundle": "/check_bundle/10",
    "_check_uuid": "1111-2222",
    "_details": {},
}


@pytest.fixture
def broker_json() -> dict:
    """Broker response body."""
    return copy.deepcopy(BROKER)


@pytest.fixture
def bundle_json() -> dict:
    """Check bundle response body."""
    return copy.deepcopy(CHECK_BUNDLE)


@pytest.fixture
def check_json() -> dict:
    """Check response body."""
    return copy.deepcopy(CHECK)


@pytest.fixture
def config() -> CircMetricsConfig:
    """Enabled configuration with no identifying check settings."""
    return CircMetricsConfig(
        api=APIConfig(token="test-token", app="testapp", url=API_URL, max_retries=0),
        check=CheckConfig(instance_id="host1:testapp"),
    )


@pytest.fixture
def api(config: CircMetricsConfig) -> API:
    """API client without retries."""
    return API.from_config(config.api)
