"""Monitoring REST API client."""

from .client import API, APIClient
from .models import (
    Broker,
    BrokerDetail,
    Check,
    CheckBundle,
    CheckBundleConfig,
    CheckBundleMetric,
    MetricCluster,
    MetricQuery,
)

__all__ = [
    "API",
    "APIClient",
    "Broker",
    "BrokerDetail",
    "Check",
    "CheckBundle",
    "CheckBundleConfig",
    "CheckBundleMetric",
    "MetricCluster",
    "MetricQuery",
]
