"""Broker selection for new checks and broker identity for trap URLs."""

import asyncio
import contextlib
import ipaddress
import logging
import random
import time
from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import urlsplit

from circmetrics.api.client import API
from circmetrics.api.models import Broker, BrokerDetail
from circmetrics.config.schema import BrokerConfig
from circmetrics.errors import BrokerSelectionError

logger = logging.getLogger(__name__)

DEFAULT_BROKER_PORT = 43191
PUBLIC_TRAP_HOST = "trap.noit.circonus.net"
VALID_BROKER_TYPES = ("circonus", "enterprise")
STATUS_ACTIVE = "active"


@dataclass
class BrokerCandidate:
    """A broker that passed validation, with its measured connect time."""

    broker: Broker
    latency_ms: float


def broker_address(detail: BrokerDetail) -> tuple[str, int]:
    """Host and port a broker instance accepts submissions on.

    Prefers the external host/port (brokers behind NAT) over the instance IP.
    """
    if detail.external_port:
        port = detail.external_port
    elif detail.port:
        port = detail.port
    else:
        port = DEFAULT_BROKER_PORT

    host = detail.external_host or detail.ipaddress or ""

    # The public trap endpoint only listens on 443
    if host == PUBLIC_TRAP_HOST:
        port = 443

    return host, port


async def probe_latency(host: str, port: int, timeout: float) -> Optional[float]:
    """
    Measure how long a TCP connect to a broker takes.

    Args:
        host: Broker host
        port: Broker port
        timeout: Seconds before the broker is considered unresponsive

    Returns:
        Connect time in milliseconds, or None if unreachable in time
    """
    start = time.monotonic()
    try:
        _, writer = await asyncio.wait_for(asyncio.open_connection(host, port), timeout=timeout)
    except (OSError, asyncio.TimeoutError) as e:
        logger.debug("Broker %s:%d unreachable: %s", host, port, e)
        return None

    latency_ms = (time.monotonic() - start) * 1000
    writer.close()
    with contextlib.suppress(OSError):
        await writer.wait_closed()
    return latency_ms


async def check_broker(
    broker: Broker, check_type: str, max_response_time: float
) -> Optional[BrokerCandidate]:
    """
    Validate a broker for hosting a check of ``check_type``.

    A broker is usable when it is a circonus/enterprise broker with at least
    one active instance that has the check type's module loaded and accepts a
    TCP connection within ``max_response_time``.

    Returns:
        Candidate with the first responsive instance's latency, or None
    """
    if broker.type not in VALID_BROKER_TYPES:
        return None

    for detail in broker.details:
        if detail.status != STATUS_ACTIVE:
            continue
        if check_type not in detail.modules:
            continue

        host, port = broker_address(detail)
        if not host:
            continue

        latency_ms = await probe_latency(host, port, max_response_time)
        if latency_ms is not None:
            return BrokerCandidate(broker=broker, latency_ms=latency_ms)

        logger.warning(
            "Broker %s (%s:%d) did not respond within %.3fs",
            broker.cid,
            host,
            port,
            max_response_time,
        )

    return None


def pick_fastest(candidates: List[BrokerCandidate]) -> BrokerCandidate:
    """Pick the lowest latency candidate, at random among equals.

    Enterprise brokers, when any are valid, win over public ones.
    """
    enterprise = [c for c in candidates if c.broker.type == "enterprise"]
    if enterprise:
        candidates = enterprise

    best = min(c.latency_ms for c in candidates)
    fastest = [c for c in candidates if c.latency_ms == best]
    return random.choice(fastest)


async def select_broker(api: API, config: BrokerConfig, check_type: str) -> Broker:
    """
    Choose a broker for a new check.

    Args:
        api: API client
        config: Broker selection settings
        check_type: Type of check the broker must support

    Returns:
        Selected broker

    Raises:
        BrokerSelectionError: If no brokers exist or none are valid
    """
    if config.select_tag:
        brokers = await api.search_brokers(filters={"f__tags_has": [config.select_tag]})
    else:
        brokers = await api.fetch_brokers()

    if not brokers:
        raise BrokerSelectionError("zero brokers found")

    results = await asyncio.gather(
        *(check_broker(b, check_type, config.max_response_time) for b in brokers)
    )
    candidates = [c for c in results if c is not None]

    if not candidates:
        raise BrokerSelectionError(f"found {len(brokers)} broker(s), zero are valid")

    selected = pick_fastest(candidates)
    logger.info(
        "Selected broker %s (%s) in %.1fms",
        selected.broker.cid,
        selected.broker.name,
        selected.latency_ms,
    )
    return selected.broker


async def get_broker(api: API, config: BrokerConfig, check_type: str) -> Broker:
    """Use the configured broker if any, otherwise select one.

    Raises:
        BrokerSelectionError: If the configured broker is not valid
    """
    if config.id > 0:
        broker = await api.fetch_broker_by_id(config.id)
        if await check_broker(broker, check_type, config.max_response_time) is None:
            raise BrokerSelectionError(
                f"designated broker {config.id} [{broker.name}] is invalid "
                f"(not active, does not support {check_type}, or unreachable)"
            )
        return broker

    return await select_broker(api, config, check_type)


def get_broker_cn(broker: Broker, submission_url: str) -> str:
    """
    Name to verify the trap's TLS certificate against.

    Broker certificates carry the broker CN, while trap URLs frequently use
    the broker's IP address.

    Args:
        broker: Broker hosting the check
        submission_url: Trap URL

    Returns:
        The URL host if it is a name, else the CN of the matching broker instance

    Raises:
        BrokerSelectionError: If an IP host matches no broker instance
    """
    host = urlsplit(submission_url).hostname or ""

    try:
        ipaddress.ip_address(host)
    except ValueError:
        return host

    for detail in broker.details:
        if host in (detail.ipaddress, detail.external_host):
            return detail.cn

    raise BrokerSelectionError(f"Unable to match URL host ({host}) to Broker {broker.cid}")
