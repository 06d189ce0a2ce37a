"""Metric submission to the resolved trap."""

import logging
from typing import Any, Optional

import httpx

from circmetrics.checkmgr.manager import CheckManager

logger = logging.getLogger(__name__)

SUBMIT_TIMEOUT = 10.0


async def submit_metrics(
    manager: CheckManager,
    metrics: dict[str, Any],
    client: Optional[httpx.AsyncClient] = None,
) -> int:
    """
    PUT a batch of metrics to the check manager's trap.

    The TLS handshake names the broker CN so certificates issued to the
    broker validate even when the trap URL uses an IP address. On failure
    the trap is refreshed (re-resolved once it is older than
    ``max_url_age``) and the error is re-raised.

    Args:
        manager: Check manager owning the trap
        metrics: Trap payload, e.g. ``{"requests": {"_type": "n", "_value": 1}}``
        client: Pre-built httpx client (mainly for tests)

    Returns:
        Number of metrics the broker accepted
    """
    trap = await manager.get_trap()

    extensions = {"sni_hostname": trap.cn} if trap.cn else None
    owns_client = client is None
    if client is None:
        verify = trap.ssl_context if trap.ssl_context is not None else True
        client = httpx.AsyncClient(verify=verify, timeout=SUBMIT_TIMEOUT)

    try:
        response = await client.put(trap.url, json=metrics, extensions=extensions)
        response.raise_for_status()
    except httpx.HTTPError as e:
        logger.warning("Metric submission to %s failed: %s", trap.url, e)
        await manager.refresh_trap()
        raise
    finally:
        if owns_client:
            await client.aclose()

    data = response.json() if response.content else {}
    stats = data.get("stats", 0) if isinstance(data, dict) else 0
    logger.debug("Submitted %d metrics, broker accepted %s", len(metrics), stats)
    return int(stats)
