"""Check manager: locate or create the trap check this process submits to."""

import asyncio
import logging
import ssl
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterable, List, Optional, Tuple
from urllib.parse import urlsplit

from circmetrics.api.cid import CHECK_PREFIX, id_from_cid
from circmetrics.api.client import API
from circmetrics.api.models import Broker, Check, CheckBundle, CheckBundleConfig, CheckBundleMetric
from circmetrics.checkmgr.broker import get_broker, get_broker_cn
from circmetrics.checkmgr.metrics import MetricInventory
from circmetrics.checkmgr.secret import generate_secret
from circmetrics.config.defaults import (
    default_display_name,
    default_instance_id,
    default_search_tag,
)
from circmetrics.config.schema import CircMetricsConfig
from circmetrics.errors import (
    AmbiguousMatchError,
    BrokerSelectionError,
    CheckManagerConfigError,
    CheckNotFoundError,
)

logger = logging.getLogger(__name__)

STATUS_ACTIVE = "active"

# Defaults for check bundles created on demand
NEW_CHECK_PERIOD = 60
NEW_CHECK_TIMEOUT = 10


class ResolutionStatus(Enum):
    """Lifecycle of trap resolution."""

    UNRESOLVED = "unresolved"
    RESOLVING = "resolving"
    RESOLVED = "resolved"
    FAILED = "failed"  # Last attempt raised; the next call tries again


@dataclass
class TrapState:
    """Resolution state owned by one check manager."""

    status: ResolutionStatus = ResolutionStatus.UNRESOLVED
    url: str = ""
    cn: str = ""
    last_update: Optional[datetime] = None
    check_bundle: Optional[CheckBundle] = None
    broker: Optional[Broker] = None
    error: Optional[BaseException] = None
    # Check bundle was created here with the well-known fallback secret
    insecure_secret: bool = False


@dataclass(frozen=True)
class Trap:
    """Where and how to submit metrics."""

    url: str
    cn: str = ""
    ssl_context: Optional[ssl.SSLContext] = field(default=None, compare=False)


@dataclass
class _Resolution:
    url: str
    cn: str = ""
    check_bundle: Optional[CheckBundle] = None
    broker: Optional[Broker] = None
    check_id: Optional[int] = None
    insecure_secret: bool = False


def search_criteria(instance_id: str, check_type: str, search_tag: str) -> str:
    """Search expression for this process's active check bundle."""
    return f'(active:1)(host:"{instance_id}")(type:"{check_type}")(tags:{search_tag})'


class CheckManager:
    """
    Resolves, once per manager, the trap URL metrics are submitted to.

    Strategies, first applicable wins:

    - Check by submission URL (then remembered by check id)
    - Check by numeric check id
    - Check bundle search, creating a new check bundle if none matches

    Without an API token the manager is disabled and can only use a
    configured submission URL verbatim.
    """

    def __init__(self, config: CircMetricsConfig, api: Optional[API] = None):
        """
        Initialize check manager.

        Args:
            config: circmetrics configuration
            api: API client (built from ``config.api`` if omitted)

        Raises:
            CheckManagerConfigError: If neither an API token nor a submission URL is set
        """
        api_cfg = config.api
        check_cfg = config.check

        self.enabled = bool(api_cfg.token)
        if not self.enabled and not check_cfg.submission_url:
            raise CheckManagerConfigError(
                "invalid check manager configuration (no API token AND no submission url)"
            )

        self.api = api or API.from_config(api_cfg)
        self.broker_config = config.broker

        self.check_submission_url = check_cfg.submission_url or ""
        self.check_id = check_cfg.id
        self.check_type = check_cfg.type
        self.check_instance_id = check_cfg.instance_id or default_instance_id(api_cfg.app)
        self.check_display_name = check_cfg.display_name or default_display_name(
            self.check_instance_id
        )
        self.check_search_tag = check_cfg.search_tag or default_search_tag(api_cfg.app)
        self.check_secret = check_cfg.secret or ""
        self.check_tags = list(check_cfg.tags)
        self.max_url_age = check_cfg.max_url_age

        self.state = TrapState()
        self.inventory = MetricInventory(force_activation=check_cfg.force_metric_activation)

        self._lock = asyncio.Lock()
        self._bundle_lock = asyncio.Lock()
        self._ssl_context: Optional[ssl.SSLContext] = None

    @property
    def trap_url(self) -> str:
        return self.state.url

    @property
    def trap_cn(self) -> str:
        return self.state.cn

    @property
    def check_bundle(self) -> Optional[CheckBundle]:
        return self.state.check_bundle

    async def initialize_trap_url(self) -> None:
        """
        Resolve the trap URL unless already resolved.

        Concurrent callers serialize on the manager's lock; only the first
        performs remote calls, the rest observe the resolved state. A failed
        attempt leaves nothing committed and may be retried by calling again.

        Raises:
            CheckManagerConfigError: If disabled and no submission URL is set
            CircMetricsError: If any lookup or creation step fails
        """
        if self.state.status is ResolutionStatus.RESOLVED:
            return

        async with self._lock:
            if self.state.status is ResolutionStatus.RESOLVED:
                return

            self.state.status = ResolutionStatus.RESOLVING
            try:
                resolution = await self._resolve()
            except BaseException as e:
                self.state.status = ResolutionStatus.FAILED
                self.state.error = e
                raise

            self._commit(resolution)

    async def _resolve(self) -> _Resolution:
        if not self.enabled:
            if self.check_submission_url:
                return _Resolution(url=self.check_submission_url)
            raise CheckManagerConfigError(
                "Unable to initialize trap, check manager is disabled"
            )

        check: Optional[Check] = None
        check_bundle: Optional[CheckBundle] = None
        broker: Optional[Broker] = None
        check_id: Optional[int] = None
        insecure_secret = False

        if self.check_submission_url:
            logger.debug("Looking up check by submission URL")
            check = await self.api.fetch_check_by_submission_url(self.check_submission_url)
            # Remember the check by id: if the check moves to another broker the
            # old submission URL can no longer be looked up
            try:
                check_id = id_from_cid(check.cid, CHECK_PREFIX)
                if check_id <= 0:
                    raise ValueError(f"check id {check_id} is not positive")
            except ValueError as e:
                check_id = None
                logger.warning(
                    "Submission URL check to check id: unable to convert %s to int: %s",
                    check.cid,
                    e,
                )
        elif self.check_id > 0:
            logger.debug("Looking up check %d", self.check_id)
            check = await self.api.fetch_check_by_id(self.check_id)
        else:
            criteria = search_criteria(
                self.check_instance_id, self.check_type, self.check_search_tag
            )
            logger.debug("Searching check bundles: %s", criteria)
            check_bundle = await self.check_bundle_search(criteria)
            if check_bundle is None:
                check_bundle, broker, insecure_secret = await self.create_new_check()

        if check_bundle is None:
            if check is None:
                raise CheckNotFoundError("Unable to retrieve, find, or create check")
            check_bundle = await self.api.fetch_check_bundle_by_cid(check.check_bundle_cid)

        if broker is None:
            if not check_bundle.brokers:
                raise BrokerSelectionError(f"Check bundle {check_bundle.cid} lists no brokers")
            broker = await self.api.fetch_broker_by_cid(check_bundle.brokers[0])

        trap_url = check_bundle.config.submission_url
        if not trap_url:
            raise CheckNotFoundError(f"Check bundle {check_bundle.cid} has no submission URL")

        cn = get_broker_cn(broker, trap_url)

        return _Resolution(
            url=trap_url,
            cn=cn,
            check_bundle=check_bundle,
            broker=broker,
            check_id=check_id,
            insecure_secret=insecure_secret,
        )

    def _commit(self, resolution: _Resolution) -> None:
        if resolution.check_id is not None:
            self.check_id = resolution.check_id
            self.check_submission_url = ""

        self.state = TrapState(
            status=ResolutionStatus.RESOLVED,
            url=resolution.url,
            cn=resolution.cn,
            last_update=datetime.now(),
            check_bundle=resolution.check_bundle,
            broker=resolution.broker,
            insecure_secret=resolution.insecure_secret,
        )
        self.inventory_metrics()

        logger.info("Trap URL resolved: %s (cn=%s)", resolution.url, resolution.cn or "-")

    async def check_bundle_search(self, criteria: str) -> Optional[CheckBundle]:
        """
        Find the single active check bundle matching ``criteria``.

        Args:
            criteria: Search expression

        Returns:
            The active match, or None if there is none (a new check is needed)

        Raises:
            AmbiguousMatchError: If more than one active bundle matches
        """
        bundles = await self.api.search_check_bundles(criteria)
        if not bundles:
            return None

        active = [b for b in bundles if b.status == STATUS_ACTIVE]
        if len(active) > 1:
            raise AmbiguousMatchError(
                f"Multiple possibilities, {len(active)} active check bundles match criteria {criteria}"
            )
        if not active:
            logger.debug("%d check bundle(s) match, none active", len(bundles))
            return None

        return active[0]

    async def create_new_check(self) -> Tuple[CheckBundle, Broker, bool]:
        """
        Create a check bundle for this process.

        Returns:
            The created check bundle, the broker it was placed on, and whether
            its secret is the well-known fallback value
        """
        secret = self.check_secret
        insecure_secret = False
        if not secret:
            result = generate_secret()
            secret = result.value
            insecure_secret = result.insecure_fallback

        broker = await get_broker(self.api, self.broker_config, self.check_type)

        bundle = CheckBundle(
            brokers=[broker.cid],
            config=CheckBundleConfig(async_metrics=True, secret=secret),
            display_name=self.check_display_name,
            metrics=[],
            metric_limit=0,
            notes="",
            period=NEW_CHECK_PERIOD,
            status=STATUS_ACTIVE,
            tags=[self.check_search_tag, *self.check_tags],
            target=self.check_instance_id,
            timeout=NEW_CHECK_TIMEOUT,
            type=self.check_type,
        )

        created = await self.api.create_check_bundle(bundle)
        logger.info("Created check bundle %s on broker %s", created.cid, broker.cid)
        if insecure_secret:
            logger.warning(
                "Check bundle %s was created with the insecure fallback secret", created.cid
            )
        return created, broker, insecure_secret

    async def get_trap(self) -> Trap:
        """
        Trap URL, broker CN and TLS context for submitting metrics.

        Resolves the trap first if needed.
        """
        await self.initialize_trap_url()

        ssl_context = None
        if urlsplit(self.state.url).scheme == "https":
            ssl_context = await self._load_ssl_context()

        return Trap(url=self.state.url, cn=self.state.cn, ssl_context=ssl_context)

    async def _load_ssl_context(self) -> ssl.SSLContext:
        if self._ssl_context is None:
            if self.enabled:
                ca_cert = await self.api.fetch_ca_cert()
                self._ssl_context = ssl.create_default_context(cadata=ca_cert)
            else:
                self._ssl_context = ssl.create_default_context()
        return self._ssl_context

    def trap_age(self) -> Optional[float]:
        """Seconds since the trap was resolved, None if unresolved."""
        if self.state.last_update is None:
            return None
        return (datetime.now() - self.state.last_update).total_seconds()

    async def reset_trap(self) -> None:
        """Discard the resolved trap and resolve again."""
        async with self._lock:
            self.state = TrapState()
            self.inventory_metrics()
        await self.initialize_trap_url()

    async def refresh_trap(self) -> None:
        """Re-resolve the trap if it is older than ``max_url_age``."""
        age = self.trap_age()
        if age is None:
            await self.initialize_trap_url()
            return
        if age >= self.max_url_age:
            logger.info("Trap URL is %.0fs old, re-resolving", age)
            await self.reset_trap()

    def inventory_metrics(self) -> None:
        """Rebuild the metric inventory from the retained check bundle."""
        self.inventory.load(self.state.check_bundle)

    def is_metric_active(self, name: str) -> tuple[bool, bool]:
        """Return ``(active, exists)`` for a metric on the check bundle."""
        return self.inventory.is_active(name)

    def activate_metric(self, name: str) -> bool:
        """Whether ``name`` must be added to, or re-enabled on, the check bundle."""
        return self.inventory.needs_activation(name)

    async def add_new_metrics(self, new_metrics: Iterable[CheckBundleMetric]) -> bool:
        """
        Add metrics to the retained check bundle.

        Args:
            new_metrics: Metrics seen in submissions

        Returns:
            True if the check bundle was updated
        """
        if not self.enabled or self.state.check_bundle is None:
            return False

        async with self._bundle_lock:
            bundle = self.state.check_bundle
            merged: Optional[List[CheckBundleMetric]] = self.inventory.merge(bundle, new_metrics)
            if merged is None:
                return False

            updated = await self.api.update_check_bundle(bundle.model_copy(update={"metrics": merged}))
            self.state.check_bundle = updated
            self.inventory_metrics()

        logger.debug("Check bundle %s now has %d metrics", updated.cid, len(updated.metrics))
        return True

    async def close(self):
        await self.api.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
