"""Inventory of the metrics a check bundle already knows about."""

from typing import Dict, Iterable, List, Optional

from circmetrics.api.models import CheckBundle, CheckBundleMetric

STATUS_ACTIVE = "active"


class MetricInventory:
    """
    Tracks metric names on the retained check bundle and their status.

    Used to decide which submitted metrics have to be added to (or
    re-activated on) the check bundle.
    """

    def __init__(self, force_activation: bool = False):
        self.force_activation = force_activation
        self._available: Dict[str, bool] = {}

    def load(self, bundle: Optional[CheckBundle]) -> None:
        """Replace the inventory with the metrics of ``bundle``."""
        self._available = {}
        if bundle is None:
            return
        for metric in bundle.metrics:
            self._available[metric.name] = metric.status == STATUS_ACTIVE

    def __len__(self) -> int:
        return len(self._available)

    def __contains__(self, name: str) -> bool:
        return name in self._available

    def is_active(self, name: str) -> tuple[bool, bool]:
        """Return ``(active, exists)`` for a metric name."""
        if name not in self._available:
            return False, False
        return self._available[name], True

    def needs_activation(self, name: str) -> bool:
        """Whether submitting ``name`` requires a check bundle update.

        Unknown metrics always do; disabled ones only with forced activation.
        """
        active, exists = self.is_active(name)
        if not exists:
            return True
        return not active and self.force_activation

    def merge(
        self, bundle: CheckBundle, new_metrics: Iterable[CheckBundleMetric]
    ) -> Optional[List[CheckBundleMetric]]:
        """
        Compute the bundle's metric list with ``new_metrics`` applied.

        Args:
            bundle: Current check bundle
            new_metrics: Metrics to add or re-activate

        Returns:
            Updated metric list, or None if nothing changes
        """
        merged = [metric.model_copy() for metric in bundle.metrics]
        index = {metric.name: i for i, metric in enumerate(merged)}
        changed = False

        for metric in new_metrics:
            if not self.needs_activation(metric.name):
                continue
            if metric.name in index:
                merged[index[metric.name]].status = STATUS_ACTIVE
            else:
                index[metric.name] = len(merged)
                merged.append(metric.model_copy(update={"status": STATUS_ACTIVE}))
            changed = True

        return merged if changed else None
