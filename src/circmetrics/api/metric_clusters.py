"""Metric cluster API support - fetch, create, update, delete and search."""

from typing import Optional

from circmetrics.api.cid import METRIC_CLUSTER_CID_RE, METRIC_CLUSTER_PREFIX, validate_cid
from circmetrics.api.models import MetricCluster, parse_resource, parse_resources, to_payload
from circmetrics.api.query import search_params

# Friendly names for the "extra" query parameter
CLUSTER_EXTRAS = {
    "metrics": "_matching_metrics",
    "uuids": "_matching_uuid_metrics",
}


def _extra_params(extras: Optional[str]) -> dict[str, str] | None:
    extra = CLUSTER_EXTRAS.get(extras or "")
    return {"extra": extra} if extra else None


class MetricClustersMixin:
    """Metric cluster bindings for :class:`~circmetrics.api.client.APIClient`."""

    async def fetch_metric_cluster(
        self, cid: str, extras: Optional[str] = None
    ) -> MetricCluster:
        """
        Fetch a metric cluster.

        Args:
            cid: Metric cluster CID
            extras: "metrics" or "uuids" to include the matching metrics

        Returns:
            The metric cluster
        """
        cluster_cid = validate_cid(cid, METRIC_CLUSTER_CID_RE, "metric cluster")
        data = await self.get(cluster_cid, params=_extra_params(extras))
        return parse_resource(MetricCluster, data)

    async def fetch_metric_clusters(self, extras: Optional[str] = None) -> list[MetricCluster]:
        data = await self.get(METRIC_CLUSTER_PREFIX, params=_extra_params(extras))
        return parse_resources(MetricCluster, data)

    async def create_metric_cluster(self, cluster: MetricCluster) -> MetricCluster:
        result = await self.post(METRIC_CLUSTER_PREFIX, to_payload(cluster))
        return parse_resource(MetricCluster, result)

    async def update_metric_cluster(self, cluster: MetricCluster) -> MetricCluster:
        cluster_cid = validate_cid(cluster.cid, METRIC_CLUSTER_CID_RE, "metric cluster")
        result = await self.put(cluster_cid, to_payload(cluster))
        return parse_resource(MetricCluster, result)

    async def delete_metric_cluster(self, cluster: MetricCluster) -> bool:
        return await self.delete_metric_cluster_by_cid(cluster.cid)

    async def delete_metric_cluster_by_cid(self, cid: str) -> bool:
        cluster_cid = validate_cid(cid, METRIC_CLUSTER_CID_RE, "metric cluster")
        await self.delete(cluster_cid)
        return True

    async def search_metric_clusters(
        self,
        search: Optional[str] = None,
        filters: Optional[dict[str, list[str]]] = None,
    ) -> list[MetricCluster]:
        params = search_params(search, filters)
        if not params:
            return await self.fetch_metric_clusters()
        data = await self.get(METRIC_CLUSTER_PREFIX, params=params)
        return parse_resources(MetricCluster, data)
