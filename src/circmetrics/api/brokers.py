"""Broker API support - fetch, search and the broker CA certificate."""

from typing import Optional

from circmetrics.api.cid import BROKER_CID_RE, BROKER_PREFIX, cid_from_id, validate_cid
from circmetrics.api.models import Broker, parse_resource, parse_resources
from circmetrics.api.query import search_params
from circmetrics.errors import APIError

CA_CERT_PATH = "/pki/ca.crt"


class BrokersMixin:
    """Broker bindings for :class:`~circmetrics.api.client.APIClient`."""

    async def fetch_broker_by_cid(self, cid: str) -> Broker:
        broker_cid = validate_cid(cid, BROKER_CID_RE, "broker")
        return parse_resource(Broker, await self.get(broker_cid))

    async def fetch_broker_by_id(self, broker_id: int) -> Broker:
        return await self.fetch_broker_by_cid(cid_from_id(BROKER_PREFIX, broker_id))

    async def fetch_brokers(self) -> list[Broker]:
        return parse_resources(Broker, await self.get(BROKER_PREFIX))

    async def search_brokers(
        self,
        search: Optional[str] = None,
        filters: Optional[dict[str, list[str]]] = None,
    ) -> list[Broker]:
        params = search_params(search, filters)
        if not params:
            return await self.fetch_brokers()
        return parse_resources(Broker, await self.get(BROKER_PREFIX, params=params))

    async def fetch_ca_cert(self) -> str:
        """
        Fetch the CA certificate that signs broker certificates.

        Returns:
            PEM encoded certificate

        Raises:
            APIError: If the response carries no certificate contents
        """
        data = await self.get(CA_CERT_PATH)
        contents = data.get("contents") if isinstance(data, dict) else None
        if not contents:
            raise APIError("Unexpected CA certificate response (no contents)", path=CA_CERT_PATH)
        return contents
