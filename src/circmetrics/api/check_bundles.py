"""Check bundle API support - fetch, search, create, update and delete."""

from typing import Optional

from circmetrics.api.cid import CHECK_BUNDLE_CID_RE, CHECK_BUNDLE_PREFIX, validate_cid
from circmetrics.api.models import CheckBundle, parse_resource, parse_resources, to_payload
from circmetrics.api.query import search_params


class CheckBundlesMixin:
    """Check bundle bindings for :class:`~circmetrics.api.client.APIClient`."""

    async def fetch_check_bundle_by_cid(self, cid: str) -> CheckBundle:
        bundle_cid = validate_cid(cid, CHECK_BUNDLE_CID_RE, "check bundle")
        return parse_resource(CheckBundle, await self.get(bundle_cid))

    async def fetch_check_bundles(self) -> list[CheckBundle]:
        return parse_resources(CheckBundle, await self.get(CHECK_BUNDLE_PREFIX))

    async def search_check_bundles(
        self,
        search: Optional[str] = None,
        filters: Optional[dict[str, list[str]]] = None,
    ) -> list[CheckBundle]:
        """
        Search check bundles.

        Args:
            search: Search expression, e.g. ``(active:1)(type:"httptrap")``
            filters: Field filters, e.g. ``{"f_tags_has": ["service:app"]}``

        Returns:
            Matching check bundles, all bundles when no criteria are given
        """
        params = search_params(search, filters)
        if not params:
            return await self.fetch_check_bundles()
        return parse_resources(CheckBundle, await self.get(CHECK_BUNDLE_PREFIX, params=params))

    async def create_check_bundle(self, bundle: CheckBundle) -> CheckBundle:
        result = await self.post(CHECK_BUNDLE_PREFIX, to_payload(bundle))
        return parse_resource(CheckBundle, result)

    async def update_check_bundle(self, bundle: CheckBundle) -> CheckBundle:
        bundle_cid = validate_cid(bundle.cid, CHECK_BUNDLE_CID_RE, "check bundle")
        result = await self.put(bundle_cid, to_payload(bundle))
        return parse_resource(CheckBundle, result)

    async def delete_check_bundle_by_cid(self, cid: str) -> bool:
        bundle_cid = validate_cid(cid, CHECK_BUNDLE_CID_RE, "check bundle")
        await self.delete(bundle_cid)
        return True
