"""Check API support - fetch by CID, id or submission URL, and search."""

from typing import Optional
from urllib.parse import urlsplit

from circmetrics.api.cid import CHECK_CID_RE, CHECK_PREFIX, cid_from_id, validate_cid
from circmetrics.api.models import Check, parse_resource, parse_resources
from circmetrics.api.query import search_params
from circmetrics.errors import CheckNotFoundError, InvalidSubmissionURLError

TRAP_PATH_PREFIX = "/module/httptrap/"


def check_uuid_from_submission_url(submission_url: str) -> str:
    """Extract the check UUID from a trap URL.

    Trap URLs look like ``https://host:port/module/httptrap/<uuid>/<secret>``.

    Raises:
        InvalidSubmissionURLError: If the path is not a trap path
    """
    path = urlsplit(submission_url).path
    if TRAP_PATH_PREFIX not in path:
        raise InvalidSubmissionURLError(
            f"Invalid submission URL '{submission_url}', unrecognized path"
        )

    parts = path.replace(TRAP_PATH_PREFIX, "", 1).split("/")
    if len(parts) != 2 or not parts[0]:
        raise InvalidSubmissionURLError(
            f"Invalid submission URL '{submission_url}', UUID not where expected"
        )
    return parts[0]


class ChecksMixin:
    """Check bindings for :class:`~circmetrics.api.client.APIClient`."""

    async def fetch_check_by_cid(self, cid: str) -> Check:
        check_cid = validate_cid(cid, CHECK_CID_RE, "check")
        return parse_resource(Check, await self.get(check_cid))

    async def fetch_check_by_id(self, check_id: int) -> Check:
        """Fetch a check by its numeric id (not the check bundle id)."""
        return await self.fetch_check_by_cid(cid_from_id(CHECK_PREFIX, check_id))

    async def fetch_checks(self) -> list[Check]:
        return parse_resources(Check, await self.get(CHECK_PREFIX))

    async def search_checks(
        self,
        search: Optional[str] = None,
        filters: Optional[dict[str, list[str]]] = None,
    ) -> list[Check]:
        params = search_params(search, filters)
        if not params:
            return await self.fetch_checks()
        return parse_resources(Check, await self.get(CHECK_PREFIX, params=params))

    async def fetch_check_by_submission_url(self, submission_url: str) -> Check:
        """
        Fetch the active check behind a trap URL.

        Args:
            submission_url: Trap URL of the check

        Returns:
            The single active check carrying the URL's UUID

        Raises:
            InvalidSubmissionURLError: If the URL is not a trap URL
            CheckNotFoundError: If no active check, or more than one, has the UUID
        """
        uuid = check_uuid_from_submission_url(submission_url)
        checks = await self.search_checks(filters={"f__check_uuid": [uuid]})

        if not checks:
            raise CheckNotFoundError(f"No checks found with UUID {uuid}")

        active = [check for check in checks if check.active]
        if len(active) > 1:
            raise CheckNotFoundError(f"Multiple checks with same UUID {uuid}")
        if not active:
            raise CheckNotFoundError(f"No active checks found with UUID {uuid}")

        return active[0]
