"""Async REST client for the monitoring API."""

import asyncio
import json
import logging
from typing import Any, Optional

import httpx

from circmetrics.api.brokers import BrokersMixin
from circmetrics.api.check_bundles import CheckBundlesMixin
from circmetrics.api.checks import ChecksMixin
from circmetrics.api.metric_clusters import MetricClustersMixin
from circmetrics.api.query import QueryParams
from circmetrics.config.schema import APIConfig
from circmetrics.errors import APIError

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.circonus.com/v2"

# Responses worth another attempt; everything else non-2xx fails at once
RETRY_STATUS_CODES = frozenset({429, 500, 502, 503, 504})

# Safe to resend after the server may have acted on the request
IDEMPOTENT_METHODS = frozenset({"GET", "PUT", "DELETE"})

# Failures where the request never reached the server
CONNECT_ERRORS = (httpx.ConnectError, httpx.ConnectTimeout)


class APIClient:
    """
    Transport for the monitoring REST API.

    Issues authenticated JSON requests against resource paths (``/check/1``,
    ``/check_bundle``, ...) and decodes the response body. Connection errors
    and retryable status codes are retried with exponential backoff; any other
    failure raises :class:`APIError`. POST is only resent when the connection
    could not be opened, so a create is never issued twice.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        app: str = "circmetrics",
        url: str = DEFAULT_API_URL,
        timeout: float = 10.0,
        max_retries: int = 3,
        retry_backoff: float = 0.5,
        debug: bool = False,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize API client.

        Args:
            token: API token sent as X-Circonus-Auth-Token
            app: Application name sent as X-Circonus-App-Name
            url: API base URL
            timeout: Request timeout in seconds
            max_retries: Extra attempts for retryable failures
            retry_backoff: Base delay for exponential backoff
            debug: Log request and response bodies at DEBUG
            client: Pre-built httpx client (mainly for tests)
        """
        self.token = token
        self.app = app
        self.base_url = url.rstrip("/")
        self.max_retries = max_retries
        self.retry_backoff = retry_backoff
        self.debug = debug
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_config(cls, config: APIConfig, client: Optional[httpx.AsyncClient] = None):
        return cls(
            token=config.token,
            app=config.app,
            url=config.url,
            timeout=config.timeout,
            max_retries=config.max_retries,
            retry_backoff=config.retry_backoff,
            debug=config.debug,
            client=client,
        )

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "X-Circonus-App-Name": self.app,
        }
        if self.token:
            headers["X-Circonus-Auth-Token"] = self.token
        return headers

    @staticmethod
    def _can_retry(method: str, error: httpx.TransportError) -> bool:
        """POST creates resources, so only resend it when the connection never opened."""
        return method in IDEMPOTENT_METHODS or isinstance(error, CONNECT_ERRORS)

    async def _request(
        self,
        method: str,
        path: str,
        payload: Any = None,
        params: Optional[QueryParams] = None,
    ) -> Any:
        url = f"{self.base_url}{path}"

        if self.debug and payload is not None:
            logger.debug("%s %s, sending JSON: %s", method, path, json.dumps(payload))

        response: Optional[httpx.Response] = None
        for attempt in range(self.max_retries + 1):
            try:
                response = await self._client.request(
                    method,
                    url,
                    json=payload,
                    params=params,
                    headers=self._headers(),
                )
            except httpx.TransportError as e:
                if attempt < self.max_retries and self._can_retry(method, e):
                    logger.debug("%s %s attempt %d failed: %s", method, path, attempt + 1, e)
                    await asyncio.sleep(self.retry_backoff * 2**attempt)
                    continue
                raise APIError(f"{method} {path} failed: {e}", method=method, path=path) from e

            if (
                response.status_code in RETRY_STATUS_CODES
                and method in IDEMPOTENT_METHODS
                and attempt < self.max_retries
            ):
                logger.debug(
                    "%s %s returned %d, retrying", method, path, response.status_code
                )
                await asyncio.sleep(self.retry_backoff * 2**attempt)
                continue
            break

        if not response.is_success:
            raise APIError(
                f"[{response.status_code}] {method} {path}: {response.text}",
                method=method,
                path=path,
                status_code=response.status_code,
                body=response.text,
            )

        if self.debug:
            logger.debug("%s %s, received JSON: %s", method, path, response.text)

        if not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise APIError(
                f"{method} {path}: response is not valid JSON",
                method=method,
                path=path,
                status_code=response.status_code,
                body=response.text,
            ) from e

    async def get(self, path: str, params: Optional[QueryParams] = None) -> Any:
        return await self._request("GET", path, params=params)

    async def put(self, path: str, payload: Any) -> Any:
        return await self._request("PUT", path, payload=payload)

    async def post(self, path: str, payload: Any) -> Any:
        return await self._request("POST", path, payload=payload)

    async def delete(self, path: str) -> Any:
        return await self._request("DELETE", path)

    async def close(self):
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


class API(ChecksMixin, CheckBundlesMixin, BrokersMixin, MetricClustersMixin, APIClient):
    """Monitoring API client with every supported resource binding."""
