"""Resource models for the monitoring REST API.

Fields the API computes (``_cid``, ``_checks``, ...) are exposed without the
leading underscore and default to ``None`` so that request bodies built with
:func:`to_payload` never send them back.
"""

from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from circmetrics.errors import APIError


class Check(BaseModel):
    """A check: one broker's view of a check bundle."""

    model_config = ConfigDict(populate_by_name=True)

    cid: str = Field("", alias="_cid")
    active: bool = Field(False, alias="_active")
    broker_cid: str = Field("", alias="_broker")
    check_bundle_cid: str = Field("", alias="_check_bundle")
    check_uuid: str = Field("", alias="_check_uuid")
    details: dict[str, Any] = Field(default_factory=dict, alias="_details")


class CheckBundleMetric(BaseModel):
    """A metric tracked by a check bundle."""

    name: str
    type: str = "numeric"
    status: str = "active"
    units: str | None = None
    tags: list[str] = Field(default_factory=list)


class CheckBundleConfig(BaseModel):
    """Type-specific configuration of a check bundle."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    async_metrics: bool = False
    secret: str | None = None
    submission_url: str | None = None
    reverse_secret_key: str | None = Field(None, alias="reverse:secret_key")


class CheckBundle(BaseModel):
    """A check bundle: configuration shared by the checks on each broker."""

    model_config = ConfigDict(populate_by_name=True)

    cid: str | None = Field(None, alias="_cid")
    checks: list[str] | None = Field(None, alias="_checks")
    check_uuids: list[str] | None = Field(None, alias="_check_uuids")
    created: int | None = Field(None, alias="_created")
    last_modified: int | None = Field(None, alias="_last_modified")
    last_modified_by: str | None = Field(None, alias="_last_modified_by")
    reverse_connection_urls: list[str] | None = Field(None, alias="_reverse_connection_urls")

    brokers: list[str] = Field(default_factory=list)
    config: CheckBundleConfig = Field(default_factory=CheckBundleConfig)
    display_name: str = ""
    metrics: list[CheckBundleMetric] = Field(default_factory=list)
    metric_limit: int = 0
    notes: str | None = None
    period: int = 60
    status: str = "active"
    tags: list[str] = Field(default_factory=list)
    target: str = ""
    timeout: float = 10
    type: str = "httptrap"


class BrokerDetail(BaseModel):
    """Per-instance network identity of a broker."""

    cn: str = ""
    external_host: str | None = None
    external_port: int | None = None
    ipaddress: str | None = None
    minimum_version_required: int | None = None
    modules: list[str] = Field(default_factory=list)
    port: int | None = None
    skew: str | None = None
    status: str = ""
    version: int | None = None


class Broker(BaseModel):
    """A broker that receives submitted metrics."""

    model_config = ConfigDict(populate_by_name=True)

    cid: str = Field("", alias="_cid")
    details: list[BrokerDetail] = Field(default_factory=list, alias="_details")
    latitude: str | None = None
    longitude: str | None = None
    name: str = Field("", alias="_name")
    tags: list[str] = Field(default_factory=list, alias="_tags")
    type: str = Field("", alias="_type")


class MetricQuery(BaseModel):
    """A metric search expression within a cluster."""

    query: str
    type: str


class MetricCluster(BaseModel):
    """A named group of metrics defined by queries."""

    model_config = ConfigDict(populate_by_name=True)

    cid: str | None = Field(None, alias="_cid")
    matching_metrics: list[str] | None = Field(None, alias="_matching_metrics")
    matching_uuid_metrics: dict[str, list[str]] | None = Field(
        None, alias="_matching_uuid_metrics"
    )
    description: str = ""
    name: str = ""
    queries: list[MetricQuery] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)


ResourceT = TypeVar("ResourceT", bound=BaseModel)


def to_payload(model: BaseModel) -> dict[str, Any]:
    """Serialize a resource for a create/update request body."""
    return model.model_dump(by_alias=True, exclude_none=True)


def parse_resource(model: type[ResourceT], data: Any) -> ResourceT:
    """Validate a decoded API response body as ``model``.

    Raises:
        APIError: If the body does not describe a ``model``
    """
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise APIError(f"Unexpected {model.__name__} response: {e}") from e


def parse_resources(model: type[ResourceT], data: Any) -> list[ResourceT]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise APIError(f"Unexpected {model.__name__} list response (not a JSON array)")
    return [parse_resource(model, item) for item in data]
