"""Pydantic models for circmetrics.yaml configuration."""

from typing import Literal

from pydantic import BaseModel, Field


class APIConfig(BaseModel):
    """Monitoring API client configuration."""

    token: str | None = Field(
        default=None,
        description="API token; without one the check manager runs disabled",
    )
    app: str = Field(default="circmetrics", description="Application name sent with API calls")
    url: str = Field(default="https://api.circonus.com/v2", description="API base URL")
    timeout: float = Field(default=10.0, description="Request timeout in seconds", gt=0)
    max_retries: int = Field(
        default=3,
        description="Retries for connection errors and 5xx/429 responses",
        ge=0,
        le=10,
    )
    retry_backoff: float = Field(
        default=0.5,
        description="Base delay in seconds for exponential retry backoff",
        ge=0,
    )
    debug: bool = Field(default=False, description="Log request and response bodies")


class CheckConfig(BaseModel):
    """Check identification and creation settings."""

    submission_url: str | None = Field(
        default=None,
        description="Known trap URL; used directly when the API token is absent",
    )
    id: int = Field(default=0, description="Numeric check id (not check bundle id)", ge=0)
    instance_id: str | None = Field(
        default=None,
        description="Instance identifier used for search and as check target (default: hostname:app)",
    )
    display_name: str | None = Field(default=None, description="Display name for created checks")
    search_tag: str | None = Field(
        default=None,
        description="Tag used to find an existing check (default: service:app)",
    )
    secret: str | None = Field(default=None, description="Secret for created checks")
    tags: list[str] = Field(default_factory=list, description="Extra tags for created checks")
    type: str = Field(default="httptrap", description="Check type")
    max_url_age: float = Field(
        default=300.0,
        description="Seconds before a failing trap URL is re-resolved",
        ge=0,
    )
    force_metric_activation: bool = Field(
        default=False,
        description="Re-activate metrics that were disabled in the UI",
    )


class BrokerConfig(BaseModel):
    """Broker selection settings."""

    id: int = Field(default=0, description="Numeric broker id to use for new checks", ge=0)
    select_tag: str | None = Field(
        default=None,
        description="Only consider brokers carrying this tag",
    )
    max_response_time: float = Field(
        default=0.5,
        description="Seconds a broker may take to accept a TCP connection",
        gt=0,
    )


class CircMetricsConfig(BaseModel):
    """Root configuration model for circmetrics."""

    api: APIConfig = Field(default_factory=APIConfig)
    check: CheckConfig = Field(default_factory=CheckConfig)
    broker: BrokerConfig = Field(default_factory=BrokerConfig)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level used by the CLI",
    )
