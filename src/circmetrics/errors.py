"""Exception hierarchy shared by the API client and the check manager."""


class CircMetricsError(Exception):
    """Base class for all circmetrics errors."""


class CheckManagerConfigError(CircMetricsError):
    """Check manager cannot operate with the given configuration."""


class APIError(CircMetricsError):
    """Non-success response or undecodable body from the monitoring API."""

    def __init__(
        self,
        message: str,
        *,
        method: str | None = None,
        path: str | None = None,
        status_code: int | None = None,
        body: str | None = None,
    ):
        super().__init__(message)
        self.method = method
        self.path = path
        self.status_code = status_code
        self.body = body


class InvalidCIDError(CircMetricsError, ValueError):
    """A resource CID is empty or does not match its family's pattern."""


class CheckNotFoundError(CircMetricsError):
    """No unique check could be located."""


class AmbiguousMatchError(CircMetricsError):
    """More than one active resource matched where exactly one was expected."""


class BrokerSelectionError(CircMetricsError):
    """No usable broker, or the trap host cannot be matched to a broker."""


class InvalidSubmissionURLError(CircMetricsError, ValueError):
    """A trap URL does not have the ``/module/httptrap/<uuid>/<secret>`` shape."""
