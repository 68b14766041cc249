"""
Error taxonomy for upstream recipe API access.

The transport and retry layers raise these exceptions; query functions in
MealDBConnector catch them and degrade to an empty result, so none of them
ever reach the UI or the HTTP API as an exception.

- UpstreamTimeoutError: no response within the configured timeout (retryable)
- NetworkError: DNS, connection refused, reset, etc. (retryable)
- ServerError: HTTP status >= 500 (retryable)
- ClientError: HTTP status 4xx (not retried, treated as "no result")
- MalformedResponseError: body is not a JSON object (not retried)
"""

from typing import Optional


class MealDBError(Exception):
    """Base class for all upstream access failures."""

    def __init__(self, message: str, url: Optional[str] = None) -> None:
        super().__init__(message)
        self.url = url


class UpstreamTimeoutError(MealDBError):
    """The upstream did not answer within the bounded wait time."""


class NetworkError(MealDBError):
    """Transport-level failure other than a timeout."""


class _StatusError(MealDBError):
    def __init__(self, status_code: int, url: Optional[str] = None) -> None:
        super().__init__(f"Upstream returned HTTP {status_code} for {url}", url=url)
        self.status_code = status_code


class ServerError(_StatusError):
    """Upstream answered with a 5xx status."""


class ClientError(_StatusError):
    """Upstream answered with a 4xx status."""


class MalformedResponseError(MealDBError):
    """Upstream body could not be decoded into a JSON object."""


# Failure classes the retry layer is allowed to retry
RETRYABLE_ERRORS = (UpstreamTimeoutError, NetworkError, ServerError)
