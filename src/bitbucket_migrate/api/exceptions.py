"""API exceptions for the Bitbucket and GitLab clients."""

from typing import Optional


class APIError(Exception):
    """Base exception for REST API errors."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_data: Optional[dict] = None,
    ):
        """Initialize API error.

        Args:
            message: Error message
            status_code: HTTP status code
            response_data: Response data from API
        """
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data


class AuthenticationError(APIError):
    """Authentication error with a REST API."""

    pass


class RateLimitError(APIError):
    """Rate limit exceeded error."""

    def __init__(self, message: str, retry_after: int = 60, **kwargs):
        """Initialize rate limit error.

        Args:
            message: Error message
            retry_after: Seconds to wait before retry
            **kwargs: Additional arguments for base class
        """
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class NotFoundError(APIError):
    """Resource not found error."""

    pass


class SourceUnavailable(APIError):
    """A source listing could not be fetched completely.

    Fatal for the phase that issued the listing, never for the whole run.
    """

    pass


class DestinationRejected(APIError):
    """The destination refused a query or creation call for one item."""

    pass
