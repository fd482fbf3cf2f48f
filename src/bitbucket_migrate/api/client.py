"""Bitbucket and GitLab REST API clients."""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, Optional
from urllib.parse import quote, urljoin

import requests
from loguru import logger
from pydantic import BaseModel

from ..config.config import BitbucketConfig, GitLabConfig
from .exceptions import (
    APIError,
    AuthenticationError,
    NotFoundError,
    RateLimitError,
)
from .rate_limiter import RateLimiter

USER_AGENT = 'bitbucket-migrate/0.1.0'


class APIResponse(BaseModel):
    """Standard API response wrapper."""

    status_code: int
    data: Any
    headers: Dict[str, str]
    success: bool


class APIClient(ABC):
    """Synchronous REST client shared by the source and destination sides."""

    service = 'API'

    def __init__(self, base_url: str, timeout: int, rate_limit_per_second: float):
        """Initialize API client.

        Args:
            base_url: Root URL every endpoint is resolved against
            timeout: Per-request timeout in seconds
            rate_limit_per_second: Maximum requests per second
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.rate_limiter = RateLimiter(rate_limit_per_second)
        self.session = requests.Session()
        self.session.headers.update(
            {'Content-Type': 'application/json', 'User-Agent': USER_AGENT}
        )

    def _build_url(self, endpoint: str) -> str:
        """Build full API URL from endpoint.

        Absolute URLs, such as pagination links, are returned unchanged.

        Args:
            endpoint: API endpoint path or absolute URL

        Returns:
            Full API URL
        """
        if endpoint.startswith(('http://', 'https://')):
            return endpoint
        return urljoin(self.base_url + '/', endpoint.lstrip('/'))

    def _handle_response(self, response: requests.Response) -> APIResponse:
        """Handle API response and convert to standard format.

        Args:
            response: Raw HTTP response

        Returns:
            Standardized API response

        Raises:
            APIError: For various API errors
        """
        headers = dict(response.headers)
        status = response.status_code

        if status == 429:
            retry_after = _retry_after(headers.get('Retry-After'))
            raise RateLimitError(
                f'{self.service} rate limit exceeded. Retry after {retry_after} seconds',
                retry_after=retry_after,
                status_code=status,
            )

        if status == 401:
            raise AuthenticationError(
                f'{self.service} authentication failed', status_code=status
            )

        if status == 404:
            raise NotFoundError(f'{self.service} resource not found', status_code=status)

        if status >= 400:
            error_data = None
            try:
                error_data = response.json()
                message = _error_message(error_data) or f'HTTP {status}'
            except ValueError:
                message = f'HTTP {status}: {response.text}'

            raise APIError(
                f'{self.service} request failed: {message}',
                status_code=status,
                response_data=error_data if isinstance(error_data, dict) else None,
            )

        try:
            data = response.json() if response.content else None
        except ValueError:
            data = response.text

        return APIResponse(
            status_code=status,
            data=data,
            headers=headers,
            success=200 <= status < 300,
        )

    def _request(self, method: str, endpoint: str, **kwargs) -> APIResponse:
        url = self._build_url(endpoint)
        self.rate_limiter.acquire()

        try:
            response = self.session.request(
                method, url, timeout=self.timeout, **kwargs
            )
        except requests.RequestException as e:
            logger.error(f'Network error during {method} request to {url}: {e}')
            raise APIError(f'Network error: {e}')

        return self._handle_response(response)

    def get(
        self, endpoint: str, params: Optional[Dict[str, Any]] = None, **kwargs
    ) -> APIResponse:
        """Make GET request.

        Args:
            endpoint: API endpoint or absolute URL
            params: Query parameters
            **kwargs: Additional request arguments

        Returns:
            API response
        """
        return self._request('GET', endpoint, params=params, **kwargs)

    def post(
        self, endpoint: str, data: Optional[Dict[str, Any]] = None, **kwargs
    ) -> APIResponse:
        """Make POST request.

        Args:
            endpoint: API endpoint
            data: Request body data
            **kwargs: Additional request arguments

        Returns:
            API response
        """
        return self._request('POST', endpoint, json=data, **kwargs)

    @abstractmethod
    def test_connection(self) -> bool:
        """Return True if the configured repository or project is reachable."""

    def close(self):
        """Close the client session."""
        self.session.close()
        logger.debug(f'{self.service} client session closed')

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()


class BitbucketClient(APIClient):
    """Bitbucket Cloud 2.0 client scoped to one repository."""

    service = 'Bitbucket'

    def __init__(self, config: BitbucketConfig):
        """Initialize Bitbucket client.

        Args:
            config: Bitbucket source configuration
        """
        super().__init__(config.url, config.timeout, config.rate_limit_per_second)
        self.config = config

        if config.token:
            self.session.headers.update({'Authorization': f'Bearer {config.token}'})
        elif config.username and config.app_password:
            self.session.auth = (config.username, config.app_password)
        else:
            raise AuthenticationError('No Bitbucket credentials provided')

        logger.info(f'Initialized Bitbucket client for {config.repository}')

    @property
    def repository_path(self) -> str:
        return f'/repositories/{self.config.repository}'

    def test_connection(self) -> bool:
        """Test access to the source repository.

        Returns:
            True if connection successful, False otherwise
        """
        try:
            return self.get(self.repository_path).success
        except APIError as e:
            logger.error(f'Bitbucket connection test failed: {e}')
            return False


class GitLabClient(APIClient):
    """GitLab v4 client scoped to one project."""

    service = 'GitLab'

    def __init__(self, config: GitLabConfig):
        """Initialize GitLab client.

        Args:
            config: GitLab destination configuration
        """
        super().__init__(config.url, config.timeout, config.rate_limit_per_second)
        self.config = config

        if not config.token:
            raise AuthenticationError('No GitLab token provided')
        self.session.headers.update({'Authorization': f'Bearer {config.token}'})

        logger.info(f'Initialized GitLab client for project {config.project_id}')

    @property
    def project_path(self) -> str:
        # Namespaced paths must be sent as a single encoded segment
        return f'/projects/{quote(self.config.project_id, safe="")}'

    def test_connection(self) -> bool:
        """Test access to the destination project.

        Returns:
            True if connection successful, False otherwise
        """
        try:
            return self.get(self.project_path).success
        except APIError as e:
            logger.error(f'GitLab connection test failed: {e}')
            return False


def _error_message(error_data: Any) -> Optional[str]:
    """Pull the human readable part out of an error body."""
    if not isinstance(error_data, dict):
        return None
    # GitLab uses "message", Bitbucket nests it under "error"
    message = error_data.get('message') or error_data.get('error')
    if isinstance(message, dict):
        message = message.get('message') or message
    if not message:
        return None
    return message if isinstance(message, str) else str(message)


def _retry_after(value: Optional[str], default: int = 60) -> int:
    """Seconds from a ``Retry-After`` header, which may also be an HTTP date."""
    if value is None:
        return default
    try:
        return max(int(value), 0)
    except ValueError:
        pass
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return default
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max(int((when - datetime.now(timezone.utc)).total_seconds()), 0)
