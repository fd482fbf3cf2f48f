"""REST clients for Bitbucket and GitLab."""

from .client import APIClient, APIResponse, BitbucketClient, GitLabClient
from .exceptions import APIError, DestinationRejected, SourceUnavailable

__all__ = [
    'APIClient',
    'APIResponse',
    'BitbucketClient',
    'GitLabClient',
    'APIError',
    'DestinationRejected',
    'SourceUnavailable',
]
