"""Existence checks against the GitLab project."""

from urllib.parse import quote

from loguru import logger

from ..api.client import GitLabClient
from ..api.exceptions import APIError, DestinationRejected, NotFoundError


class DestinationProbe:
    """Answers whether an equivalent entity already exists on GitLab.

    Merge requests are matched by their (source, target) branch pair only,
    across every state. Two different pull requests between the same pair
    cannot be told apart: the second one is reported as existing.
    """

    def __init__(self, client: GitLabClient):
        self.client = client
        self.logger = logger.bind(component='DestinationProbe')

    def branch_exists(self, name: str) -> bool:
        """Return True if the project has a branch called ``name``.

        Raises:
            DestinationRejected: If GitLab cannot answer
        """
        endpoint = (
            f'{self.client.project_path}/repository/branches/{quote(name, safe="")}'
        )
        try:
            self.client.get(endpoint)
        except NotFoundError:
            return False
        except APIError as e:
            raise DestinationRejected(
                f'Failed to look up GitLab branch {name}: {e}',
                status_code=e.status_code,
                response_data=e.response_data,
            ) from e
        return True

    def merge_request_exists(self, source_branch: str, target_branch: str) -> bool:
        """Return True if any merge request, in any state, joins the two branches.

        Raises:
            DestinationRejected: If GitLab cannot answer
        """
        try:
            response = self.client.get(
                f'{self.client.project_path}/merge_requests',
                params={
                    'source_branch': source_branch,
                    'target_branch': target_branch,
                    'state': 'all',
                },
            )
        except APIError as e:
            raise DestinationRejected(
                f'Failed to query GitLab merge requests for '
                f'{source_branch} -> {target_branch}: {e}',
                status_code=e.status_code,
                response_data=e.response_data,
            ) from e

        exists = bool(response.data)
        self.logger.debug(
            f'Merge request {source_branch} -> {target_branch} exists: {exists}'
        )
        return exists
