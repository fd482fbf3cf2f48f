"""Creation calls against the GitLab project."""

from typing import Optional

from loguru import logger

from ..api.client import GitLabClient
from ..api.exceptions import APIError
from ..models import BranchCreate, MergeRequestCreate
from .probe import DestinationProbe
from .result import Outcome

# GitLab answers a duplicate branch with 400 "Branch already exists"
ALREADY_EXISTS_STATUS_CODES = (400, 409)


class DestinationWriter:
    """Issues creation calls to GitLab and reports each as an ``Outcome``.

    No exception raised by the HTTP layer escapes this class.
    """

    def __init__(
        self,
        client: GitLabClient,
        dry_run: bool = False,
        probe: Optional[DestinationProbe] = None,
    ):
        """Initialize destination writer.

        Args:
            client: GitLab client for the destination project
            dry_run: Report what would be created without creating it
            probe: Used in dry-run mode to tell existing branches apart
        """
        self.client = client
        self.dry_run = dry_run
        self.probe = probe or DestinationProbe(client)
        self.logger = logger.bind(component='DestinationWriter')

    def create_branch(self, request: BranchCreate) -> Outcome:
        """Create a branch, treating a duplicate as already migrated."""
        if self.dry_run:
            return self._plan_branch(request)

        try:
            self.client.post(
                f'{self.client.project_path}/repository/branches',
                data=request.to_payload(),
            )
        except APIError as e:
            if e.status_code in ALREADY_EXISTS_STATUS_CODES:
                self.logger.info(
                    f'Branch {request.branch_name} already exists in GitLab'
                )
                return Outcome.skipped()
            self.logger.error(f'Failed to create branch {request.branch_name}: {e}')
            return Outcome.failed(str(e))

        self.logger.info(f'Branch {request.branch_name} created in GitLab')
        return Outcome.created()

    def create_merge_request(self, request: MergeRequestCreate) -> Outcome:
        """Create a merge request; the caller is responsible for duplicates."""
        pair = f'{request.source_branch_name} -> {request.target_branch_name}'
        if self.dry_run:
            self.logger.info(f'Dry run: would create merge request {pair}')
            return Outcome.planned()

        try:
            response = self.client.post(
                f'{self.client.project_path}/merge_requests',
                data=request.to_payload(),
            )
        except APIError as e:
            self.logger.error(f'Failed to create merge request {pair}: {e}')
            return Outcome.failed(str(e))

        web_url = None
        if isinstance(response.data, dict):
            web_url = response.data.get('web_url')
        self.logger.info(f'Created merge request in GitLab: {web_url or pair}')
        return Outcome.created(web_url=web_url)

    def _plan_branch(self, request: BranchCreate) -> Outcome:
        try:
            exists = self.probe.branch_exists(request.branch_name)
        except APIError as e:
            return Outcome.failed(str(e))

        if exists:
            self.logger.info(f'Branch {request.branch_name} already exists in GitLab')
            return Outcome.skipped()
        self.logger.info(f'Dry run: would create branch {request.branch_name}')
        return Outcome.planned()
