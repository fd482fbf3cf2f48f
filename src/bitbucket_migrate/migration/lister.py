"""Complete listings of Bitbucket branches and pull requests."""

from typing import Any, Callable, Dict, List, Optional, TypeVar

from loguru import logger
from pydantic import ValidationError

from ..api.client import BitbucketClient
from ..api.exceptions import APIError, SourceUnavailable
from ..models import BranchRecord, PullRequestRecord

RecordType = TypeVar('RecordType')


class SourceLister:
    """Drains Bitbucket's paginated listings into in-memory sequences."""

    def __init__(
        self,
        client: BitbucketClient,
        page_size: int = 50,
        pull_request_states: Optional[List[str]] = None,
    ):
        """Initialize source lister.

        Args:
            client: Bitbucket client for the source repository
            page_size: Items requested per page
            pull_request_states: Pull request states to list (default OPEN)
        """
        self.client = client
        self.page_size = page_size
        self.pull_request_states = pull_request_states or ['OPEN']
        self.logger = logger.bind(component='SourceLister')

    def list_branches(self) -> List[BranchRecord]:
        """Return every branch of the source repository, in page order.

        Raises:
            SourceUnavailable: If any page cannot be fetched or parsed
        """
        return self._drain(
            f'{self.client.repository_path}/refs/branches',
            {'pagelen': self.page_size},
            BranchRecord.from_api,
            'branches',
        )

    def list_pull_requests(self) -> List[PullRequestRecord]:
        """Return every pull request in the configured states, in page order.

        Raises:
            SourceUnavailable: If any page cannot be fetched or parsed
        """
        return self._drain(
            f'{self.client.repository_path}/pullrequests',
            {'pagelen': self.page_size, 'state': list(self.pull_request_states)},
            PullRequestRecord.from_api,
            'pull requests',
        )

    def _drain(
        self,
        endpoint: str,
        params: Dict[str, Any],
        parse: Callable[[Dict[str, Any]], RecordType],
        what: str,
    ) -> List[RecordType]:
        """Follow ``next`` links from ``endpoint`` until the listing ends."""
        records: List[RecordType] = []
        url: Optional[str] = endpoint
        page = 0

        while url:
            page += 1
            try:
                # The next link already carries every query parameter
                response = self.client.get(url, params=params if page == 1 else None)
            except APIError as e:
                raise SourceUnavailable(
                    f'Failed to fetch Bitbucket {what} (page {page}): {e}',
                    status_code=e.status_code,
                    response_data=e.response_data,
                ) from e

            data = response.data
            values = data.get('values') if isinstance(data, dict) else None
            if not isinstance(data, dict) or not isinstance(values, (list, type(None))):
                raise SourceUnavailable(
                    f'Unexpected Bitbucket {what} payload (page {page})',
                    status_code=response.status_code,
                )

            try:
                records.extend(parse(value) for value in values or [])
            except (AttributeError, KeyError, TypeError, ValidationError) as e:
                raise SourceUnavailable(
                    f'Unexpected Bitbucket {what} payload (page {page}): {e}',
                    status_code=response.status_code,
                ) from e

            url = data.get('next')
            self.logger.debug(f'Fetched page {page} of {what} ({len(records)} so far)')

        self.logger.info(f'Retrieved {len(records)} {what} in {page} page(s)')
        return records
