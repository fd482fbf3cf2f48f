"""Migration engine - main entry point for migration operations."""

from typing import Optional

from loguru import logger

from ..config.config import Config
from ..api.client import BitbucketClient, GitLabClient
from .lister import SourceLister
from .mapper import EntityMapper
from .orchestrator import MigrationOrchestrator, MigrationPlan, ProgressCallback
from .probe import DestinationProbe
from .result import MigrationSummary
from .writer import DestinationWriter


class MigrationEngine:
    """Builds every component from the configuration and runs the migration."""

    def __init__(self, config: Config, on_result: Optional[ProgressCallback] = None):
        """Initialize migration engine.

        Args:
            config: Migration configuration
            on_result: Progress callback handed to the orchestrator
        """
        self.config = config
        self.logger = logger.bind(component='MigrationEngine')

        self.source_client = BitbucketClient(config.source)
        self.destination_client = GitLabClient(config.destination)

        self.lister = SourceLister(
            self.source_client,
            page_size=config.source.page_size,
            pull_request_states=config.migration.pull_request_states,
        )
        self.probe = DestinationProbe(self.destination_client)
        self.writer = DestinationWriter(
            self.destination_client,
            dry_run=config.migration.dry_run,
            probe=self.probe,
        )
        self.orchestrator = MigrationOrchestrator(
            self.lister,
            self.probe,
            self.writer,
            mapper=EntityMapper(),
            on_result=on_result,
        )

    def migrate(self, plan: Optional[MigrationPlan] = None) -> MigrationSummary:
        """Execute migration with the given plan.

        Args:
            plan: Migration plan (uses default if not provided)

        Returns:
            Migration summary

        Raises:
            ConnectionError: If either service is unreachable
        """
        if plan is None:
            plan = self._create_default_plan()

        mode = 'dry run' if self.config.migration.dry_run else 'migration'
        self.logger.info(
            f'Starting Bitbucket {self.config.source.repository} -> '
            f'GitLab {self.config.destination.project_id} {mode}'
        )

        try:
            self.test_connectivity()
            return self.orchestrator.run(plan)
        finally:
            self.close()

    def _create_default_plan(self) -> MigrationPlan:
        """Create default migration plan from configuration.

        Returns:
            Default migration plan
        """
        return MigrationPlan(
            migrate_branches=self.config.migration.branches,
            migrate_pull_requests=self.config.migration.pull_requests,
        )

    def test_connectivity(self) -> None:
        """Test connectivity to both services.

        Raises:
            ConnectionError: If connectivity test fails
        """
        self.logger.info('Testing connectivity to Bitbucket and GitLab')

        if not self.source_client.test_connection():
            raise ConnectionError(
                f'Cannot access Bitbucket repository {self.config.source.repository}'
            )

        if not self.destination_client.test_connection():
            raise ConnectionError(
                f'Cannot access GitLab project {self.config.destination.project_id}'
            )

        self.logger.info('Connectivity tests passed')

    def close(self) -> None:
        self.source_client.close()
        self.destination_client.close()
