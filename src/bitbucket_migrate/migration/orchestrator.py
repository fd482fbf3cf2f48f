"""Migration orchestrator for the branch and pull request phases."""

from datetime import datetime
from typing import Callable, List, Optional

from loguru import logger
from pydantic import BaseModel, Field

from ..api.exceptions import APIError, SourceUnavailable
from ..models import BranchRecord, PullRequestRecord
from .lister import SourceLister
from .mapper import EntityMapper
from .probe import DestinationProbe
from .result import MigrationResult, MigrationSummary, Outcome, OutcomeStatus
from .writer import DestinationWriter

BRANCH = 'branch'
PULL_REQUEST = 'pull_request'

ProgressCallback = Callable[[MigrationResult], None]


class MigrationPlan(BaseModel):
    """Which phases a run executes, in order."""

    migrate_branches: bool = Field(default=True, description='Migrate branches')
    migrate_pull_requests: bool = Field(
        default=True, description='Migrate pull requests'
    )


class MigrationOrchestrator:
    """Runs the branch phase and the pull request phase.

    Each phase lists its entities, then handles them one at a time in listing
    order. An item that fails is recorded and the phase moves on. A listing
    failure ends only the phase that hit it.
    """

    def __init__(
        self,
        lister: SourceLister,
        probe: DestinationProbe,
        writer: DestinationWriter,
        mapper: Optional[EntityMapper] = None,
        on_result: Optional[ProgressCallback] = None,
    ):
        """Initialize migration orchestrator.

        Args:
            lister: Source of branches and pull requests
            probe: Duplicate detection for merge requests
            writer: Creation calls on the destination
            mapper: Record to request translation
            on_result: Called with every result as soon as it is recorded
        """
        self.lister = lister
        self.probe = probe
        self.writer = writer
        self.mapper = mapper or EntityMapper()
        self.on_result = on_result
        self.logger = logger.bind(component='MigrationOrchestrator')

    def run(self, plan: Optional[MigrationPlan] = None) -> MigrationSummary:
        """Execute the enabled phases and summarize every outcome.

        Args:
            plan: Phases to run (both by default)

        Returns:
            Migration summary with results
        """
        plan = plan or MigrationPlan()
        summary = MigrationSummary(dry_run=self.writer.dry_run)
        self.logger.info('Starting migration execution')

        phases = [
            ('branches', plan.migrate_branches, self.migrate_branches),
            ('pull_requests', plan.migrate_pull_requests, self.migrate_pull_requests),
        ]
        for name, enabled, phase in phases:
            if not enabled:
                self.logger.info(f'Skipping {name} migration (disabled in plan)')
                continue
            try:
                summary.all_results.extend(phase())
            except SourceUnavailable as e:
                self.logger.error(f'Aborted {name} migration: {e}')
                if e.response_data:
                    self.logger.error(f'Source response: {e.response_data}')
                summary.phase_errors[name] = str(e)

        summary.completed_at = datetime.now()
        self.logger.info(
            f'Migration completed: {summary.created} created, '
            f'{summary.skipped} skipped, {summary.failed} failed'
            + (f', {summary.planned} planned' if summary.dry_run else '')
        )
        return summary

    def migrate_branches(self) -> List[MigrationResult]:
        """Copy every source branch that GitLab does not have yet.

        Raises:
            SourceUnavailable: If the branch listing cannot be fetched
        """
        branches = self.lister.list_branches()
        self.logger.info(f'Migrating {len(branches)} branches')

        results = [self._migrate_branch(branch) for branch in branches]
        self._log_phase_totals('branch', results)
        return results

    def migrate_pull_requests(self) -> List[MigrationResult]:
        """Open a merge request for every source pull request GitLab lacks.

        Raises:
            SourceUnavailable: If the pull request listing cannot be fetched
        """
        pull_requests = self.lister.list_pull_requests()
        self.logger.info(f'Migrating {len(pull_requests)} pull requests')

        results = [self._migrate_pull_request(pr) for pr in pull_requests]
        self._log_phase_totals('pull request', results)
        return results

    def _migrate_branch(self, branch: BranchRecord) -> MigrationResult:
        self.logger.info(f'Copying branch: {branch.name}')
        request = self.mapper.to_branch_create_request(branch)
        return self._record(BRANCH, branch.name, self.writer.create_branch(request))

    def _migrate_pull_request(self, pr: PullRequestRecord) -> MigrationResult:
        pair = f'{pr.source_branch} -> {pr.target_branch}'
        try:
            exists = self.probe.merge_request_exists(pr.source_branch, pr.target_branch)
        except APIError as e:
            self.logger.error(f'Could not check PR {pr.label} ({pair}): {e}')
            return self._record(PULL_REQUEST, pr.label, Outcome.failed(str(e)))

        if exists:
            self.logger.info(
                f'Merge request for {pair} already exists in GitLab. Skipping...'
            )
            return self._record(PULL_REQUEST, pr.label, Outcome.skipped())

        self.logger.info(f'Copying PR {pr.label} ({pair})')
        request = self.mapper.to_merge_request_create_request(pr)
        return self._record(
            PULL_REQUEST, pr.label, self.writer.create_merge_request(request)
        )

    def _record(
        self, entity_type: str, entity_id: str, outcome: Outcome
    ) -> MigrationResult:
        result = MigrationResult(
            entity_type=entity_type, entity_id=entity_id, outcome=outcome
        )
        if outcome.status == OutcomeStatus.FAILED:
            self.logger.warning(f'{entity_type} {entity_id} failed: {outcome.reason}')
        if self.on_result is not None:
            self.on_result(result)
        return result

    def _log_phase_totals(self, what: str, results: List[MigrationResult]) -> None:
        counts = {status: 0 for status in OutcomeStatus}
        for result in results:
            counts[result.status] += 1
        self.logger.info(
            f'Completed {what} migration: '
            f'{counts[OutcomeStatus.CREATED]} created, '
            f'{counts[OutcomeStatus.SKIPPED]} skipped, '
            f'{counts[OutcomeStatus.FAILED]} failed'
        )
