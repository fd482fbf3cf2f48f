"""Outcomes of individual create attempts and the run summary."""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class OutcomeStatus(str, Enum):
    """What happened to one entity on the destination."""

    CREATED = 'created'
    SKIPPED = 'skipped'
    FAILED = 'failed'
    PLANNED = 'planned'


class Outcome(BaseModel):
    """Result of attempting to create one entity on the destination."""

    model_config = ConfigDict(frozen=True)

    status: OutcomeStatus
    reason: Optional[str] = None
    web_url: Optional[str] = None

    @classmethod
    def created(cls, web_url: Optional[str] = None) -> 'Outcome':
        return cls(status=OutcomeStatus.CREATED, web_url=web_url)

    @classmethod
    def skipped(cls, reason: str = 'already exists') -> 'Outcome':
        return cls(status=OutcomeStatus.SKIPPED, reason=reason)

    @classmethod
    def failed(cls, reason: str) -> 'Outcome':
        return cls(status=OutcomeStatus.FAILED, reason=reason)

    @classmethod
    def planned(cls) -> 'Outcome':
        return cls(status=OutcomeStatus.PLANNED, reason='dry run')


class MigrationResult(BaseModel):
    """Outcome of one branch or pull request, tagged for reporting."""

    entity_type: str = Field(..., description='branch or pull_request')
    entity_id: str = Field(..., description='Branch name or pull request label')
    outcome: Outcome = Field(..., description='What happened on the destination')
    completed_at: datetime = Field(default_factory=datetime.now)

    @property
    def status(self) -> OutcomeStatus:
        return self.outcome.status


class MigrationSummary(BaseModel):
    """Summary of a migration run over one or both phases."""

    started_at: datetime = Field(
        default_factory=datetime.now, description='Migration start time'
    )
    completed_at: Optional[datetime] = Field(
        default=None, description='Migration completion time'
    )
    dry_run: bool = Field(default=False, description='No creation calls were made')

    all_results: List[MigrationResult] = Field(
        default_factory=list, description='All migration results'
    )
    # Phase name -> error that aborted it
    phase_errors: Dict[str, str] = Field(default_factory=dict)

    def count(self, status: OutcomeStatus, entity_type: Optional[str] = None) -> int:
        """Count results with ``status``, optionally for one entity type."""
        return sum(
            1
            for result in self.all_results
            if result.status == status
            and (entity_type is None or result.entity_type == entity_type)
        )

    @property
    def total_entities(self) -> int:
        return len(self.all_results)

    @property
    def created(self) -> int:
        return self.count(OutcomeStatus.CREATED)

    @property
    def skipped(self) -> int:
        return self.count(OutcomeStatus.SKIPPED)

    @property
    def failed(self) -> int:
        return self.count(OutcomeStatus.FAILED)

    @property
    def planned(self) -> int:
        return self.count(OutcomeStatus.PLANNED)

    @property
    def results_by_type(self) -> Dict[str, Dict[str, int]]:
        """Counts per entity type, keyed by outcome status."""
        summary: Dict[str, Dict[str, int]] = {}
        for result in self.all_results:
            counts = summary.setdefault(
                result.entity_type,
                {'total': 0, **{status.value: 0 for status in OutcomeStatus}},
            )
            counts['total'] += 1
            counts[result.status.value] += 1
        return summary

    @property
    def has_failures(self) -> bool:
        return self.failed > 0

    @property
    def aborted(self) -> bool:
        """True if any phase could not list its source entities."""
        return bool(self.phase_errors)

    def results_for(self, entity_type: str) -> List[MigrationResult]:
        return [r for r in self.all_results if r.entity_type == entity_type]
