"""Migration engine and its components."""

from .result import Outcome, OutcomeStatus, MigrationResult, MigrationSummary
from .lister import SourceLister
from .probe import DestinationProbe
from .mapper import EntityMapper
from .writer import DestinationWriter
from .orchestrator import MigrationOrchestrator, MigrationPlan
from .engine import MigrationEngine

__all__ = [
    'Outcome',
    'OutcomeStatus',
    'MigrationResult',
    'MigrationSummary',
    'SourceLister',
    'DestinationProbe',
    'EntityMapper',
    'DestinationWriter',
    'MigrationOrchestrator',
    'MigrationPlan',
    'MigrationEngine',
]
