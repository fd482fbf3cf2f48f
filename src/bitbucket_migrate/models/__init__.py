"""Data models for Bitbucket and GitLab entities."""

from .branch import BranchRecord, BranchCreate
from .pull_request import PullRequestRecord, MergeRequestCreate

__all__ = [
    'BranchRecord',
    'BranchCreate',
    'PullRequestRecord',
    'MergeRequestCreate',
]
