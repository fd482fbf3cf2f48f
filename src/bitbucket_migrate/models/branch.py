"""Branch entity models."""

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field


class BranchRecord(BaseModel):
    """Bitbucket branch as read at listing time."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description='Branch name, unique within the source')
    target_hash: str = Field(..., description='Commit the branch points to')

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'BranchRecord':
        """Build a record from a Bitbucket ``refs/branches`` value."""
        return cls(name=data['name'], target_hash=data['target']['hash'])


class BranchCreate(BaseModel):
    """Model for creating a branch on GitLab."""

    branch_name: str = Field(..., description='Name of the new branch')
    ref_target: str = Field(..., description='Commit SHA or ref to branch from')

    def to_payload(self) -> Dict[str, str]:
        """Request body for ``POST /projects/:id/repository/branches``."""
        return {'branch': self.branch_name, 'ref': self.ref_target}
