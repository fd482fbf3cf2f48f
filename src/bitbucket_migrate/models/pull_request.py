"""Pull request and merge request entity models."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PullRequestRecord(BaseModel):
    """Bitbucket pull request as read at listing time."""

    model_config = ConfigDict(frozen=True)

    id: Optional[int] = Field(default=None, description='Bitbucket pull request ID')
    title: str = Field(..., description='Pull request title')
    description: str = Field(default='', description='Pull request description')
    source_branch: str = Field(..., description='Branch the changes come from')
    target_branch: str = Field(..., description='Branch the changes go into')
    state: Optional[str] = Field(default=None, description='OPEN, MERGED, ...')
    url: Optional[str] = Field(default=None, description='Bitbucket web URL')

    @field_validator('description', mode='before')
    @classmethod
    def default_description(cls, v):
        """Bitbucket sends null for an empty description."""
        return v or ''

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'PullRequestRecord':
        """Build a record from a Bitbucket ``pullrequests`` value."""
        html = (data.get('links') or {}).get('html') or {}
        return cls(
            id=data.get('id'),
            title=data['title'],
            description=data.get('description'),
            source_branch=data['source']['branch']['name'],
            target_branch=data['destination']['branch']['name'],
            state=data.get('state'),
            url=html.get('href'),
        )

    @property
    def label(self) -> str:
        """Short identifier for log lines."""
        if self.id is None:
            return self.title
        return f'#{self.id} {self.title}'


class MergeRequestCreate(BaseModel):
    """Model for creating a merge request on GitLab."""

    title: str = Field(..., description='Merge request title')
    description: str = Field(default='', description='Merge request description')
    source_branch_name: str = Field(..., description='Source branch')
    target_branch_name: str = Field(..., description='Target branch')
    remove_source_branch_on_merge: bool = Field(
        default=False, description='Delete the source branch once merged'
    )
    squash_on_merge: bool = Field(default=False, description='Squash commits on merge')

    def to_payload(self) -> Dict[str, Any]:
        """Request body for ``POST /projects/:id/merge_requests``."""
        return {
            'title': self.title,
            'description': self.description,
            'source_branch': self.source_branch_name,
            'target_branch': self.target_branch_name,
            'remove_source_branch': self.remove_source_branch_on_merge,
            'squash': self.squash_on_merge,
        }
