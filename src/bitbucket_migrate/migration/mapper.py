"""Translation of Bitbucket records into GitLab create requests."""

from ..models import BranchCreate, BranchRecord, MergeRequestCreate, PullRequestRecord


class EntityMapper:
    """Pure mapping from source records to destination requests.

    Migrated merge requests never delete their source branch and never
    squash, whatever the source pull request was configured to do.
    """

    @staticmethod
    def to_branch_create_request(record: BranchRecord) -> BranchCreate:
        return BranchCreate(branch_name=record.name, ref_target=record.target_hash)

    @staticmethod
    def to_merge_request_create_request(record: PullRequestRecord) -> MergeRequestCreate:
        return MergeRequestCreate(
            title=record.title,
            description=record.description,
            source_branch_name=record.source_branch,
            target_branch_name=record.target_branch,
            remove_source_branch_on_merge=False,
            squash_on_merge=False,
        )
