"""Tests for record parsing and the entity mapper."""

import pytest
from pydantic import ValidationError

from bitbucket_migrate.migration.mapper import EntityMapper
from bitbucket_migrate.models import BranchRecord, PullRequestRecord

from fakes import pull_request_value


class TestRecords:
    """Test records built from Bitbucket payloads."""

    def test_branch_from_api(self):
        """Branch name and target hash are read from the listing value."""
        record = BranchRecord.from_api(
            {'name': 'main', 'target': {'hash': 'abc123', 'type': 'commit'}}
        )

        assert record.name == 'main'
        assert record.target_hash == 'abc123'

    def test_records_are_immutable(self):
        """Records are snapshots and cannot be changed."""
        record = BranchRecord(name='main', target_hash='abc123')

        with pytest.raises(ValidationError):
            record.name = 'other'

    def test_pull_request_from_api(self):
        """Pull request fields, including the web link, are read."""
        record = PullRequestRecord.from_api(
            pull_request_value(7, 'Add feature', 'feature/a', 'main')
        )

        assert record.id == 7
        assert record.title == 'Add feature'
        assert record.source_branch == 'feature/a'
        assert record.target_branch == 'main'
        assert record.state == 'OPEN'
        assert record.url == 'https://bitbucket.org/ws/repo/pull-requests/7'
        assert record.label == '#7 Add feature'

    def test_null_description(self):
        """A null description becomes empty text."""
        value = pull_request_value(3, 'Fix', 'fix', 'main', description=None)
        del value['links']

        record = PullRequestRecord.from_api(value)

        assert record.description == ''
        assert record.url is None


class TestEntityMapper:
    """Test mapping to GitLab create requests."""

    def test_branch_request(self):
        """A branch maps to {branch, ref}."""
        request = EntityMapper.to_branch_create_request(
            BranchRecord(name='release/1.0', target_hash='deadbeef')
        )

        assert request.branch_name == 'release/1.0'
        assert request.ref_target == 'deadbeef'
        assert request.to_payload() == {'branch': 'release/1.0', 'ref': 'deadbeef'}

    def test_merge_request(self):
        """A pull request maps to a merge request payload."""
        record = PullRequestRecord(
            id=1,
            title='Add login',
            description='Adds the login form',
            source_branch='feature/login',
            target_branch='develop',
        )

        request = EntityMapper().to_merge_request_create_request(record)

        assert request.to_payload() == {
            'title': 'Add login',
            'description': 'Adds the login form',
            'source_branch': 'feature/login',
            'target_branch': 'develop',
            'remove_source_branch': False,
            'squash': False,
        }

    @pytest.mark.parametrize(
        'value',
        [
            pull_request_value(1, 'Plain', 'a', 'main'),
            dict(
                pull_request_value(2, 'Closes source', 'b', 'main'),
                close_source_branch=True,
            ),
            dict(pull_request_value(3, 'Squashed', 'c', 'main'), state='MERGED'),
        ],
    )
    def test_merge_flags_always_false(self, value):
        """Merge requests never delete or squash, whatever the source says."""
        request = EntityMapper.to_merge_request_create_request(
            PullRequestRecord.from_api(value)
        )

        assert request.remove_source_branch_on_merge is False
        assert request.squash_on_merge is False
