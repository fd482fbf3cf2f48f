"""Tests for configuration management."""

import pytest
import tempfile
import os
from unittest.mock import patch

from pydantic import ValidationError

from bitbucket_migrate.config.config import (
    BitbucketConfig,
    Config,
    ConfigurationError,
    GitLabConfig,
    MigrationConfig,
)

ENV_VARS = [
    'BITBUCKET_API_URL',
    'BITBUCKET_REPO',
    'BITBUCKET_USERNAME',
    'BITBUCKET_APP_PASSWORD',
    'BITBUCKET_TOKEN',
    'BITBUCKET_PAGE_SIZE',
    'BITBUCKET_PR_STATES',
    'GITLAB_API_URL',
    'GITLAB_REPO_ID',
    'GITLAB_TOKEN',
    'MIGRATE_BRANCHES',
    'MIGRATE_PULL_REQUESTS',
    'MIGRATION_DRY_RUN',
    'LOG_LEVEL',
    'LOG_FILE',
]


class TestBitbucketConfig:
    """Test Bitbucket source configuration."""

    def test_valid_config(self):
        """Test valid configuration creation."""
        config = BitbucketConfig(
            repository='workspace/repo',
            username='alice',
            app_password='secret',
        )

        assert config.url == 'https://api.bitbucket.org/2.0'
        assert config.repository == 'workspace/repo'
        assert config.page_size == 50

    def test_token_only(self):
        """A bearer token is enough on its own."""
        config = BitbucketConfig(repository='workspace/repo', token='t')

        assert config.token == 't'
        assert config.username is None

    def test_missing_auth(self):
        """Username without app password is not a complete credential."""
        with pytest.raises(ValidationError):
            BitbucketConfig(repository='workspace/repo', username='alice')

    def test_repository_validation(self):
        """Repository must be workspace/slug."""
        with pytest.raises(ValidationError):
            BitbucketConfig(repository='just-a-slug', token='t')

    def test_page_size_bounds(self):
        """Page size must stay within what Bitbucket accepts."""
        with pytest.raises(ValidationError):
            BitbucketConfig(repository='ws/repo', token='t', page_size=0)
        with pytest.raises(ValidationError):
            BitbucketConfig(repository='ws/repo', token='t', page_size=101)

    def test_url_validation(self):
        """Test URL validation and trailing slash removal."""
        config = BitbucketConfig(
            url='https://bitbucket.example.com/2.0/', repository='ws/repo', token='t'
        )
        assert config.url == 'https://bitbucket.example.com/2.0'

        with pytest.raises(ValidationError):
            BitbucketConfig(url='bitbucket.org', repository='ws/repo', token='t')


class TestGitLabConfig:
    """Test GitLab destination configuration."""

    def test_defaults(self):
        """Test defaults and numeric project IDs."""
        config = GitLabConfig(project_id=42, token='t')

        assert config.url == 'https://gitlab.com/api/v4'
        assert config.project_id == '42'

    def test_missing_token(self):
        """Test that missing token raises validation error."""
        with pytest.raises(ValidationError):
            GitLabConfig(project_id='group/project')


class TestMigrationConfig:
    """Test migration settings."""

    def test_states_normalized(self):
        """States are trimmed and upper-cased."""
        config = MigrationConfig(pull_request_states=[' open', 'Merged', ''])

        assert config.pull_request_states == ['OPEN', 'MERGED']

    def test_unknown_state(self):
        """Unknown states are rejected."""
        with pytest.raises(ValidationError):
            MigrationConfig(pull_request_states=['CLOSED'])


class TestConfig:
    """Test main configuration class."""

    def test_config_from_dict(self):
        """Test configuration creation from dictionary."""
        config = Config.from_dict(
            {
                'source': {'repository': 'ws/repo', 'token': 'bb'},
                'destination': {'project_id': 'group/project', 'token': 'gl'},
                'migration': {'pull_requests': False},
            }
        )

        assert config.source.repository == 'ws/repo'
        assert config.destination.project_id == 'group/project'
        assert config.migration.branches is True
        assert config.migration.pull_requests is False
        assert config.migration.pull_request_states == ['OPEN']

    def test_all_problems_reported_together(self):
        """Every missing field is listed in a single error."""
        with pytest.raises(ConfigurationError) as exc_info:
            Config.from_dict(
                {
                    'source': {'token': 'bb'},
                    'destination': {'url': 'https://gitlab.example.com/api/v4'},
                }
            )

        missing = exc_info.value.missing
        assert 'source.repository' in missing
        assert 'destination.project_id' in missing
        assert 'destination.token' in missing

    def test_empty_config(self):
        """An empty document lacks both services."""
        with pytest.raises(ConfigurationError) as exc_info:
            Config.from_dict({})

        assert exc_info.value.missing == ['source', 'destination']

    def test_extra_fields_forbidden(self):
        """Unknown top level sections are reported."""
        with pytest.raises(ConfigurationError):
            Config.from_dict(
                {
                    'source': {'repository': 'ws/repo', 'token': 'bb'},
                    'destination': {'project_id': '1', 'token': 'gl'},
                    'git': {},
                }
            )

    def test_config_from_file(self):
        """Test configuration loading from YAML file."""
        config_content = """
source:
  repository: ws/repo
  username: alice
  app_password: secret
  page_size: 25

destination:
  url: https://gitlab.example.com/api/v4
  project_id: 7
  token: gl-token

migration:
  branches: false
  pull_request_states: [OPEN, MERGED]
"""

        with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
            f.write(config_content)
            f.flush()

        try:
            config = Config.from_file(f.name)
            assert config.source.page_size == 25
            assert config.destination.url == 'https://gitlab.example.com/api/v4'
            assert config.destination.project_id == '7'
            assert config.migration.branches is False
            assert config.migration.pull_request_states == ['OPEN', 'MERGED']
        finally:
            os.unlink(f.name)

    def test_invalid_config_file(self):
        """Test handling of invalid configuration file."""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
            f.write('invalid: yaml: content:')
            f.flush()

        try:
            with pytest.raises(Exception):
                Config.from_file(f.name)
        finally:
            os.unlink(f.name)

    def test_missing_config_file(self):
        """Test handling of missing configuration file."""
        with pytest.raises(FileNotFoundError):
            Config.from_file('/nonexistent/config.yaml')

    def test_template_is_loadable(self):
        """The generated template is a valid configuration."""
        with tempfile.TemporaryDirectory() as temp_dir:
            path = os.path.join(temp_dir, 'nested', 'config.yaml')
            Config.create_template(path)

            config = Config.from_file(path)

        assert config.source.repository == 'your-workspace/your-repository'
        assert config.logging.file == 'migration.log'


@patch('bitbucket_migrate.config.config.load_dotenv')
class TestConfigFromEnv:
    """Test configuration loading from environment variables."""

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        for name in ENV_VARS:
            monkeypatch.delenv(name, raising=False)
        self.env = monkeypatch

    def test_all_missing(self, mock_load_dotenv):
        """Every missing variable is named at once."""
        with pytest.raises(ConfigurationError) as exc_info:
            Config.from_env()

        assert exc_info.value.missing == [
            'BITBUCKET_REPO',
            'GITLAB_TOKEN',
            'GITLAB_REPO_ID',
            'BITBUCKET_USERNAME',
            'BITBUCKET_APP_PASSWORD',
        ]
        mock_load_dotenv.assert_called_once()

    def test_basic_credentials(self, mock_load_dotenv):
        """Username and app password configure the source."""
        self.env.setenv('BITBUCKET_REPO', 'ws/repo')
        self.env.setenv('BITBUCKET_USERNAME', 'alice')
        self.env.setenv('BITBUCKET_APP_PASSWORD', 'secret')
        self.env.setenv('GITLAB_TOKEN', 'gl')
        self.env.setenv('GITLAB_REPO_ID', '99')

        config = Config.from_env()

        assert config.source.username == 'alice'
        assert config.source.url == 'https://api.bitbucket.org/2.0'
        assert config.destination.project_id == '99'
        assert config.migration.dry_run is False

    def test_token_and_options(self, mock_load_dotenv):
        """Token auth plus optional settings."""
        self.env.setenv('BITBUCKET_REPO', 'ws/repo')
        self.env.setenv('BITBUCKET_TOKEN', 'bb')
        self.env.setenv('BITBUCKET_PAGE_SIZE', '10')
        self.env.setenv('BITBUCKET_PR_STATES', 'open, merged')
        self.env.setenv('GITLAB_TOKEN', 'gl')
        self.env.setenv('GITLAB_REPO_ID', 'group/project')
        self.env.setenv('GITLAB_API_URL', 'https://gitlab.example.com/api/v4')
        self.env.setenv('MIGRATE_BRANCHES', 'false')
        self.env.setenv('MIGRATION_DRY_RUN', 'yes')

        config = Config.from_env()

        assert config.source.token == 'bb'
        assert config.source.page_size == 10
        assert config.migration.pull_request_states == ['OPEN', 'MERGED']
        assert config.migration.branches is False
        assert config.migration.pull_requests is True
        assert config.migration.dry_run is True
        assert config.destination.url == 'https://gitlab.example.com/api/v4'

    def test_invalid_value(self, mock_load_dotenv):
        """Invalid values surface as a configuration error too."""
        self.env.setenv('BITBUCKET_REPO', 'ws/repo')
        self.env.setenv('BITBUCKET_TOKEN', 'bb')
        self.env.setenv('GITLAB_TOKEN', 'gl')
        self.env.setenv('GITLAB_REPO_ID', '1')
        self.env.setenv('GITLAB_API_URL', 'gitlab.example.com')

        with pytest.raises(ConfigurationError) as exc_info:
            Config.from_env()

        assert exc_info.value.missing[0].startswith('destination.url')
