"""Configuration management for Bitbucket Migration Tool."""

from typing import Any, Dict, List, Optional
from pathlib import Path
import os

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
import yaml
from dotenv import load_dotenv


PULL_REQUEST_STATES = ('OPEN', 'MERGED', 'DECLINED', 'SUPERSEDED')


class ConfigurationError(Exception):
    """Raised when required settings are missing or invalid.

    All problems found are reported together in ``missing``.
    """

    def __init__(self, missing: List[str]):
        self.missing = list(missing)
        super().__init__(
            'Invalid or missing configuration: ' + ', '.join(self.missing)
        )


def _validate_url(v: str) -> str:
    if not v.startswith(('http://', 'https://')):
        raise ValueError('URL must start with http:// or https://')
    return v.rstrip('/')


class BitbucketConfig(BaseModel):
    """Configuration for the Bitbucket source repository."""

    url: str = Field(
        default='https://api.bitbucket.org/2.0', description='Bitbucket API URL'
    )
    repository: str = Field(..., description='Repository as workspace/repo_slug')
    username: Optional[str] = Field(default=None, description='Bitbucket username')
    app_password: Optional[str] = Field(
        default=None, description='Bitbucket app password'
    )
    token: Optional[str] = Field(default=None, description='Bearer access token')
    page_size: int = Field(default=50, description='Items requested per page')
    timeout: int = Field(default=30, description='Request timeout in seconds')
    rate_limit_per_second: float = Field(
        default=10.0, description='API requests per second limit'
    )

    @field_validator('url')
    @classmethod
    def validate_url(cls, v):
        """Validate API URL format."""
        return _validate_url(v)

    @field_validator('repository')
    @classmethod
    def validate_repository(cls, v):
        """Validate the workspace/repo_slug form."""
        parts = v.strip('/').split('/')
        if len(parts) != 2 or not all(parts):
            raise ValueError('repository must look like workspace/repo_slug')
        return v.strip('/')

    @field_validator('page_size')
    @classmethod
    def validate_page_size(cls, v):
        """Bitbucket accepts 1..100 items per page."""
        if not 1 <= v <= 100:
            raise ValueError('page_size must be between 1 and 100')
        return v

    @field_validator('timeout', 'rate_limit_per_second')
    @classmethod
    def validate_positive(cls, v):
        """Validate timeout and rate limit are positive."""
        if v <= 0:
            raise ValueError('must be positive')
        return v

    @model_validator(mode='after')
    def validate_auth(self):
        """Ensure at least one authentication method is complete."""
        if not self.token and not (self.username and self.app_password):
            raise ValueError(
                'Either token or both username and app_password must be provided'
            )
        return self


class GitLabConfig(BaseModel):
    """Configuration for the GitLab destination project."""

    url: str = Field(default='https://gitlab.com/api/v4', description='GitLab API URL')
    project_id: str = Field(..., description='Project ID or namespace/project path')
    token: str = Field(..., description='Personal or project access token')
    timeout: int = Field(default=30, description='Request timeout in seconds')
    rate_limit_per_second: float = Field(
        default=10.0, description='API requests per second limit'
    )

    @field_validator('url')
    @classmethod
    def validate_url(cls, v):
        """Validate API URL format."""
        return _validate_url(v)

    @field_validator('project_id', mode='before')
    @classmethod
    def validate_project_id(cls, v):
        """Accept numeric IDs as well as paths."""
        if isinstance(v, int):
            v = str(v)
        if not v:
            raise ValueError('project_id must not be empty')
        return v

    @field_validator('timeout', 'rate_limit_per_second')
    @classmethod
    def validate_positive(cls, v):
        """Validate timeout and rate limit are positive."""
        if v <= 0:
            raise ValueError('must be positive')
        return v


class MigrationConfig(BaseModel):
    """Migration-specific configuration."""

    branches: bool = Field(default=True, description='Migrate branches')
    pull_requests: bool = Field(default=True, description='Migrate pull requests')
    dry_run: bool = Field(default=False, description='Perform dry run without changes')
    pull_request_states: List[str] = Field(
        default_factory=lambda: ['OPEN'],
        description='Bitbucket pull request states to migrate',
    )

    @field_validator('pull_request_states')
    @classmethod
    def validate_states(cls, v):
        """Validate pull request states."""
        states = [state.strip().upper() for state in v if state.strip()]
        if not states:
            raise ValueError('At least one pull request state is required')
        invalid = [state for state in states if state not in PULL_REQUEST_STATES]
        if invalid:
            raise ValueError(
                f'Unknown pull request states {invalid}, expected {list(PULL_REQUEST_STATES)}'
            )
        return states


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default='INFO', description='Log level')
    file: Optional[str] = Field(default=None, description='Log file path')
    format: Optional[str] = Field(default=None, description='Log format')

    @field_validator('level')
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'Log level must be one of: {valid_levels}')
        return v.upper()


class Config(BaseModel):
    """Main configuration class for Bitbucket Migration Tool."""

    model_config = ConfigDict(extra='forbid')

    source: BitbucketConfig = Field(..., description='Bitbucket source repository')
    destination: GitLabConfig = Field(..., description='GitLab destination project')
    migration: MigrationConfig = Field(
        default_factory=MigrationConfig, description='Migration settings'
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description='Logging settings'
    )

    @classmethod
    def from_dict(cls, config_data: Dict[str, Any]) -> 'Config':
        """Build and validate configuration, reporting every problem at once.

        Raises:
            ConfigurationError: If any field is missing or invalid
        """
        try:
            return cls(**(config_data or {}))
        except ValidationError as e:
            raise ConfigurationError(_describe_errors(e)) from e

    @classmethod
    def from_file(cls, config_path: str) -> 'Config':
        """Load configuration from YAML file."""
        config_file = Path(config_path)

        if not config_file.exists():
            raise FileNotFoundError(f'Configuration file not found: {config_path}')

        with open(config_file, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f)

        if config_data is not None and not isinstance(config_data, dict):
            raise ConfigurationError([f'{config_path}: expected a mapping'])

        return cls.from_dict(config_data)

    @classmethod
    def from_env(cls) -> 'Config':
        """Load configuration from environment variables.

        Raises:
            ConfigurationError: Listing every missing variable
        """
        # Load .env file if it exists
        load_dotenv()

        missing = [
            name
            for name in ('BITBUCKET_REPO', 'GITLAB_TOKEN', 'GITLAB_REPO_ID')
            if not os.getenv(name)
        ]
        if not os.getenv('BITBUCKET_TOKEN'):
            for name in ('BITBUCKET_USERNAME', 'BITBUCKET_APP_PASSWORD'):
                if not os.getenv(name):
                    missing.append(name)
        if missing:
            raise ConfigurationError(missing)

        states = os.getenv('BITBUCKET_PR_STATES')

        config_data = {
            'source': {
                'url': os.getenv('BITBUCKET_API_URL'),
                'repository': os.getenv('BITBUCKET_REPO'),
                'username': os.getenv('BITBUCKET_USERNAME'),
                'app_password': os.getenv('BITBUCKET_APP_PASSWORD'),
                'token': os.getenv('BITBUCKET_TOKEN'),
                'page_size': os.getenv('BITBUCKET_PAGE_SIZE'),
            },
            'destination': {
                'url': os.getenv('GITLAB_API_URL'),
                'project_id': os.getenv('GITLAB_REPO_ID'),
                'token': os.getenv('GITLAB_TOKEN'),
            },
            'migration': {
                'branches': _env_flag('MIGRATE_BRANCHES', True),
                'pull_requests': _env_flag('MIGRATE_PULL_REQUESTS', True),
                'dry_run': _env_flag('MIGRATION_DRY_RUN', False),
                'pull_request_states': states.split(',') if states else None,
            },
            'logging': {
                'level': os.getenv('LOG_LEVEL', 'INFO'),
                'file': os.getenv('LOG_FILE'),
            },
        }

        # Remove None values
        config_data = cls._remove_none_values(config_data)

        return cls.from_dict(config_data)

    @staticmethod
    def _remove_none_values(data: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively remove None values from dictionary."""
        if isinstance(data, dict):
            return {
                k: Config._remove_none_values(v)
                for k, v in data.items()
                if v is not None
            }
        return data

    def to_file(self, config_path: str) -> None:
        """Save configuration to YAML file."""
        config_file = Path(config_path)
        config_file.parent.mkdir(parents=True, exist_ok=True)

        with open(config_file, 'w', encoding='utf-8') as f:
            yaml.dump(
                self.model_dump(exclude_none=True),
                f,
                default_flow_style=False,
                indent=2,
                sort_keys=False,
            )

    @staticmethod
    def create_template(output_path: str) -> None:
        """Create a configuration template file."""
        template_config = {
            'source': {
                'url': 'https://api.bitbucket.org/2.0',
                'repository': 'your-workspace/your-repository',
                'username': 'your-bitbucket-username',
                'app_password': 'your-bitbucket-app-password',
                'page_size': 50,
                'timeout': 30,
            },
            'destination': {
                'url': 'https://gitlab.com/api/v4',
                'project_id': 'your-group/your-project',
                'token': 'your-gitlab-access-token',
                'timeout': 30,
            },
            'migration': {
                'branches': True,
                'pull_requests': True,
                'dry_run': False,
                'pull_request_states': ['OPEN'],
            },
            'logging': {
                'level': 'INFO',
                'file': 'migration.log',
            },
        }

        config_file = Path(output_path)
        config_file.parent.mkdir(parents=True, exist_ok=True)

        with open(config_file, 'w', encoding='utf-8') as f:
            yaml.dump(
                template_config, f, default_flow_style=False, indent=2, sort_keys=False
            )


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _describe_errors(error: ValidationError) -> List[str]:
    problems = []
    for item in error.errors():
        location = '.'.join(str(part) for part in item['loc']) or 'config'
        if item['type'] == 'missing':
            problems.append(location)
        else:
            problems.append(f'{location} ({item["msg"]})')
    return problems
