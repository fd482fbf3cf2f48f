"""Main CLI entry point for Bitbucket Migration Tool."""

import sys
from typing import Optional
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .. import __version__
from ..config.config import Config, ConfigurationError
from ..utils.logging import get_logger, setup_logging
from ..migration.engine import MigrationEngine
from ..migration.result import MigrationResult, MigrationSummary, OutcomeStatus

console = Console()
log = get_logger('cli')

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_ITEM_FAILURES = 2

DEFAULT_CONFIG_PATHS = ['config.yaml', 'config.yml', '.bitbucket-migrate.yaml']

STATUS_STYLES = {
    OutcomeStatus.CREATED: ('[green]✓[/green]', 'created'),
    OutcomeStatus.SKIPPED: ('[yellow]-[/yellow]', 'already exists'),
    OutcomeStatus.FAILED: ('[red]✗[/red]', 'failed'),
    OutcomeStatus.PLANNED: ('[cyan]?[/cyan]', 'would be created'),
}


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name='bitbucket-migrate')
@click.option(
    '--config',
    '-c',
    type=click.Path(exists=True),
    help='Path to configuration file',
)
@click.option(
    '--verbose',
    '-v',
    is_flag=True,
    help='Enable verbose logging',
)
@click.pass_context
def cli(ctx: click.Context, config: Optional[str], verbose: bool) -> None:
    """Bitbucket Migration Tool - Copy branches and pull requests from Bitbucket to GitLab.

    Without a command, runs a full migration.
    """
    ctx.ensure_object(dict)

    if config:
        ctx.obj['config_path'] = config
    ctx.obj['verbose'] = verbose

    setup_logging('DEBUG' if verbose else 'INFO')

    if ctx.invoked_subcommand is None:
        ctx.invoke(migrate)


@cli.command()
@click.option(
    '--output',
    '-o',
    default='config.yaml',
    help='Output configuration file path',
)
def init(output: str) -> None:
    """Initialize a new configuration file."""
    console.print(
        Panel.fit(
            '[bold green]Bitbucket Migration Tool[/bold green]\n'
            'Initializing configuration...',
            border_style='green',
        )
    )

    try:
        Config.create_template(output)
    except OSError as e:
        console.print(f'[red]✗[/red] Failed to create configuration: {e}')
        sys.exit(EXIT_FATAL)

    console.print(f'[green]✓[/green] Configuration template created at: {output}')
    console.print(
        f'[yellow]Please edit {output} with your Bitbucket and GitLab details[/yellow]'
    )


@cli.command()
@click.option(
    '--dry-run',
    is_flag=True,
    help='Report what would be created without making changes',
)
@click.option('--skip-branches', is_flag=True, help='Do not migrate branches')
@click.option(
    '--skip-pull-requests', is_flag=True, help='Do not migrate pull requests'
)
@click.pass_context
def migrate(
    ctx: click.Context,
    dry_run: bool = False,
    skip_branches: bool = False,
    skip_pull_requests: bool = False,
) -> None:
    """Copy branches and pull requests to GitLab."""
    console.print(
        Panel.fit(
            '[bold blue]Bitbucket Migration Tool[/bold blue]\n'
            'Starting migration process...',
            border_style='blue',
        )
    )

    try:
        config = _load_config(ctx)
        _setup_logging_with_config(ctx, config)

        if dry_run:
            config.migration.dry_run = True
        if skip_branches:
            config.migration.branches = False
        if skip_pull_requests:
            config.migration.pull_requests = False

        if config.migration.dry_run:
            console.print(
                '[yellow]Running in dry-run mode - no changes will be made[/yellow]'
            )

        summary = _run_migration(config)

    except ConfigurationError as e:
        console.print(f'[red]✗[/red] Configuration error: {e}')
        sys.exit(EXIT_FATAL)
    except Exception as e:
        log.exception('Migration failed')
        console.print(f'[red]✗[/red] Migration failed: {e}')
        sys.exit(EXIT_FATAL)

    _display_migration_summary(summary)
    sys.exit(_exit_code(summary))


@cli.command()
@click.pass_context
def validate(ctx: click.Context) -> None:
    """Check the configuration and access to both services."""
    console.print(
        Panel.fit(
            '[bold cyan]Bitbucket Migration Tool[/bold cyan]\nValidating setup...',
            border_style='cyan',
        )
    )

    try:
        config = _load_config(ctx)
        console.print('[green]✓[/green] Configuration validation completed')

        engine = MigrationEngine(config)
        try:
            engine.test_connectivity()
        finally:
            engine.close()

        console.print('[green]✓[/green] Connectivity validation passed')

    except Exception as e:
        console.print(f'[red]✗[/red] Validation failed: {e}')
        if ctx.obj.get('verbose'):
            console.print_exception()
        sys.exit(EXIT_FATAL)


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show the effective configuration."""
    console.print(
        Panel.fit(
            '[bold magenta]Bitbucket Migration Tool[/bold magenta]\nConfiguration',
            border_style='magenta',
        )
    )

    try:
        config = _load_config(ctx)
    except Exception as e:
        console.print(f'[red]✗[/red] Failed to load configuration: {e}')
        sys.exit(EXIT_FATAL)

    table = Table(title='Migration Configuration')
    table.add_column('Setting', style='cyan')
    table.add_column('Value', style='green')

    source = config.source
    table.add_row('Bitbucket API', source.url)
    table.add_row('Bitbucket Repository', source.repository)
    if source.token:
        table.add_row('Bitbucket Auth', f'token {_mask(source.token)}')
    else:
        table.add_row(
            'Bitbucket Auth', f'{source.username} / {_mask(source.app_password)}'
        )
    table.add_row('Page Size', str(source.page_size))
    table.add_row('GitLab API', config.destination.url)
    table.add_row('GitLab Project', config.destination.project_id)
    table.add_row('GitLab Token', _mask(config.destination.token))
    table.add_row('Migrate Branches', '✓' if config.migration.branches else '✗')
    table.add_row(
        'Migrate Pull Requests', '✓' if config.migration.pull_requests else '✗'
    )
    table.add_row(
        'Pull Request States', ', '.join(config.migration.pull_request_states)
    )
    table.add_row('Dry Run', '✓' if config.migration.dry_run else '✗')

    console.print(table)


def _load_config(ctx: click.Context) -> Config:
    """Load configuration from file or environment."""
    config_path = ctx.obj.get('config_path') if ctx.obj else None

    if config_path:
        return Config.from_file(config_path)

    for path in DEFAULT_CONFIG_PATHS:
        if Path(path).exists():
            return Config.from_file(path)

    return Config.from_env()


def _setup_logging_with_config(ctx: click.Context, config: Config) -> None:
    """Setup logging with configuration from config file."""
    verbose = ctx.obj.get('verbose', False) if ctx.obj else False

    log_level = 'DEBUG' if verbose else config.logging.level
    setup_logging(
        level=log_level,
        log_file=config.logging.file,
        log_format=config.logging.format,
    )


def _run_migration(config: Config) -> MigrationSummary:
    """Run the migration, printing one line per item as it completes."""

    def print_result(result: MigrationResult) -> None:
        marker, text = STATUS_STYLES[result.status]
        line = f'{marker} {result.entity_type.replace("_", " ")} {result.entity_id}: {text}'
        if result.outcome.web_url:
            line += f' ({result.outcome.web_url})'
        elif result.status == OutcomeStatus.FAILED:
            line += f' - {result.outcome.reason}'
        console.print(line, highlight=False)

    engine = MigrationEngine(config, on_result=print_result)
    return engine.migrate()


def _display_migration_summary(summary: MigrationSummary) -> None:
    """Display migration summary results."""
    table = Table(title='Migration Summary')
    table.add_column('Entity Type', style='cyan')
    table.add_column('Total', style='blue')
    table.add_column('Created', style='green')
    table.add_column('Skipped', style='yellow')
    table.add_column('Failed', style='red')
    if summary.dry_run:
        table.add_column('Planned', style='cyan')

    for entity_type, counts in summary.results_by_type.items():
        row = [
            entity_type.replace('_', ' ').title(),
            str(counts['total']),
            str(counts[OutcomeStatus.CREATED.value]),
            str(counts[OutcomeStatus.SKIPPED.value]),
            str(counts[OutcomeStatus.FAILED.value]),
        ]
        if summary.dry_run:
            row.append(str(counts[OutcomeStatus.PLANNED.value]))
        table.add_row(*row)

    console.print(table)

    if summary.completed_at:
        duration = summary.completed_at - summary.started_at
        console.print(f'\n[blue]Migration Duration:[/blue] {duration}')

    for phase, error in summary.phase_errors.items():
        console.print(f'[red]✗[/red] {phase.replace("_", " ")} phase aborted: {error}')

    failures = [
        r for r in summary.all_results if r.status == OutcomeStatus.FAILED
    ]
    if failures:
        console.print(f'\n[red]Errors ({len(failures)}):[/red]')
        for result in failures[:5]:
            console.print(
                f'  • {result.entity_type} {result.entity_id}: {result.outcome.reason}'
            )
        if len(failures) > 5:
            console.print(f'  ... and {len(failures) - 5} more errors')


def _exit_code(summary: MigrationSummary) -> int:
    if summary.aborted:
        return EXIT_FATAL
    if summary.has_failures:
        return EXIT_ITEM_FAILURES
    return EXIT_OK


def _mask(secret: Optional[str]) -> str:
    if not secret:
        return '-'
    return '*' * 8 + secret[-4:] if len(secret) > 8 else '*' * 8


def main() -> None:
    """Main entry point for the CLI application."""
    try:
        cli()
    except KeyboardInterrupt:
        console.print('\n[red]Migration interrupted by user[/red]')
        sys.exit(EXIT_FATAL)


if __name__ == '__main__':
    main()
