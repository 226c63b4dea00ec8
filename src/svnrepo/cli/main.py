"""
Main CLI entry point for svnrepo.

This module provides the command-line interface for browsing the virtual
package repositories: listing providers, showing the packages synthesized
for a name, searching, and managing configuration and caches.
"""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

import rich_click as click
import structlog
from rich.console import Console
from rich.table import Table

from ..config.loader import ConfigLoader, ProjectConfig
from ..errors import ConfigurationError, SvnRepoError
from ..repository.manager import RepositoryManager

# Configure rich-click styling
click.rich_click.USE_RICH_MARKUP = True
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
click.rich_click.STYLE_METAVAR = "bold yellow"
click.rich_click.STYLE_USAGE_COMMAND = "bold"
click.rich_click.STYLE_USAGE_PROG = "bold blue"
click.rich_click.STYLE_OPTION = "bold cyan"
click.rich_click.STYLE_ARGUMENT = "bold yellow"
click.rich_click.STYLE_COMMAND = "bold green"

# Create rich console for formatted output
console = Console()

# Configure structured logging for CLI
structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="ISO"),
        structlog.dev.ConsoleRenderer()
    ],
    logger_factory=structlog.WriteLoggerFactory(),
    wrapper_class=structlog.BoundLogger,
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)

FORMAT_OPTION = click.option(
    "--format", "output_format",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format"
)


class SvnRepoCLIContext:
    """CLI context for sharing state between commands."""

    def __init__(self):
        self.config_path: str | None = None
        self.verbose: bool = False

    def load_config(self) -> ProjectConfig:
        config_loader = ConfigLoader()
        if self.config_path:
            config_data = config_loader.load_from_file(self.config_path)
        else:
            config_data = config_loader.load_defaults()
        project_config = config_loader.to_project_config(config_data)

        if not self.verbose:
            logging.getLogger().setLevel(project_config.settings.log_level.upper())
        return project_config

    def create_manager(self) -> RepositoryManager:
        manager = RepositoryManager(self.load_config())
        manager.activate()
        return manager


def _run(ctx: click.Context, coro_factory, action: str) -> Any:
    """Run a coroutine, turning repository errors into exit status 1."""
    try:
        return asyncio.run(coro_factory(ctx.obj.create_manager()))
    except ConfigurationError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)
    except SvnRepoError as e:
        click.echo(f"Error during {action}: {e}", err=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nInterrupted by user")
        sys.exit(130)


@click.group()
@click.option(
    "--config", "-c",
    type=click.Path(exists=True),
    help="Path to configuration file"
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Enable verbose output"
)
@click.pass_context
def cli(ctx: click.Context, config: str | None, verbose: bool) -> None:
    """
    [bold blue]svnrepo[/bold blue] - Virtual package repositories over SVN trees.

    Lists providers and versions from SVN repositories such as the
    WordPress plugin and theme directories and shows the package records
    synthesized for them.
    """
    ctx.ensure_object(SvnRepoCLIContext)
    ctx.obj.config_path = config
    ctx.obj.verbose = verbose

    if verbose:
        logging.basicConfig(level=logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)


@cli.command()
@click.option("--repository", "-r", "repository_name", help="Only list this repository")
@FORMAT_OPTION
@click.pass_context
def providers(ctx: click.Context, repository_name: str | None, output_format: str) -> None:
    """List the providers of every active repository."""

    async def _providers(manager: RepositoryManager) -> dict[str, list[str]]:
        if repository_name:
            repo = manager.get_repository(repository_name)
            return {repository_name: await repo.get_provider_names()}
        return await manager.get_provider_names()

    names = _run(ctx, _providers, "provider listing")

    if output_format == "json":
        click.echo(json.dumps({"providers": names}, indent=2))
        return

    table = Table(title="Providers", show_header=True, header_style="bold magenta")
    table.add_column("Repository", style="cyan")
    table.add_column("Provider", style="green")
    for repo_name, provider_names in names.items():
        for provider in provider_names:
            table.add_row(repo_name, provider)
    console.print(table)
    console.print(f"[dim]{sum(len(p) for p in names.values())} providers[/dim]")


@cli.command()
@click.argument("name")
@FORMAT_OPTION
@click.pass_context
def show(ctx: click.Context, name: str, output_format: str) -> None:
    """Show the packages provided for VENDOR/NAME."""

    async def _show(manager: RepositoryManager) -> list[dict[str, Any]]:
        return [package.to_dict() for package in await manager.what_provides(name)]

    packages = _run(ctx, _show, "package lookup")

    if output_format == "json":
        click.echo(json.dumps({"packages": packages}, indent=2))
        return

    if not packages:
        console.print(f"[yellow]No packages found for {name}[/yellow]")
        return

    table = Table(title=name, show_header=True, header_style="bold magenta")
    table.add_column("Version", style="cyan")
    table.add_column("Type", style="white")
    table.add_column("Reference", style="green")
    table.add_column("Dist", style="dim")
    for package in packages:
        table.add_row(
            package["version"],
            package["type"],
            package["source"]["reference"],
            package.get("dist", {}).get("url", ""),
        )
    console.print(table)


@cli.command()
@click.argument("query")
@FORMAT_OPTION
@click.pass_context
def search(ctx: click.Context, query: str, output_format: str) -> None:
    """Search every active repository."""

    async def _search(manager: RepositoryManager) -> list[dict[str, Any]]:
        return await manager.search(query)

    results = _run(ctx, _search, "search")

    if output_format == "json":
        click.echo(json.dumps({"results": results}, indent=2))
        return

    if not results:
        console.print("[yellow]No results found[/yellow]")
        return

    table = Table(title=f"Results for {query!r}", show_header=True, header_style="bold magenta")
    table.add_column("Name", style="cyan")
    table.add_column("Description", style="white")
    for result in results:
        table.add_row(result["name"], result.get("description") or "")
    console.print(table)


@cli.group()
def config():
    """Configuration management commands."""
    pass


@config.command()
@click.option("--output", "-o", type=click.Path(), help="Output path for configuration file")
def init(output: str | None) -> None:
    """Initialize an example configuration file."""
    config_loader = ConfigLoader()
    config_path = Path(output) if output else config_loader.get_default_config_path()
    try:
        config_loader.create_example_config(config_path)
    except ConfigurationError as e:
        click.echo(f"Error creating configuration: {e}", err=True)
        sys.exit(1)
    click.echo(f" Created example configuration at {config_path}")


@config.command()
@click.argument("config_file", type=click.Path(exists=True))
def validate(config_file: str) -> None:
    """Validate configuration file."""
    config_loader = ConfigLoader()
    try:
        config_loader.load_from_file(config_file)
    except ConfigurationError as e:
        click.echo(f"Configuration validation failed: {e}", err=True)
        sys.exit(1)
    click.echo(" Configuration is valid")


@cli.group()
def cache():
    """Provider cache commands."""
    pass


@cache.command()
@click.option("--repository", "-r", "repository_name", help="Only clear this repository")
@click.pass_context
def clear(ctx: click.Context, repository_name: str | None) -> None:
    """Remove cached provider listings."""
    try:
        manager = ctx.obj.create_manager()
        repositories = (
            [manager.get_repository(repository_name)] if repository_name
            else list(manager.repositories.values())
        )
    except SvnRepoError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    for repo in repositories:
        removed = repo.cache_store.clear()
        logger.info("Cleared cache", repository=repo.name, entries=removed)
        click.echo(f" {repo.name}: removed {removed} cache entries")


def main() -> None:
    """Main CLI entry point."""
    cli()


if __name__ == "__main__":
    main()
