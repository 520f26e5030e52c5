"""SpecLinter command line: run the MCP server and inspect features."""

from __future__ import annotations

import click

from . import __version__
from .models import FeatureStatus
from .project import init_project, open_storage
from .speclinter_logging import setup_logging


def _echo_status(status: FeatureStatus) -> None:
    click.secho(f"  Total Tasks: {status.total_tasks}", fg="blue")
    click.secho(f"  Completed: {status.completed_tasks}", fg="green")
    click.secho(f"  In Progress: {status.in_progress_tasks}", fg="yellow")
    click.secho(f"  Blocked: {status.blocked_tasks}", fg="red")
    click.secho(f"  Last Updated: {status.last_updated}", dim=True)
    click.secho(f"  Progress: {status.progress_percent}%", fg="blue")


@click.group()
@click.version_option(__version__, prog_name="speclinter")
@click.option("--log-level", envvar="SPECLINTER_LOG_LEVEL", default=None, help="Logging level (default INFO)")
def cli(log_level):
    """Turn specs into structured tasks with built-in quality gates."""
    setup_logging(log_level)


@cli.command()
def serve():
    """Start the MCP server on stdio."""
    from .server import mcp

    mcp.run(transport="stdio")


@cli.command()
@click.option("--force", is_flag=True, help="Reinitialize an existing project")
@click.option("--root", "project_root", type=click.Path(file_okay=False), default=None, help="Project root")
def init(force, project_root):
    """Initialize SpecLinter in the current directory."""
    result = init_project(project_root or ".", force_reinit=force)
    if not result["success"]:
        raise click.ClickException(result["message"])

    click.secho(result["message"], fg="green")
    click.secho("Created:", fg="blue")
    for directory in result["directories_created"]:
        click.echo(f"  - {directory}")
    click.secho("\nNext steps:", fg="blue")
    click.secho("  1. Connect your AI IDE to `speclinter serve` over MCP", fg="yellow")
    click.secho('  2. Try: "Analyze this codebase, then parse this spec: Create a user login form"', fg="yellow")


@cli.command()
@click.argument("feature")
@click.option("--root", "project_root", type=click.Path(file_okay=False), default=None, help="Project root")
def status(feature, project_root):
    """Show the task status of FEATURE."""
    with open_storage(project_root) as storage:
        feature_status = storage.get_feature_status(feature)

    click.secho(f"\nStatus for {feature}:", fg="green")
    _echo_status(feature_status)


@cli.command()
@click.argument("feature")
@click.option("--root", "project_root", type=click.Path(file_okay=False), default=None, help="Project root")
def validate(feature, project_root):
    """Show FEATURE's status and its last AI validation."""
    click.secho("AI-powered validation runs through your AI IDE's MCP tools:", fg="yellow")
    click.secho(f'  1. "Prepare validation for feature: {feature}"', fg="blue")
    click.secho("  2. The AI analyzes the implementation", fg="blue")
    click.secho('  3. "Process the validation results"', fg="blue")
    click.secho("\nOr call the tools directly:", dim=True)
    click.secho("  - speclinter_validate_implementation_prepare", fg="blue")
    click.secho("  - speclinter_validate_implementation_process", fg="blue")

    with open_storage(project_root) as storage:
        feature_status = storage.get_feature_status(feature)
        validation = storage.get_validation_results(feature)

    click.secho(f"\nCurrent Status for {feature}:", fg="green")
    _echo_status(feature_status)

    if validation is None:
        click.secho("\nNo AI validation results found. Use the MCP tools for a full analysis.", fg="yellow")
        return

    click.secho("\nLast AI Validation:", fg="green")
    click.secho(f"  Status: {validation['overallStatus']}", fg="blue")
    click.secho(f"  Quality Score: {validation['qualityScore']:g}/100", fg="blue")
    click.secho(f"  Completion: {validation['completionPercentage']:g}%", fg="blue")
    click.secho(f"  Validated: {validation['validatedAt']}", dim=True)


def main():
    cli()


if __name__ == "__main__":
    main()
