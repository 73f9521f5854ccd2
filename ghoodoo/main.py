"""CLI entry point for the webhook bridge."""

import asyncio
import json
import sys
from pathlib import Path

import click
import structlog

from ghoodoo.config.settings import GhoodooSettings
from ghoodoo.engine.reconciler import process_event
from ghoodoo.enums import EventType
from ghoodoo.exceptions import ConfigurationError, GhoodooError
from ghoodoo.git.references import parse_references
from ghoodoo.models.domain import ProcessResult
from ghoodoo.providers.base import CommentNotifier
from ghoodoo.providers.github_rest import GitHubCommentNotifier
from ghoodoo.providers.odoo_rpc import OdooClient
from ghoodoo.utils.logging_config import configure_logging

log = structlog.get_logger(__name__)


def load_settings(config: str | None) -> GhoodooSettings:
    """Load settings from a YAML file, or from the environment if none given."""
    if config:
        return GhoodooSettings.from_yaml(config)
    return GhoodooSettings.from_env()


@click.group()
@click.option("--config", default=None, help="Path to YAML configuration file (default: environment)")
@click.option("--log-level", default="INFO", help="Logging level")
@click.pass_context
def cli(ctx: click.Context, config: str | None, log_level: str) -> None:
    """ghoodoo: sync GitHub commits and pull requests to Odoo tasks."""
    configure_logging(log_level, json_output=ctx.invoked_subcommand == "serve")
    ctx.obj = {"config": config}


@cli.command()
@click.argument("text")
def parse(text: str) -> None:
    """Print the task references found in TEXT."""
    references = parse_references(text)
    if not references:
        click.echo("No task references found")
        return
    for reference in references:
        click.echo(f"{reference.key}\t{reference.action}")


@cli.command()
@click.option("--host", default="0.0.0.0", help="Interface to bind")  # nosec B104
@click.option("--port", type=int, default=8000, help="Port to listen on")
@click.pass_context
def serve(ctx: click.Context, host: str, port: int) -> None:
    """Run the webhook server."""
    import uvicorn

    from ghoodoo import webhook_server

    try:
        webhook_server.settings = load_settings(ctx.obj["config"])
    except ConfigurationError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)

    uvicorn.run(webhook_server.app, host=host, port=port)


@cli.command()
@click.option(
    "--event",
    "event_type",
    type=click.Choice([EventType.PUSH.value, EventType.PULL_REQUEST.value]),
    required=True,
    help="GitHub event type of the saved payload",
)
@click.option("--notify/--no-notify", default=False, help="Post the PR summary comment to GitHub")
@click.argument("payload_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def replay(ctx: click.Context, event_type: str, notify: bool, payload_file: Path) -> None:
    """Process a saved webhook payload against the configured Odoo."""
    try:
        settings = load_settings(ctx.obj["config"])
        result = asyncio.run(_replay(settings, event_type, payload_file.read_bytes(), notify))
    except GhoodooError as e:
        click.echo(f"Error: {e.message}", err=True)
        log.debug("replay_error", exc_info=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        sys.exit(130)

    click.echo(json.dumps({"event": event_type, **result.to_dict()}, indent=2))
    if result.errors:
        sys.exit(2)


async def _replay(settings: GhoodooSettings, event_type: str, payload: bytes, notify: bool) -> ProcessResult:
    notifier: CommentNotifier | None = None
    if notify and settings.github_token:
        notifier = GitHubCommentNotifier(settings.github_token)

    try:
        async with OdooClient(settings.odoo_config()) as tasks:
            return await process_event(event_type, payload, tasks, notifier)
    finally:
        if isinstance(notifier, GitHubCommentNotifier):
            await notifier.close()


if __name__ == "__main__":
    cli()
