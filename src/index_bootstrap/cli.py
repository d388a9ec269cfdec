"""Command line interface for Index Bootstrap."""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape

from . import __version__
from .bootstrap import Bootstrapper, BootstrapResult, BootstrapStatus
from .config import Config, ConfigManager
from .environment import ProcessEnvironment
from .scheduler import AsyncioScheduler

logger = logging.getLogger(__name__)
console = Console()

STATUS_STYLES = {
    BootstrapStatus.DISPATCHED: "green",
    BootstrapStatus.EXHAUSTED: "yellow",
    BootstrapStatus.REGISTRY_UNAVAILABLE: "yellow",
    BootstrapStatus.ALREADY_IN_FLIGHT: "dim",
}


def _load_config(ctx: click.Context) -> Config:
    config_manager: ConfigManager = ctx.obj["config_manager"]
    try:
        return config_manager.load()
    except ValueError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        sys.exit(1)


async def _run_bootstrap(bootstrapper: Bootstrapper) -> BootstrapResult:
    result = await bootstrapper.activate()
    scheduler = bootstrapper.scheduler
    if isinstance(scheduler, AsyncioScheduler):
        # Let register/refresh/watch requests reach the service before exiting
        await scheduler.drain()
    return result


def _print_result(result: BootstrapResult) -> None:
    style = STATUS_STYLES.get(result.status, "white")
    console.print(f"[{style}]Bootstrap {result.status.value}[/{style}]")
    if result.project is not None:
        console.print(f"  Project: {result.project.root}")
        console.print(f"  Manifest: {result.project.manifest_path}")
    if result.decision is not None:
        console.print(f"  Action: {result.decision.value}")


@click.group()
@click.option("--config", "-c", type=click.Path(exists=False), help="Config file path")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.version_option(version=__version__, prog_name="index-bootstrap")
@click.pass_context
def cli(ctx: click.Context, config: Optional[str], verbose: bool) -> None:
    """Bring the background index service in line with the current project."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s:%(name)s:%(message)s",
    )
    if not verbose:
        logging.getLogger("rpyc").setLevel(logging.WARNING)

    if config:
        ctx.obj["config_manager"] = ConfigManager(Path(config))
    else:
        ctx.obj["config_manager"] = ConfigManager.create_with_backtrack()


@cli.command()
@click.option(
    "--document",
    "-d",
    type=click.Path(exists=False, path_type=Path),
    help="Active document; used when the working directory is not inside a project",
)
@click.pass_context
def start(ctx: click.Context, document: Optional[Path]) -> None:
    """Start the index service and reconcile the current project."""
    config = _load_config(ctx)
    bootstrapper = Bootstrapper.from_config(config, ProcessEnvironment(document))

    result = asyncio.run(_run_bootstrap(bootstrapper))
    _print_result(result)
    if result.status is not BootstrapStatus.DISPATCHED:
        sys.exit(1)


@cli.command("config-show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Print the effective configuration."""
    config = _load_config(ctx)
    config_manager: ConfigManager = ctx.obj["config_manager"]
    console.print(f"[dim]Config file: {config_manager.config_path}[/dim]")
    click.echo(json.dumps(config.model_dump(mode="json"), indent=2))


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
