"""CLI entry point for ironsmith."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from ironsmith.config import ConfigNotFoundError, IronsmithConfig, load_config
from ironsmith.config.loader import DEFAULT_CONFIG_TEMPLATE
from ironsmith.core import Ironsmith
from ironsmith.errors import ConfigurationError
from ironsmith.plugins import PluginLoader, PluginLoadError, PluginNotFoundError

app = typer.Typer(
    name="ironsmith",
    help="Build a directory of files through a pipeline of plugins.",
)

config_app = typer.Typer(help="Manage ironsmith configuration.")
app.add_typer(config_app, name="config")

# soft_wrap keeps long destination paths on one line
console = Console(soft_wrap=True)

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

ConfigOption = Annotated[
    str | None, typer.Option("--config", "-c", help="Path to ironsmith.yaml / ironsmith.json")
]


def _fail(message: str) -> typer.Exit:
    message = " ".join(line.strip() for line in message.splitlines() if line.strip())
    console.print(f"[red]Error:[/red] {escape(message)}")
    return typer.Exit(1)


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=_LOG_LEVELS.get(level, logging.INFO),
        format="%(message)s",
        handlers=[RichHandler(show_path=False, rich_tracebacks=False)],
        force=True,
    )


def _load(config: str | None) -> tuple[IronsmithConfig, Path]:
    try:
        return load_config(config)
    except (ConfigNotFoundError, ValueError) as e:
        raise _fail(str(e))


def _configure(cfg: IronsmithConfig, cfg_path: Path) -> Ironsmith:
    """Create an Ironsmith rooted at the config file's directory."""
    root = cfg_path.parent
    smith = Ironsmith(root)
    try:
        cfg.apply(smith)
    except ConfigurationError as e:
        raise _fail(f"invalid configuration in {cfg_path}: {e}")

    loader = PluginLoader(root)
    try:
        for plugin in loader.load_all(cfg.plugins):
            smith.use(plugin)
    except (PluginNotFoundError, PluginLoadError) as e:
        raise _fail(str(e))
    return smith


@app.command()
def build(config: ConfigOption = None) -> None:
    """Read the source directory, run the plugins and write the destination."""
    cfg, cfg_path = _load(config)
    _setup_logging(cfg.log_level)
    smith = _configure(cfg, cfg_path)

    try:
        asyncio.run(smith.build())
    except Exception as e:
        raise _fail(str(e) or type(e).__name__)

    console.print(f"[green]successfully built to[/green] {escape(str(smith.destination))}")


@app.command()
def plugins() -> None:
    """List plugins registered through the ironsmith.plugins entry point group."""
    names = PluginLoader().discover()
    if not names:
        console.print("[yellow]No plugins registered.[/yellow]")
        raise typer.Exit(0)

    table = Table(title=f"Registered plugins ({len(names)})")
    table.add_column("Name", style="cyan")
    table.add_column("Group", style="dim")
    for name in sorted(names):
        table.add_row(name, PluginLoader.GROUP)
    console.print(table)


@config_app.command("show")
def config_show(config: ConfigOption = None) -> None:
    """Show the resolved configuration."""
    cfg, cfg_path = _load(config)
    console.print(f"[dim]# {escape(str(cfg_path))}[/dim]")
    console.print(Syntax(yaml.safe_dump(cfg.model_dump(), default_flow_style=False, sort_keys=False), "yaml"))


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Create default ironsmith.yaml in current directory."""
    target = Path("ironsmith.yaml")
    if target.exists() and not force:
        console.print("[yellow]ironsmith.yaml already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    console.print(f"[green]Created[/green] {target}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
