"""tubeproxy CLI for running the filtering proxy - Tyro implementation."""

import json
import logging
import shutil
import sys
from builtins import print as builtin_print
from pathlib import Path
from typing import Annotated, Literal

import attrs
import tyro
from pydantic import ValidationError
from rich import print
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from tubeproxy.config import CONFIG_FILENAME, TubeProxyConfig, set_config_instance
from tubeproxy.navigation import NavigationState, classify_page
from tubeproxy.utils import get_templates_dir


# Subcommand definitions using attrs
@attrs.define
class Start:
    """Start the filtering proxy (mitmdump with the tubeproxy addon)."""

    detach: Annotated[bool, tyro.conf.arg(aliases=["-d"])] = False
    """Run in background and save PID to .mitm.lock."""


@attrs.define
class Stop:
    """Stop the background filtering proxy."""


@attrs.define
class Status:
    """Show the status of the filtering proxy and its configuration."""

    json: bool = False
    """Output status as JSON."""


@attrs.define
class Install:
    """Install the default tubeproxy.yaml."""

    force: bool = False
    """Overwrite existing configuration."""


@attrs.define
class Filter:
    """Run the transform pipeline over a saved API response."""

    input: Annotated[Path, tyro.conf.Positional]
    """JSON file holding one API response body."""

    location: Annotated[str, tyro.conf.arg(aliases=["-l"])] = "/"
    """Client location the response was requested from (e.g. '/#/browse?c=FEsubscriptions')."""

    output: Annotated[Path | None, tyro.conf.arg(aliases=["-o"])] = None
    """Output file path. Defaults to stdout."""

    indent: int = 2
    """JSON indentation of the output (0 for compact)."""


@attrs.define
class Page:
    """Classify a client location into a page context."""

    location: Annotated[str, tyro.conf.Positional]
    """URL or path with optional hash (e.g. '/#/watch?v=abc')."""


@attrs.define
class PassViz:
    """Visualize the transform pass DAG of both pipeline stages.

    Shows pass execution order and dependencies based on reads/writes declarations.
    """

    output: Annotated[Literal["ascii", "mermaid", "json"], tyro.conf.arg(aliases=["-o"])] = "ascii"
    """Output format: ascii, mermaid, json."""

    validate: Annotated[bool, tyro.conf.arg(aliases=["-v"])] = False
    """Validate the DAGs and report any issues."""


# Type alias for all subcommands
Command = (
    Annotated[Start, tyro.conf.subcommand(name="start")]
    | Annotated[Stop, tyro.conf.subcommand(name="stop")]
    | Annotated[Status, tyro.conf.subcommand(name="status")]
    | Annotated[Install, tyro.conf.subcommand(name="install")]
    | Annotated[Filter, tyro.conf.subcommand(name="filter")]
    | Annotated[Page, tyro.conf.subcommand(name="page")]
    | Annotated[PassViz, tyro.conf.subcommand(name="pass-viz")]
)


def setup_logging(debug: bool = False) -> None:
    """Configure logging with 100-character text width."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)-20s - %(levelname)-8s - %(message).100s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    if debug:
        logging.getLogger("tubeproxy").setLevel(logging.DEBUG)


def load_config(config_dir: Path) -> TubeProxyConfig:
    """Load tubeproxy.yaml from ``config_dir`` and install it as the global config.

    Exits with status 1 when the file holds invalid values.
    """
    yaml_path = config_dir / CONFIG_FILENAME
    try:
        config = TubeProxyConfig.from_yaml(yaml_path)
    except ValidationError as e:
        print(f"[red]Invalid configuration in {yaml_path}:[/red]\n{e}")
        sys.exit(1)
    set_config_instance(config)
    return config


def install_config(config_dir: Path, force: bool = False) -> None:
    """Install the default tubeproxy.yaml.

    Args:
        config_dir: Directory to install configuration files to
        force: Whether to overwrite existing configuration
    """
    dst = config_dir / CONFIG_FILENAME
    if dst.exists() and not force:
        print(f"Configuration file {dst} already exists.")
        print("Use --force to overwrite existing configuration.")
        sys.exit(1)

    config_dir.mkdir(parents=True, exist_ok=True)

    try:
        templates_dir = get_templates_dir()
    except RuntimeError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    src = templates_dir / CONFIG_FILENAME
    if not src.exists():
        print(f"Error: Template {CONFIG_FILENAME} not found", file=sys.stderr)
        sys.exit(1)

    shutil.copy2(src, dst)
    print(f"  Copied {CONFIG_FILENAME}")

    print(f"\nInstallation complete! Configuration installed to: {config_dir}")
    print("\nNext steps:")
    print(f"  1. Edit {dst} to choose filters")
    print("  2. Start the proxy with: tubeproxy start")
    print("  3. Point the TV's proxy settings at this host and trust the mitmproxy CA")


def start_proxy(config_dir: Path, detach: bool = False) -> None:
    from tubeproxy.mitm import start_mitm

    config = load_config(config_dir)
    start_mitm(config_dir, config.mitm, detach=detach)


def stop_proxy(config_dir: Path) -> bool:
    from tubeproxy.mitm import stop_mitm

    return stop_mitm(config_dir)


def show_status(config_dir: Path, json_output: bool = False) -> None:
    """Show the status of the filtering proxy and configuration.

    Args:
        config_dir: Configuration directory to check
        json_output: Output status as JSON
    """
    from tubeproxy.mitm import get_mitm_status

    config = load_config(config_dir)
    mitm_status = get_mitm_status(config_dir)
    yaml_path = config_dir / CONFIG_FILENAME

    enabled = sorted(
        name for name, value in config.filters.model_dump().items() if isinstance(value, bool) and value
    )
    status_data = {
        "proxy": mitm_status["running"],
        "pid": mitm_status["pid"],
        "listen": f"{config.mitm.listen_host}:{config.mitm.port}",
        "mode": config.mitm.mode,
        "config": str(yaml_path) if yaml_path.exists() else None,
        "log": mitm_status.get("log_file"),
        "filters": enabled,
        "pass_overrides": config.filters.pass_overrides or None,
    }

    if json_output:
        builtin_print(json.dumps(status_data, indent=2))
        return

    console = Console()
    table = Table(show_header=False, show_lines=True)
    table.add_column("Key", style="white", width=15)
    table.add_column("Value", style="yellow")

    running = "[green]running[/green]" if status_data["proxy"] else "[red]stopped[/red]"
    if status_data["pid"]:
        running += f" (PID {status_data['pid']})"
    table.add_row("proxy", running)
    table.add_row("listen", f"{status_data['listen']} ({status_data['mode']})")
    table.add_row("config", status_data["config"] or "[dim]defaults[/dim]")
    table.add_row("log", status_data["log"] or "[dim]none[/dim]")
    table.add_row("filters", "\n".join(enabled) or "[dim]none[/dim]")
    if status_data["pass_overrides"]:
        table.add_row("overrides", status_data["pass_overrides"])

    console.print(Panel(table, title="[bold]tubeproxy Status[/bold]", border_style="blue"))


def handle_filter(config_dir: Path, cmd: Filter) -> None:
    """Handle filter subcommand: transform a saved response offline."""
    from tubeproxy.interceptor import DecodePipeline

    load_config(config_dir)

    try:
        raw = cmd.input.read_text()
    except OSError as e:
        print(f"[red]Error reading {cmd.input}: {e}[/red]")
        sys.exit(1)

    pipeline = DecodePipeline()
    try:
        result = pipeline.decode(raw, navigation=NavigationState.from_url(cmd.location))
    except json.JSONDecodeError as e:
        print(f"[red]Invalid JSON in {cmd.input}: {e}[/red]")
        sys.exit(1)

    text = json.dumps(result, indent=cmd.indent or None, ensure_ascii=False)
    if cmd.output:
        cmd.output.write_text(text + "\n")
        print(f"Wrote {cmd.output}")
    else:
        builtin_print(text)


def handle_page(cmd: Page) -> None:
    state = NavigationState.from_url(cmd.location)
    builtin_print(classify_page(state).value)


def handle_pass_viz(cmd: PassViz) -> None:
    """Handle pass-viz subcommand to visualize both pipeline DAGs."""
    from tubeproxy.pipeline import PipelineExecutor
    from tubeproxy.pipeline.hook import STAGES

    executors: dict[str, PipelineExecutor] = {}
    for stage in STAGES:
        try:
            executors[stage] = PipelineExecutor.for_stage(stage)
        except Exception as e:
            print(f"[red]Error building {stage} DAG: {e}[/red]")
            sys.exit(1)

    if cmd.validate:
        warnings = [f"{stage}: {w}" for stage, executor in executors.items() for w in executor.dag.validate()]
        if warnings:
            print("[yellow]DAG Validation Warnings:[/yellow]")
            for w in warnings:
                print(f"  • {w}")
        else:
            print("[green]DAG validation passed - no issues found[/green]")
        print()

    if cmd.output == "mermaid":
        for stage, executor in executors.items():
            builtin_print(f"%% {stage} stage")
            builtin_print(executor.to_mermaid())
        return

    if cmd.output == "json":
        dag_data = {
            stage: {
                "execution_order": executor.get_execution_order(),
                "levels": executor.dag.levels,
                "passes": {
                    name: {
                        "reads": sorted(executor.dag.get_hook(name).reads),
                        "writes": sorted(executor.dag.get_hook(name).writes),
                        "dependencies": sorted(executor.dag.get_dependencies(name)),
                        "isolated": executor.dag.get_hook(name).isolated,
                    }
                    for name in executor.get_execution_order()
                },
            }
            for stage, executor in executors.items()
        }
        builtin_print(json.dumps(dag_data, indent=2))
        return

    console = Console()
    for stage, executor in executors.items():
        console.print(Panel(f"[bold cyan]{stage.capitalize()} Stage[/bold cyan]", expand=False))

        order = executor.get_execution_order()
        console.print("\n[bold]Execution Order:[/bold]")
        console.print(f"  {' → '.join(order)}")

        console.print("\n[bold]Pass Dependencies:[/bold]")
        table = Table(show_header=True, header_style="bold")
        table.add_column("Pass", style="cyan")
        table.add_column("Reads", style="green")
        table.add_column("Writes", style="yellow")
        table.add_column("Depends On", style="magenta")
        table.add_column("Errors", style="dim")

        for name in order:
            spec = executor.dag.get_hook(name)
            table.add_row(
                name,
                ", ".join(sorted(spec.reads)) or "-",
                ", ".join(sorted(spec.writes)) or "-",
                ", ".join(sorted(executor.dag.get_dependencies(name))) or "-",
                "isolated" if spec.isolated else "propagate",
            )
        console.print(table)

        console.print("\n[bold]DAG Visualization:[/bold]")
        console.print(executor.to_ascii())
        console.print()


def main(
    cmd: Annotated[Command, tyro.conf.arg(name="")],
    *,
    config_dir: Annotated[Path | None, tyro.conf.arg(help="Configuration directory")] = None,
    debug: bool = False,
) -> None:
    """tubeproxy - YouTube TV response filtering proxy.

    Strips ads, short-form content and watched videos from YouTube TV API
    responses and adds queue, preview and SponsorBlock controls.
    """
    if config_dir is None:
        config_dir = Path.home() / ".tubeproxy"

    setup_logging(debug)

    if isinstance(cmd, Start):
        start_proxy(config_dir, detach=cmd.detach)

    elif isinstance(cmd, Stop):
        success = stop_proxy(config_dir)
        sys.exit(0 if success else 1)

    elif isinstance(cmd, Status):
        show_status(config_dir, json_output=cmd.json)

    elif isinstance(cmd, Install):
        install_config(config_dir, force=cmd.force)

    elif isinstance(cmd, Filter):
        handle_filter(config_dir, cmd)

    elif isinstance(cmd, Page):
        handle_page(cmd)

    elif isinstance(cmd, PassViz):
        handle_pass_viz(cmd)


def entry_point() -> None:
    """Entry point for the tubeproxy command."""
    tyro.cli(main)


if __name__ == "__main__":
    entry_point()
