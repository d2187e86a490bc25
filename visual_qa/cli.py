"""CLI entry point for visual regression checks."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from visual_qa.baselines.store import validate_name
from visual_qa.comparator.visual_comparator import VisualComparator, VisualEnvironmentError
from visual_qa.models.config import VisualConfig
from visual_qa.models.regions import IgnoreRegion, default_dynamic_regions

console = Console()

DEFAULT_CONFIG = "visual-config.json"


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _load_config(config: str) -> VisualConfig:
    try:
        return VisualConfig.load(config)
    except FileNotFoundError:
        console.print(f"[red]Config file not found: {config}[/red]")
        console.print("Run 'visual-qa init' to create a default config.")
        sys.exit(1)


def _check_name(ctx, param, value: str) -> str:
    try:
        validate_name(value)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e
    return value


def _parse_region(ctx, param, values: tuple[str, ...]) -> list[IgnoreRegion]:
    regions = []
    for value in values:
        parts = value.split(",")
        if len(parts) != 4:
            raise click.BadParameter(f"expected x,y,width,height, got '{value}'")
        try:
            x, y, w, h = (int(p) for p in parts)
            regions.append(IgnoreRegion.of(x, y, w, h))
        except ValueError as e:
            raise click.BadParameter(f"invalid region '{value}': {e}") from e
    return regions


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Visual regression checks for rendered pages"""
    setup_logging(verbose)


@cli.command()
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
@click.option("--threshold", "-t", default=0.0, type=click.FloatRange(0.0, 100.0),
              help="Maximum tolerated mismatch percent")
def init(config: str, threshold: float) -> None:
    """Create a default configuration file."""
    config_path = Path(config)
    if config_path.exists():
        if not click.confirm(f"{config_path} already exists. Overwrite?"):
            return

    cfg = VisualConfig(mismatch_threshold_percent=threshold)
    cfg.save(config_path)
    console.print(f"[green]Created {config_path}[/green]")


@cli.command()
@click.argument("baseline", type=click.Path(exists=True, dir_okay=False))
@click.argument("actual", type=click.Path(exists=True, dir_okay=False))
@click.option("--diff", "diff_path", default=None, help="Where to write the diff PNG")
@click.option("--threshold", "-t", default=0.0, type=click.FloatRange(0.0, 100.0),
              help="Maximum tolerated mismatch percent")
@click.option("--tolerance", default=0, type=click.IntRange(0, 255),
              help="Per-channel color tolerance (0 = exact)")
@click.option("--region", "-r", "regions", multiple=True, callback=_parse_region,
              help="Ignore region as x,y,width,height (repeatable)")
@click.option("--default-regions", is_flag=True, help="Also ignore the default dynamic regions")
def compare(
    baseline: str,
    actual: str,
    diff_path: str | None,
    threshold: float,
    tolerance: int,
    regions: list[IgnoreRegion],
    default_regions: bool,
) -> None:
    """Compare two PNG files pixel by pixel."""
    if default_regions:
        regions = regions + default_dynamic_regions()

    # Only the comparison settings matter here; the directories are never touched.
    comparator = VisualComparator(".", ".", ".", threshold, pixel_tolerance=tolerance)
    try:
        result = comparator.compare_files(baseline, actual, regions, diff_path=diff_path)
    except VisualEnvironmentError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(2)

    passed = result.mismatch_percent <= threshold
    table = Table(title="Visual Comparison")
    table.add_column("Metric", style="bold")
    table.add_column("Value")
    table.add_row("Compared pixels", str(result.total_pixels))
    table.add_row("Mismatched", str(result.mismatched_pixels))
    table.add_row("Ignored", str(result.ignored_pixels))
    table.add_row("Mismatch", f"{result.mismatch_percent:.2f}%")
    table.add_row("Threshold", f"{threshold:.2f}%")
    table.add_row("Result", "[green]PASS[/green]" if passed else "[red]FAIL[/red]")
    console.print(table)
    if diff_path:
        console.print(f"  Diff: [blue]{diff_path}[/blue]")

    if not passed:
        sys.exit(1)


@cli.group()
def baseline() -> None:
    """Manage stored baseline images."""
    pass


@baseline.command("list")
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def baseline_list(config: str) -> None:
    """List stored baselines."""
    comparator = VisualComparator.from_config(_load_config(config))
    names = comparator.store.list_names()
    if not names:
        console.print("[yellow]No baselines stored[/yellow]")
        return

    registry = comparator.registry.load()
    table = Table(title=f"Baselines in {comparator.store.baseline_dir}")
    table.add_column("Name", style="bold")
    table.add_column("Size")
    table.add_column("Captured")
    table.add_column("SHA-256")
    for name in names:
        entry = comparator.registry.get_baseline(registry, name)
        if entry is None:
            table.add_row(name, "?", "[yellow]unregistered[/yellow]", "")
        else:
            table.add_row(name, f"{entry.width}x{entry.height}", entry.captured_at, entry.image_hash[:12])
    console.print(table)


@baseline.command("approve")
@click.argument("name", callback=_check_name)
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def baseline_approve(name: str, config: str) -> None:
    """Promote the latest actual capture of NAME to its baseline."""
    comparator = VisualComparator.from_config(_load_config(config))
    store = comparator.store
    if not store.actual_path(name).exists():
        console.print(f"[red]No actual capture for '{name}' in {store.actual_dir}[/red]")
        sys.exit(1)

    store.ensure_dirs()
    with store.lock(name):
        path = store.seed_baseline(name)
        comparator.registry.record(name, path)
    console.print(f"[green]Approved baseline:[/green] {path}")


@baseline.command("reset")
@click.argument("name", callback=_check_name)
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def baseline_reset(name: str, config: str) -> None:
    """Delete the baseline of NAME so the next run seeds it again."""
    comparator = VisualComparator.from_config(_load_config(config))
    with comparator.store.lock(name):
        removed = comparator.store.remove_baseline(name)
        comparator.registry.remove(name)
    if removed:
        console.print(f"[green]Baseline reset:[/green] {name}")
    else:
        console.print(f"[yellow]No baseline for '{name}'[/yellow]")


if __name__ == "__main__":
    cli()
