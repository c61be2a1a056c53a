"""Component Census CLI - inventory of the UI components of a project."""
import json
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import OUTPUT_FORMATS, __version__, get_config
from .errors import ScanPreconditionError
from .scanner import ProjectScanner, ScanResult, write_json
from .utils.logger import get_logger, is_utf8_capable, set_verbose

app = typer.Typer(
    name="census",
    help="Inventory of the UI components of a project: definitions, usages, props and origins",
    add_completion=False
)
# Diagnostics go to stderr so `--output stdout` stays machine-readable
console = Console(stderr=True, legacy_windows=not is_utf8_capable())


def _display_path(path: str, root: Path) -> str:
    try:
        return str(Path(path).relative_to(root))
    except ValueError:
        return path


def _print_summary(result: ScanResult, root: Path):
    table = Table(title=f"Components ({len(result.profiles)})")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Type", style="magenta")
    table.add_column("Total", justify="right", style="green")
    table.add_column("Source", no_wrap=False)

    for profile in sorted(result.profiles, key=lambda p: p.total_usage_count, reverse=True):
        source = profile.source_path
        if profile.dependency_package is not None:
            source = f"{profile.dependency_package.name}@{profile.dependency_package.version}"
        table.add_row(
            escape(profile.name),
            profile.kind.value if profile.kind is not None else "-",
            str(profile.total_usage_count),
            escape(_display_path(source, root)) if source else "[dim]unresolved[/dim]",
        )
    console.print(table)

    if result.collisions:
        console.print(f"\n[bold yellow]Ambiguous sources ({len(result.collisions)}):[/bold yellow]")
        for collision in result.collisions:
            others = ", ".join(_display_path(a, root) for a in collision.alternatives)
            console.print(
                f"  {escape(collision.name)}: picked {escape(_display_path(collision.chosen, root))} "
                f"[dim]over {escape(others)}[/dim]"
            )

    console.print(
        f"\n[bold yellow]Summary:[/bold yellow] {result.files_scanned} files scanned, "
        f"{len(result.profiles)} components, {len(result.redirects)} duplicates merged"
    )


@app.command()
def scan(
    project_path: str = typer.Argument(".", help="Project root (must contain package.json)"),
    ignore: Optional[List[str]] = typer.Option(None, "--ignore", "-i", help="Extra ignore pattern (repeatable)"),
    output: Optional[str] = typer.Option(None, "--output", help="Output format: json (file) or stdout"),
    app_dir: Optional[str] = typer.Option(None, "--app-dir", help="Directory for component-profiles.json"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Print debug output"),
    no_history: bool = typer.Option(False, "--no-history", help="Skip git history enrichment"),
    debug: bool = typer.Option(False, "--debug", help="Also write intermediate pipeline stages to the app dir"),
):
    """Scan a project and build its component inventory."""
    try:
        config = get_config()
    except ValueError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(1)

    output = (output or config.output_format).lower()
    if output not in OUTPUT_FORMATS:
        console.print(f"[bold red]Error:[/bold red] Invalid output '{escape(output)}'. Use 'json' or 'stdout'.")
        raise typer.Exit(1)

    set_verbose(verbose or config.verbose)
    log = get_logger()

    root = Path(project_path).resolve()
    console.print(f"[bold blue]Scanning project:[/bold blue] {escape(str(root))}\n")

    try:
        out_dir = app_dir or config.app_dir
        scanner = ProjectScanner(
            root,
            ignore=ignore,
            history=config.history_enabled and not no_history,
            debug_dir=out_dir if debug or config.debug else None,
        )
        result = scanner.scan()
    except ScanPreconditionError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(1)

    _print_summary(result, root)

    if output == 'stdout':
        typer.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    else:
        written = write_json(result, out_dir)
        log.info("✓ Results written to", written)


@app.command()
def version():
    """Print the census version."""
    typer.echo(__version__)


@app.callback()
def main():
    """Component Census - component inventory for Vue and JSX projects."""
    pass


if __name__ == "__main__":
    app()
