"""CLI interface for diskmap."""

import os
from typing import Optional

import typer
from pydantic import ValidationError

from diskmap import __version__
from diskmap.config import Settings, load_settings
from diskmap.display import (
    console,
    format_size,
    render_treemap,
    show_children_table,
    show_layout,
    show_scanning_progress,
    show_status,
    show_tree,
)
from diskmap.layout import layout as layout_nodes
from diskmap.log import configure_logging
from diskmap.models import Rect, ScanState, TreeNode
from diskmap.navigation import NavigationController
from diskmap.scanner import DirectoryScanner, get_disk_usage, get_top_level_directories
from diskmap.sizeprobe import SizeProbe, expand_path

# Create Typer app
app = typer.Typer(
    name="diskmap",
    help="Map where your disk space went - parallel scanner with a zoomable treemap",
    add_completion=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"diskmap version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Log level (DEBUG, INFO, WARNING, ERROR)"
    ),
) -> None:
    """diskmap - see what is using your disk."""
    settings = _settings(log_level=log_level)
    configure_logging(settings.log_level, force=True)


def _settings(**overrides) -> Settings:
    try:
        return load_settings(**overrides)
    except ValidationError as e:
        console.print(f"[red]Invalid settings:[/red] {e.errors()[0]['msg']}")
        raise typer.Exit(1)


def _resolve(path: str) -> str:
    resolved = os.path.abspath(expand_path(path))
    if not os.path.exists(resolved):
        console.print(f"[red]Path does not exist: {resolved}[/red]")
        raise typer.Exit(1)
    return resolved


def _build_scanner(settings: Settings) -> DirectoryScanner:
    return DirectoryScanner(
        probe=SizeProbe(cache_ttl=settings.cache_ttl),
        max_workers=settings.max_workers,
        skip_hidden=not settings.show_hidden,
    )


def _scan_with_progress(path: str, settings: Settings) -> TreeNode:
    """Run a scan in the background and show its progress."""
    controller = NavigationController(_build_scanner(settings), max_depth=settings.max_depth)
    job = controller.start_scan(path)

    with show_scanning_progress() as progress:
        task = progress.add_task("Preparing scan...", total=1.0)
        try:
            while not job.wait(timeout=0.1):
                for event in controller.progress_events.drain():
                    progress.update(task, completed=event.fraction, description=event.label)
        except KeyboardInterrupt:
            controller.cancel()
            job.wait()
            console.print("[yellow]Scan cancelled[/yellow]")
            raise typer.Exit(130)

        for event in controller.progress_events.drain():
            progress.update(task, completed=event.fraction, description=event.label)

    if controller.state != ScanState.READY or controller.root_node is None:
        console.print(f"[red]{controller.status or 'Scan did not finish'}[/red]")
        raise typer.Exit(1)
    return controller.root_node


@app.command()
def scan(
    path: str = typer.Argument(".", help="Directory to scan"),
    depth: Optional[int] = typer.Option(None, "--depth", "-d", help="Levels to scan in detail"),
    top: int = typer.Option(20, "--top", "-n", help="How many entries to list"),
    tree: bool = typer.Option(False, "--tree", help="Show an indented tree instead of a table"),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", help="Scanner threads"),
    show_hidden: Optional[bool] = typer.Option(
        None, "--show-hidden/--skip-hidden", help="Include dot-prefixed entries"
    ),
) -> None:
    """Scan a directory and show what takes the most space."""
    settings = _settings(max_depth=depth, max_workers=workers, show_hidden=show_hidden)
    root = _resolve(path)

    console.print(f"[bold blue]Scanning {root}...[/bold blue]\n")
    node = _scan_with_progress(root, settings)

    console.print()
    if tree:
        show_tree(node, max_depth=min(settings.max_depth, 3), top=top)
    elif node.is_directory:
        show_children_table(node, top=top)
    else:
        console.print(f"{node.name}: {format_size(node.total_size)}")


@app.command()
def layout(
    path: str = typer.Argument(".", help="Directory to lay out"),
    width: float = typer.Option(80.0, "--width", help="Canvas width"),
    height: float = typer.Option(24.0, "--height", help="Canvas height"),
    inset: Optional[float] = typer.Option(None, "--inset", help="Gap around each rectangle"),
    depth: Optional[int] = typer.Option(None, "--depth", "-d", help="Levels to scan in detail"),
    draw: bool = typer.Option(False, "--draw", help="Draw the treemap in the terminal"),
) -> None:
    """Compute the treemap rectangles for a directory's children."""
    if width <= 0 or height <= 0:
        console.print("[red]Error: --width and --height must be positive[/red]")
        raise typer.Exit(1)

    settings = _settings(max_depth=depth, inset=inset)
    root = _resolve(path)
    node = _build_scanner(settings).scan(root, max_depth=max(settings.max_depth, 1))

    rects = layout_nodes(node.children, Rect(width=width, height=height), inset=settings.inset)
    if draw:
        console.print(render_treemap(rects, int(width), int(height)))
    else:
        show_layout(rects)


@app.command()
def roots() -> None:
    """List the usual places worth scanning."""
    console.print("[bold]Scan Locations[/bold]\n")
    for name, path in get_top_level_directories():
        if os.path.isdir(path):
            console.print(f"  • [bold]{name}[/bold] - {path}")
        else:
            console.print(f"  • [dim]{name} - {path} (missing)[/dim]")


@app.command()
def size(
    path: str = typer.Argument(..., help="File or directory to measure"),
) -> None:
    """Total size of a path, without building a tree."""
    root = _resolve(path)
    report = SizeProbe(cache_ttl=0).measure(root)
    console.print(f"[bold]{root}[/bold]")
    console.print(f"  Size:        {format_size(report.total_bytes)} ({report.total_bytes} bytes)")
    console.print(f"  Files:       {report.file_count}")
    console.print(f"  Directories: {report.dir_count}")


@app.command()
def status() -> None:
    """Show current disk usage summary."""
    show_status(get_disk_usage())


@app.command()
def tui(
    path: Optional[str] = typer.Argument(None, help="Directory to scan on start"),
    depth: Optional[int] = typer.Option(None, "--depth", "-d", help="Levels to scan in detail"),
) -> None:
    """Launch the interactive treemap."""
    settings = _settings(max_depth=depth)
    root = _resolve(path) if path else None
    try:
        from diskmap.tui import run_tui

        run_tui(settings=settings, path=root)
    except ImportError:
        console.print("[red]TUI not available.[/red]")
        console.print("Install with: [bold]pip install textual[/bold]")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
