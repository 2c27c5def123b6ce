"""Main TUI application for diskmap."""

from typing import Optional

from rich.markup import escape
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer, Header, ProgressBar, Static

from diskmap.config import Settings, load_settings
from diskmap.display import breadcrumb_text, format_size
from diskmap.models import ScanState
from diskmap.navigation import NavigationController
from diskmap.scanner import DirectoryScanner, get_top_level_directories
from diskmap.sizeprobe import SizeProbe
from diskmap.tui.widgets import TreemapWidget


class DiskMapApp(App):
    """Interactive, zoomable disk usage treemap."""

    TITLE = "diskmap"
    SUB_TITLE = "Disk Usage Map"

    CSS = """
    #breadcrumbs {
        height: 1;
        padding: 0 1;
    }
    #treemap {
        height: 1fr;
    }
    #info {
        height: auto;
        padding: 0 1;
    }
    #progress {
        padding: 0 1;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("enter", "zoom", "Zoom In"),
        Binding("backspace", "up", "Zoom Out"),
        Binding("tab", "cycle(1)", "Next"),
        Binding("right", "cycle(1)", "Next", show=False),
        Binding("left", "cycle(-1)", "Previous", show=False),
        Binding("h", "home", "Home"),
        Binding("r", "rescan", "Rescan"),
        Binding("n", "new_scan", "New Scan"),
        Binding("escape", "cancel_scan", "Cancel", show=False),
    ] + [Binding(str(i + 1), f"pick({i})", show=False) for i in range(6)]

    def __init__(self, settings: Optional[Settings] = None, path: Optional[str] = None):
        super().__init__()
        self.settings = settings or load_settings()
        scanner = DirectoryScanner(
            probe=SizeProbe(cache_ttl=self.settings.cache_ttl),
            max_workers=self.settings.max_workers,
            skip_hidden=not self.settings.show_hidden,
        )
        self.controller = NavigationController(scanner, max_depth=self.settings.max_depth)
        self.path = path
        self.locations = get_top_level_directories()
        self._last_state = self.controller.state

    def compose(self) -> ComposeResult:
        yield Header()
        yield Static("", id="breadcrumbs")
        yield TreemapWidget(self.controller, id="treemap")
        yield Static("", id="info")
        yield ProgressBar(id="progress", total=1.0, show_eta=False)
        yield Footer()

    def on_mount(self) -> None:
        """Called when the app is mounted."""
        self.set_interval(0.1, self.poll_scan)
        if self.path:
            self.start_scan(self.path)
        else:
            self.refresh_view()

    def start_scan(self, path: str) -> None:
        self.path = path
        self.controller.start_scan(path)
        self.query_one("#treemap", TreemapWidget).reset_highlight()
        self.refresh_view()

    def poll_scan(self) -> None:
        """Drain progress events and refresh when the scan state changes."""
        events = self.controller.progress_events.drain()
        if events:
            self.query_one("#progress", ProgressBar).update(progress=events[-1].fraction)
            self.query_one("#info", Static).update(f"[cyan]{events[-1].label}[/cyan]")

        if self.controller.state != self._last_state:
            self._last_state = self.controller.state
            if self.controller.state == ScanState.READY:
                self.notify("Scan complete!", timeout=2)
            elif self.controller.state == ScanState.CANCELLED:
                self.notify(self.controller.status, severity="warning", timeout=2)
            self.refresh_view()

    def refresh_view(self) -> None:
        """Redraw breadcrumbs, info line and treemap from controller state."""
        controller = self.controller
        crumbs = self.query_one("#breadcrumbs", Static)
        info = self.query_one("#info", Static)
        progress = self.query_one("#progress", ProgressBar)
        treemap = self.query_one("#treemap", TreemapWidget)

        crumbs.update(breadcrumb_text(controller.breadcrumbs))
        progress.update(progress=controller.progress)

        if controller.state == ScanState.SCANNING:
            info.update(f"[cyan]{controller.status}[/cyan]  [dim]Esc to cancel[/dim]")
        elif controller.current_node is not None:
            node = treemap.highlighted_node() or controller.current_node
            info.update(
                f"[bold]{escape(node.name)}[/bold]  {format_size(node.total_size)}  "
                f"[dim]{escape(node.path)}[/dim]"
            )
        else:
            lines = ["[bold]Select a directory to scan[/bold]"]
            for i, (name, path) in enumerate(self.locations, 1):
                lines.append(f"  [bold]{i}[/bold]  {name} [dim]{escape(path)}[/dim]")
            if controller.status:
                lines.insert(0, f"[yellow]{controller.status}[/yellow]")
            info.update("\n".join(lines))

        treemap.refresh()

    def action_zoom(self) -> None:
        """Zoom into the highlighted directory."""
        treemap = self.query_one("#treemap", TreemapWidget)
        node = treemap.highlighted_node()
        if node is None:
            return
        self.controller.navigate_into(node)
        treemap.reset_highlight()
        self.refresh_view()

    def action_up(self) -> None:
        """Zoom out one level."""
        self.controller.navigate_up()
        self.query_one("#treemap", TreemapWidget).reset_highlight()
        self.refresh_view()

    def action_cycle(self, step: int) -> None:
        """Move the highlight."""
        self.query_one("#treemap", TreemapWidget).cycle(step)
        self.refresh_view()

    def action_home(self) -> None:
        """Go back to the scan root."""
        self.controller.reset()
        self.query_one("#treemap", TreemapWidget).reset_highlight()
        self.refresh_view()

    def action_rescan(self) -> None:
        """Scan the same directory again."""
        if self.path:
            self.start_scan(self.path)

    def action_new_scan(self) -> None:
        """Drop the current map and show the location picker."""
        self.controller.clear()
        self.path = None
        self.refresh_view()

    def action_cancel_scan(self) -> None:
        """Cancel a running scan."""
        self.controller.cancel()
        self.refresh_view()

    def action_pick(self, index: int) -> None:
        """Scan one of the listed locations."""
        if self.controller.is_scanning or self.controller.root_node is not None:
            return
        if 0 <= index < len(self.locations):
            self.start_scan(self.locations[index][1])


def run_tui(settings: Optional[Settings] = None, path: Optional[str] = None) -> None:
    """Run the interactive TUI.

    Args:
        settings: Scan settings (default: read from the environment)
        path: Directory to scan immediately
    """
    app = DiskMapApp(settings=settings, path=path)
    app.run()
