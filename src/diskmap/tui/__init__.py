"""Interactive treemap for diskmap."""

from diskmap.tui.app import DiskMapApp, run_tui

__all__ = ["DiskMapApp", "run_tui"]
