"""Custom widgets for the diskmap TUI."""

from typing import Optional

from rich.text import Text
from textual import events
from textual.widget import Widget

from diskmap.display import render_treemap
from diskmap.layout import hit_test
from diskmap.models import Rect, TreemapRect, TreeNode
from diskmap.navigation import NavigationController

# Half a cell on each side leaves a one-cell gutter between neighbours
CELL_INSET = 0.5


class TreemapWidget(Widget):
    """Treemap of the controller's current node, drawn in character cells."""

    def __init__(self, controller: NavigationController, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.controller = controller
        self.highlight_index = 0

    def current_rects(self) -> list[TreemapRect]:
        """Lay out the current node for the widget's size."""
        width, height = self.size.width, self.size.height
        if width <= 0 or height <= 0:
            return []
        return self.controller.visible_rects(Rect(width=width, height=height), inset=CELL_INSET)

    def highlighted_node(self, rects: Optional[list[TreemapRect]] = None) -> Optional[TreeNode]:
        rects = self.current_rects() if rects is None else rects
        if not rects:
            return None
        return rects[self.highlight_index % len(rects)].node

    def cycle(self, step: int) -> None:
        """Move the highlight to the next (or previous) rectangle."""
        rects = self.current_rects()
        if rects:
            self.highlight_index = (self.highlight_index + step) % len(rects)
            self.controller.select(rects[self.highlight_index].node)
        self.refresh()

    def reset_highlight(self) -> None:
        self.highlight_index = 0
        self.controller.select(None)
        self.refresh()

    def render(self) -> Text:
        rects = self.current_rects()
        if not rects:
            if self.controller.is_scanning:
                return Text("Scanning...", style="dim")
            return Text("Nothing to show", style="dim")
        return render_treemap(
            rects,
            self.size.width,
            self.size.height,
            highlighted=self.highlighted_node(rects),
        )

    def on_click(self, event: events.Click) -> None:
        """Zoom into the directory under the mouse."""
        node = hit_test(self.current_rects(), event.x, event.y)
        if node is None:
            return
        self.controller.navigate_into(node)
        self.reset_highlight()
        self.app.refresh_view()
