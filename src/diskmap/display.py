"""Rich terminal display for diskmap."""

import zlib
from typing import Iterable, Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from diskmap.models import DiskUsage, TreemapRect, TreeNode

console = Console()


FILE_KINDS: dict[str, frozenset[str]] = {
    "code": frozenset(
        {"swift", "js", "ts", "py", "java", "cpp", "c", "h", "m", "go", "rs", "rb", "php", "html", "css"}
    ),
    "document": frozenset(
        {"pdf", "doc", "docx", "txt", "md", "pages", "numbers", "key", "xls", "xlsx", "ppt", "pptx"}
    ),
    "video": frozenset({"mp4", "mov", "avi", "mkv", "m4v", "flv", "wmv", "webm"}),
    "image": frozenset(
        {"jpg", "jpeg", "png", "gif", "bmp", "svg", "webp", "heic", "tiff", "psd", "ai"}
    ),
    "audio": frozenset({"mp3", "wav", "aac", "flac", "m4a", "ogg"}),
    "archive": frozenset({"zip", "tar", "gz", "rar", "7z", "dmg", "pkg", "iso"}),
    "executable": frozenset({"app", "exe", "bin", "dylib", "so", "dll", "sh"}),
    "data": frozenset({"db", "sqlite", "sql", "json", "xml", "csv", "plist", "yaml", "yml"}),
}

KIND_COLORS = {
    "code": "#007AFF",
    "document": "#34C759",
    "video": "#FF3B30",
    "image": "#AF52DE",
    "audio": "#00C7BE",
    "archive": "#FF9500",
    "executable": "#5856D6",
    "data": "#FF2D55",
    "other": "#8E8E93",
    "unknown": "#9E9E9E",
}

# Directories get a muted shade picked from their name
DIRECTORY_SHADES = ("grey30", "grey35", "grey39", "grey42", "grey46")


def format_size(size_bytes: int) -> str:
    """Format bytes to human-readable string (decimal units like macOS)."""
    if size_bytes >= 1000**3:
        return f"{size_bytes / (1000**3):.1f} GB"
    elif size_bytes >= 1000**2:
        return f"{size_bytes / (1000**2):.1f} MB"
    elif size_bytes >= 1000:
        return f"{size_bytes / 1000:.1f} KB"
    else:
        return f"{size_bytes} B"


def file_kind(node: TreeNode) -> str:
    """Coarse file type used for colouring."""
    if node.is_directory:
        return "directory"
    if not node.extension:
        return "unknown"
    for kind, extensions in FILE_KINDS.items():
        if node.extension in extensions:
            return kind
    return "other"


def node_color(node: TreeNode) -> str:
    """Rich color for a node."""
    kind = file_kind(node)
    if kind == "directory":
        return DIRECTORY_SHADES[zlib.crc32(node.name.encode()) % len(DIRECTORY_SHADES)]
    return KIND_COLORS[kind]


def show_children_table(node: TreeNode, top: int = 20) -> None:
    """Display the largest children of a node."""
    total = node.total_size
    table = Table(title=escape(node.path or node.name), show_header=True, header_style="bold")
    table.add_column("Name")
    table.add_column("Size", justify="right")
    table.add_column("Share", justify="right")
    table.add_column("Type")

    for child in node.children[:top]:
        color = node_color(child)
        name = escape(f"{child.name}/" if child.is_directory else child.name)
        table.add_row(
            f"[{color}]■[/{color}] {name}",
            format_size(child.total_size),
            f"{child.percentage(total):.1f}%",
            file_kind(child),
        )

    console.print(table)
    hidden = len(node.children) - top
    if hidden > 0:
        console.print(f"[dim]...and {hidden} more[/dim]")
    console.print(f"[bold]Total:[/bold] {format_size(total)}")


def build_tree(node: TreeNode, max_depth: int = 2, top: int = 10) -> Tree:
    """Rich Tree of the largest entries, ``max_depth`` levels deep."""

    def label(n: TreeNode) -> str:
        color = node_color(n)
        name = escape(f"{n.name}/" if n.is_directory else n.name)
        return f"[{color}]■[/{color}] {name} [dim]{format_size(n.total_size)}[/dim]"

    tree = Tree(f"[bold]{escape(node.name)}[/bold] [dim]{format_size(node.total_size)}[/dim]")

    def add(branch: Tree, parent: TreeNode, depth: int) -> None:
        if depth >= max_depth:
            return
        for child in parent.children[:top]:
            sub = branch.add(label(child))
            add(sub, child, depth + 1)
        if len(parent.children) > top:
            branch.add(f"[dim]...and {len(parent.children) - top} more[/dim]")

    add(tree, node, 0)
    return tree


def show_tree(node: TreeNode, max_depth: int = 2, top: int = 10) -> None:
    """Display a node as an indented tree."""
    console.print(build_tree(node, max_depth=max_depth, top=top))


def render_treemap(
    rects: Sequence[TreemapRect],
    width: int,
    height: int,
    highlighted: Optional[TreeNode] = None,
) -> Text:
    """
    Paint laid-out rectangles into a grid of terminal cells.

    Each rectangle is rounded to whole cells and filled with its node's
    colour; the node name is written on its first row when it fits.

    Args:
        rects: Output of layout(), in cell coordinates
        width: Grid width in cells
        height: Grid height in cells
        highlighted: Node to draw in reverse video

    Returns:
        Rich Text, one line per row
    """
    chars = [[" "] * width for _ in range(height)]
    styles = [[""] * width for _ in range(height)]

    for rect in rects:
        frame = rect.frame
        x0 = max(int(round(frame.min_x)), 0)
        x1 = min(int(round(frame.max_x)), width)
        y0 = max(int(round(frame.min_y)), 0)
        y1 = min(int(round(frame.max_y)), height)
        if x1 <= x0 or y1 <= y0:
            continue

        style = f"white on {node_color(rect.node)}"
        if rect.node is highlighted:
            style = f"bold reverse {style}"

        for y in range(y0, y1):
            for x in range(x0, x1):
                chars[y][x] = " "
                styles[y][x] = style

        caption = rect.node.name[: x1 - x0]
        for offset, char in enumerate(caption):
            chars[y0][x0 + offset] = char

    text = Text()
    for y in range(height):
        if y:
            text.append("\n")
        run_start = 0
        for x in range(1, width + 1):
            if x == width or styles[y][x] != styles[y][run_start]:
                text.append("".join(chars[y][run_start:x]), style=styles[y][run_start] or None)
                run_start = x
    return text


def show_layout(rects: Iterable[TreemapRect]) -> None:
    """Display laid-out rectangles as a table."""
    table = Table(title="Treemap Layout", show_header=True, header_style="bold")
    table.add_column("Name")
    table.add_column("Size", justify="right")
    table.add_column("X", justify="right")
    table.add_column("Y", justify="right")
    table.add_column("Width", justify="right")
    table.add_column("Height", justify="right")

    for rect in rects:
        frame = rect.frame
        table.add_row(
            escape(rect.node.name),
            format_size(rect.node.total_size),
            f"{frame.x:.1f}",
            f"{frame.y:.1f}",
            f"{frame.width:.1f}",
            f"{frame.height:.1f}",
        )

    console.print(table)


def breadcrumb_text(nodes: Sequence[TreeNode]) -> str:
    """Breadcrumb trail such as ``home › projects › app``."""
    if not nodes:
        return ""
    names = [f"[dim]{escape(n.name)}[/dim]" for n in nodes[:-1]]
    names.append(f"[bold]{escape(nodes[-1].name)}[/bold]")
    return " › ".join(names)


def show_status(disk_usage: DiskUsage) -> None:
    """Display quick status."""
    used_percent = disk_usage.used_percent

    if used_percent >= 90:
        status = "[red]CRITICAL[/red]"
    elif used_percent >= 75:
        status = "[yellow]WARNING[/yellow]"
    else:
        status = "[green]OK[/green]"

    console.print(
        Panel(
            f"Disk Status: {status}\n"
            f"  Total: {disk_usage.total_gb:.0f} GB\n"
            f"  Used:  {disk_usage.used_gb:.0f} GB ({used_percent:.0f}%)\n"
            f"  Free:  {disk_usage.free_gb:.0f} GB",
            title=disk_usage.mount_point,
            border_style="blue",
        )
    )


def show_scanning_progress() -> Progress:
    """Create progress bar for scanning."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
        TimeElapsedColumn(),
        console=console,
    )
