"""Tests for display functions."""

from unittest.mock import patch

from rich.text import Text

from diskmap.display import (
    DIRECTORY_SHADES,
    KIND_COLORS,
    breadcrumb_text,
    build_tree,
    file_kind,
    format_size,
    node_color,
    render_treemap,
    show_children_table,
    show_layout,
    show_status,
)
from diskmap.layout import layout
from diskmap.models import DiskUsage, Rect, TreeNode


class TestFormatSize:
    def test_bytes(self):
        assert format_size(500) == "500 B"

    def test_kilobytes(self):
        assert format_size(1000) == "1.0 KB"
        assert format_size(1500) == "1.5 KB"

    def test_megabytes(self):
        assert format_size(1000 * 1000) == "1.0 MB"

    def test_gigabytes(self):
        assert format_size(1000 * 1000 * 1000) == "1.0 GB"
        assert format_size(2500 * 1000 * 1000) == "2.5 GB"

    def test_zero(self):
        assert format_size(0) == "0 B"


class TestFileKind:
    def test_known_extensions(self):
        assert file_kind(TreeNode.leaf("/a/main.py", 1)) == "code"
        assert file_kind(TreeNode.leaf("/a/report.PDF", 1)) == "document"
        assert file_kind(TreeNode.leaf("/a/clip.mkv", 1)) == "video"
        assert file_kind(TreeNode.leaf("/a/photo.heic", 1)) == "image"
        assert file_kind(TreeNode.leaf("/a/song.flac", 1)) == "audio"
        assert file_kind(TreeNode.leaf("/a/backup.tar", 1)) == "archive"
        assert file_kind(TreeNode.leaf("/a/lib.dylib", 1)) == "executable"
        assert file_kind(TreeNode.leaf("/a/store.sqlite", 1)) == "data"

    def test_unmapped_extension(self):
        assert file_kind(TreeNode.leaf("/a/thing.xyz", 1)) == "other"

    def test_no_extension(self):
        assert file_kind(TreeNode.leaf("/a/Makefile", 1)) == "unknown"

    def test_directory(self):
        assert file_kind(TreeNode.directory("/a/src.py")) == "directory"


class TestNodeColor:
    def test_file_colors(self):
        assert node_color(TreeNode.leaf("/a/main.py", 1)) == KIND_COLORS["code"]
        assert node_color(TreeNode.leaf("/a/Makefile", 1)) == KIND_COLORS["unknown"]

    def test_directory_color_is_stable(self):
        first = node_color(TreeNode.directory("/a/projects"))
        second = node_color(TreeNode.directory("/b/projects"))
        assert first == second
        assert first in DIRECTORY_SHADES


class TestRenderTreemap:
    def test_dimensions(self):
        nodes = [TreeNode.leaf("/r/big.mp4", 3), TreeNode.leaf("/r/small.py", 1)]
        rects = layout(nodes, Rect(width=40, height=6), inset=0)

        text = render_treemap(rects, 40, 6)

        assert isinstance(text, Text)
        lines = text.plain.split("\n")
        assert len(lines) == 6
        assert all(len(line) == 40 for line in lines)

    def test_captions_on_first_row(self):
        nodes = [TreeNode.leaf("/r/big.mp4", 3), TreeNode.leaf("/r/small.py", 1)]
        rects = layout(nodes, Rect(width=40, height=6), inset=0)

        first_row = render_treemap(rects, 40, 6).plain.split("\n")[0]
        assert first_row.startswith("big.mp4")
        assert first_row[30:].startswith("small.py")

    def test_caption_truncated_to_cell(self):
        nodes = [TreeNode.leaf("/r/a-very-long-name.bin", 1), TreeNode.leaf("/r/b", 3)]
        rects = layout(nodes, Rect(width=20, height=2), inset=0)

        first_row = render_treemap(rects, 20, 2).plain.split("\n")[0]
        assert first_row[:5] == "a-ver"

    def test_highlight_style(self):
        nodes = [TreeNode.leaf("/r/a.py", 1), TreeNode.leaf("/r/b.py", 1)]
        rects = layout(nodes, Rect(width=10, height=2), inset=0)

        text = render_treemap(rects, 10, 2, highlighted=nodes[1])
        styles = {str(span.style) for span in text.spans}
        assert any(style.startswith("bold reverse") for style in styles)

    def test_empty(self):
        text = render_treemap([], 5, 2)
        assert text.plain == "     \n     "


class TestBreadcrumbText:
    def test_trail(self):
        nodes = [TreeNode.directory("/home"), TreeNode.directory("/home/projects")]
        result = breadcrumb_text(nodes)
        assert "home" in result
        assert "projects" in result
        assert " › " in result
        assert result.endswith("[bold]projects[/bold]")

    def test_empty(self):
        assert breadcrumb_text([]) == ""


class TestBuildTree:
    def test_limits_entries(self):
        root = TreeNode.directory(
            "/r", children=[TreeNode.leaf(f"/r/f{i}", 10 - i) for i in range(5)]
        )
        tree = build_tree(root, max_depth=1, top=3)
        assert len(tree.children) == 4
        assert "2 more" in str(tree.children[-1].label)


class TestShowFunctions:
    @patch("diskmap.display.console")
    def test_show_children_table(self, mock_console):
        root = TreeNode.directory(
            "/r", children=[TreeNode.leaf("/r/a.txt", 10), TreeNode.directory("/r/sub")]
        )
        show_children_table(root)
        mock_console.print.assert_called()

    @patch("diskmap.display.console")
    def test_show_children_table_overflow(self, mock_console):
        root = TreeNode.directory(
            "/r", children=[TreeNode.leaf(f"/r/f{i}", 1) for i in range(5)]
        )
        show_children_table(root, top=2)
        printed = [str(call.args[0]) for call in mock_console.print.call_args_list]
        assert any("3 more" in line for line in printed)

    @patch("diskmap.display.console")
    def test_show_layout(self, mock_console):
        rects = layout([TreeNode.leaf("/r/a", 1)], Rect(width=10, height=10))
        show_layout(rects)
        mock_console.print.assert_called_once()

    @patch("diskmap.display.console")
    def test_show_status(self, mock_console):
        usage = DiskUsage(
            total_bytes=100 * 1000**3,
            used_bytes=95 * 1000**3,
            free_bytes=5 * 1000**3,
        )
        show_status(usage)
        mock_console.print.assert_called_once()
