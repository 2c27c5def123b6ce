"""Treemap layout: split a rectangle between sibling nodes by size."""

from typing import Iterable, Optional, Sequence

from diskmap.models import Rect, TreemapRect, TreeNode

DEFAULT_INSET = 2.0


def layout(
    nodes: Sequence[TreeNode],
    rect: Rect,
    depth: int = 0,
    inset: float = DEFAULT_INSET,
) -> list[TreemapRect]:
    """
    Lay out sibling nodes inside ``rect``.

    Slice/dice: the rectangle is cut along its longer side (horizontal
    slices when width >= height) into strips proportional to each node's
    total size. Nodes are taken in the order given; the last one gets
    whatever extent is left so the strips tile ``rect`` exactly.

    Args:
        nodes: Sibling nodes, normally sorted largest first
        rect: Area to fill
        depth: Depth recorded on every output rectangle
        inset: Margin removed from every side of each strip

    Returns:
        One TreemapRect per drawable node. Nodes of size 0 and strips too
        small to survive the inset are left out.
    """
    sized = [(node, node.total_size) for node in nodes]
    sized = [(node, size) for node, size in sized if size > 0]
    if not sized:
        return []

    if len(sized) == 1:
        frame = rect.inset(inset)
        if frame is None:
            return []
        return [TreemapRect(node=sized[0][0], frame=frame, depth=depth)]

    total = sum(size for _, size in sized)
    horizontal = rect.width >= rect.height
    extent = rect.width if horizontal else rect.height

    result: list[TreemapRect] = []
    offset = 0.0
    last = len(sized) - 1

    for i, (node, size) in enumerate(sized):
        if i == last:
            span = extent - offset
        else:
            span = extent * size / total

        if horizontal:
            cell = Rect(x=rect.x + offset, y=rect.y, width=span, height=rect.height)
        else:
            cell = Rect(x=rect.x, y=rect.y + offset, width=rect.width, height=span)
        offset += span

        frame = cell.inset(inset)
        if frame is not None:
            result.append(TreemapRect(node=node, frame=frame, depth=depth))

    return result


def hit_test(rects: Iterable[TreemapRect], x: float, y: float) -> Optional[TreeNode]:
    """Node under the point (x, y), or None."""
    for rect in rects:
        if rect.frame.contains(x, y):
            return rect.node
    return None
