"""Data models for diskmap."""

import os
from enum import Enum
from pathlib import Path
from typing import Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field


class ScanState(str, Enum):
    """Lifecycle of a disk map scan."""

    IDLE = "idle"
    SCANNING = "scanning"
    READY = "ready"
    CANCELLED = "cancelled"


class TreeNode(BaseModel):
    """One filesystem entry plus everything below it."""

    name: str = Field(..., description="Display label (last path component)")
    path: str = Field(..., description="Absolute path, unique within one scan")
    own_size: int = Field(0, ge=0, description="Bytes attributable to this node itself")
    is_directory: bool = Field(False, description="Whether this entry is a directory")
    children: list["TreeNode"] = Field(default_factory=list, description="Owned child nodes")
    extension: Optional[str] = Field(None, description="Lowercase file suffix, without the dot")
    handle: Optional[int] = Field(None, description="Index into the owning DiskTree")

    @classmethod
    def leaf(cls, path: str, size: int) -> "TreeNode":
        """Create a file node."""
        return cls(
            name=_display_name(path),
            path=path,
            own_size=max(size, 0),
            is_directory=False,
            extension=_extension_of(path),
        )

    @classmethod
    def directory(
        cls,
        path: str,
        children: Optional[list["TreeNode"]] = None,
        own_size: int = 0,
    ) -> "TreeNode":
        """Create a directory node."""
        return cls(
            name=_display_name(path),
            path=path,
            own_size=max(own_size, 0),
            is_directory=True,
            children=children or [],
        )

    @classmethod
    def empty(cls) -> "TreeNode":
        """Placeholder returned when the scan root does not exist."""
        return cls(name="Empty", path="", own_size=0, is_directory=True)

    @property
    def total_size(self) -> int:
        """Own size plus the total of every child, computed on demand."""
        if not self.children:
            return self.own_size
        return self.own_size + sum(child.total_size for child in self.children)

    @property
    def has_children(self) -> bool:
        return bool(self.children)

    def percentage(self, parent_size: int) -> float:
        """Share of ``parent_size`` taken by this node, in percent."""
        if parent_size <= 0:
            return 0.0
        return self.total_size / parent_size * 100.0

    def sort_children(self) -> None:
        """Sort children largest first, recursively.

        The sort is stable, so equal sizes keep their traversal order.
        """
        self.children.sort(key=lambda child: child.total_size, reverse=True)
        for child in self.children:
            child.sort_children()

    def walk(self) -> Iterator["TreeNode"]:
        """Yield this node and all descendants in pre-order."""
        yield self
        for child in self.children:
            yield from child.walk()


TreeNode.model_rebuild()


def _display_name(path: str) -> str:
    name = os.path.basename(path.rstrip(os.sep))
    return name or path


def _extension_of(path: str) -> Optional[str]:
    suffix = Path(path).suffix.lower()
    return suffix[1:] if suffix else None


class DiskTree:
    """Flat, handle-indexed store for one scanned tree.

    Nodes keep their ``children`` lists; the store adds stable integer
    handles (pre-order from the root) so that views into the tree can be
    held as plain indices instead of object references.
    """

    def __init__(self, root: TreeNode):
        self.root = root
        self.nodes: list[TreeNode] = []
        self._parents: list[Optional[int]] = []
        self._index(root, None)

    def _index(self, root: TreeNode, parent: Optional[int]) -> None:
        stack: list[tuple[TreeNode, Optional[int]]] = [(root, parent)]
        while stack:
            node, parent_handle = stack.pop()
            node.handle = len(self.nodes)
            self.nodes.append(node)
            self._parents.append(parent_handle)
            # Reversed so children come out in their stored order
            for child in reversed(node.children):
                stack.append((child, node.handle))

    def __len__(self) -> int:
        return len(self.nodes)

    def node(self, handle: int) -> TreeNode:
        return self.nodes[handle]

    def handle_of(self, node: TreeNode) -> Optional[int]:
        """Handle of ``node`` if it belongs to this tree, else None."""
        handle = node.handle
        if handle is None or not 0 <= handle < len(self.nodes):
            return None
        if self.nodes[handle] is not node:
            return None
        return handle

    def contains(self, node: TreeNode) -> bool:
        return self.handle_of(node) is not None

    def parent_of(self, handle: int) -> Optional[int]:
        return self._parents[handle]

    def path_to(self, handle: int) -> list[int]:
        """Handles from the root down to ``handle``, inclusive."""
        chain: list[int] = []
        current: Optional[int] = handle
        while current is not None:
            chain.append(current)
            current = self._parents[current]
        chain.reverse()
        return chain


class Rect(BaseModel):
    """Axis-aligned rectangle in screen space."""

    model_config = ConfigDict(frozen=True)

    x: float = 0.0
    y: float = 0.0
    width: float
    height: float

    @property
    def min_x(self) -> float:
        return self.x

    @property
    def min_y(self) -> float:
        return self.y

    @property
    def max_x(self) -> float:
        return self.x + self.width

    @property
    def max_y(self) -> float:
        return self.y + self.height

    @property
    def area(self) -> float:
        return self.width * self.height

    def contains(self, px: float, py: float) -> bool:
        """Whether the point lies inside (left/top edges inclusive)."""
        return self.min_x <= px < self.max_x and self.min_y <= py < self.max_y

    def inset(self, margin: float) -> Optional["Rect"]:
        """Shrink by ``margin`` on every side; None if nothing is left."""
        width = self.width - 2 * margin
        height = self.height - 2 * margin
        if width <= 0 or height <= 0:
            return None
        return Rect(x=self.x + margin, y=self.y + margin, width=width, height=height)


class TreemapRect(BaseModel):
    """A laid-out rectangle for one node. Render-only, never stored."""

    model_config = ConfigDict(frozen=True)

    node: TreeNode
    frame: Rect
    depth: int = 0


class ProgressEvent(BaseModel):
    """A progress update emitted while scanning."""

    model_config = ConfigDict(frozen=True)

    label: str
    fraction: float = Field(..., ge=0.0, le=1.0)


class SizeReport(BaseModel):
    """Size of a path measured by the size probe."""

    total_bytes: int = Field(0, description="Total size in bytes")
    file_count: int = Field(0, description="Number of regular files")
    dir_count: int = Field(0, description="Number of directories below the path")


class DiskUsage(BaseModel):
    """Overall disk usage information."""

    total_bytes: int = Field(..., description="Total disk size in bytes")
    used_bytes: int = Field(..., description="Used space in bytes")
    free_bytes: int = Field(..., description="Free space in bytes")
    mount_point: str = Field("/", description="Mount point")

    @property
    def total_gb(self) -> float:
        """Total size in GB (decimal)."""
        return self.total_bytes / (1000**3)

    @property
    def used_gb(self) -> float:
        """Used space in GB (decimal)."""
        return self.used_bytes / (1000**3)

    @property
    def free_gb(self) -> float:
        """Free space in GB (decimal)."""
        return self.free_bytes / (1000**3)

    @property
    def used_percent(self) -> float:
        """Percentage of disk used."""
        return (self.used_bytes / self.total_bytes) * 100 if self.total_bytes > 0 else 0
