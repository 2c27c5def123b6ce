"""Parallel, depth-bounded directory scanning.

A scan walks a directory subtree and builds a TreeNode hierarchy. Every
subdirectory becomes its own unit of work on a shared thread pool; below
``max_depth`` the remaining subtree is summarized by the size probe instead
of being materialized.
"""

import logging
import os
import shutil
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Optional

from diskmap.models import DiskUsage, TreeNode
from diskmap.sizeprobe import SizeProbe

log = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 5

ProgressCallback = Callable[[str, float], None]


class ScanCancelled(Exception):
    """Raised when a scan observes that it has been cancelled."""


def default_max_workers() -> int:
    """Same cap as ThreadPoolExecutor's own default."""
    return min(32, (os.cpu_count() or 1) + 4)


class _ProgressCounter:
    """Root-level completion counter shared by all scan threads."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.completed = 0
        self.total = 0

    def set_total(self, total: int) -> None:
        with self._lock:
            self.completed = 0
            self.total = total

    def increment(self) -> float:
        """Count one finished root-level directory and return the fraction done."""
        with self._lock:
            self.completed += 1
            if self.total <= 0:
                return 0.0
            return min(self.completed / self.total, 1.0)


class DirectoryScanner:
    """Build a TreeNode tree for a directory, one thread per subdirectory."""

    def __init__(
        self,
        probe: Optional[SizeProbe] = None,
        max_workers: Optional[int] = None,
        skip_hidden: bool = True,
        logger: Optional[logging.Logger] = None,
    ):
        self.probe = probe or SizeProbe()
        self.max_workers = max_workers or default_max_workers()
        self.skip_hidden = skip_hidden
        self.logger = logger or log

    def scan(
        self,
        path: str | Path,
        max_depth: int = DEFAULT_MAX_DEPTH,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> TreeNode:
        """
        Scan a path and return its tree.

        Args:
            path: Absolute path to scan (already expanded)
            max_depth: Directory levels to materialize below the root
            progress_callback: Optional callback(status_label, fraction)
            cancel_event: Optional event; once set the scan stops

        Returns:
            Root TreeNode, or an "Empty" placeholder if the path does not exist

        Raises:
            ScanCancelled: If cancel_event was set before the scan finished
        """
        if max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {max_depth}")

        root = os.fspath(path)
        cancel_event = cancel_event or threading.Event()

        if not os.path.exists(root):
            self.logger.error("Path does not exist: %s", root)
            return TreeNode.empty()

        # Every scan sees the disk as it is now
        self.probe.clear_cache()

        if not os.path.isdir(root):
            return TreeNode.leaf(root, self.probe.size_of(root))

        self.logger.info("Scanning %s (max depth %d)", root, max_depth)

        with ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="diskmap-scan"
        ) as executor:
            run = _ScanRun(self, executor, max_depth, progress_callback, cancel_event)
            node = run.scan_directory(root, 0)

        if cancel_event.is_set():
            raise ScanCancelled(root)

        self.logger.info("Finished %s: %d bytes", root, node.total_size)
        return node

    def quick_scan(self, path: str | Path) -> int:
        """Size of a whole subtree without building a tree."""
        return self.probe.size_of(path)


class _ScanRun:
    """State for one invocation of DirectoryScanner.scan."""

    def __init__(
        self,
        scanner: DirectoryScanner,
        executor: ThreadPoolExecutor,
        max_depth: int,
        progress_callback: Optional[ProgressCallback],
        cancel_event: threading.Event,
    ):
        self.scanner = scanner
        self.executor = executor
        self.max_depth = max_depth
        self.progress_callback = progress_callback
        self.cancel_event = cancel_event
        self.counter = _ProgressCounter()
        self.logger = scanner.logger
        # One slot per pool thread; work is only queued when a thread is free
        self._slots = threading.BoundedSemaphore(scanner.max_workers)
        self._report_lock = threading.Lock()

    def check_cancelled(self) -> None:
        if self.cancel_event.is_set():
            raise ScanCancelled()

    def scan_directory(self, path: str, depth: int) -> TreeNode:
        self.check_cancelled()

        if depth >= self.max_depth:
            return TreeNode.directory(path, own_size=self.scanner.probe.size_of(path))

        files: list[os.DirEntry] = []
        directories: list[os.DirEntry] = []
        try:
            with os.scandir(path) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            self.logger.warning("Cannot read directory %s: %s", path, e)
            entries = []

        for entry in entries:
            if self.scanner.skip_hidden and entry.name.startswith("."):
                continue
            try:
                is_dir = entry.is_dir(follow_symlinks=False)
            except OSError:
                is_dir = False
            if is_dir:
                directories.append(entry)
            else:
                files.append(entry)

        if depth == 0:
            self.counter.set_total(len(directories))

        children = [self._file_node(entry) for entry in files]
        children.extend(self._fan_out(directories, depth))

        node = TreeNode.directory(path, children=children)
        node.children.sort(key=lambda child: child.total_size, reverse=True)
        return node

    def _file_node(self, entry: os.DirEntry) -> TreeNode:
        size = 0
        try:
            if entry.is_file(follow_symlinks=False):
                size = entry.stat(follow_symlinks=False).st_size
        except OSError as e:
            self.logger.warning("Cannot stat %s: %s", entry.path, e)
        return TreeNode.leaf(entry.path, size)

    def _fan_out(self, directories: list[os.DirEntry], depth: int) -> list[TreeNode]:
        """Scan subdirectories concurrently and join on all of them."""
        if not directories:
            return []
        self.check_cancelled()

        results: list[Optional[TreeNode]] = [None] * len(directories)
        pending: list[tuple[int, Future]] = []

        for i, entry in enumerate(directories):
            if self._slots.acquire(blocking=False):
                future = self.executor.submit(self._scan_child, entry, depth, True)
                pending.append((i, future))
            else:
                # Pool is saturated: run in this thread instead of queueing
                results[i] = self._scan_child(entry, depth, False)

        for i, future in pending:
            results[i] = future.result()

        return [node for node in results if node is not None]

    def _scan_child(self, entry: os.DirEntry, depth: int, pooled: bool) -> TreeNode:
        try:
            node = self.scan_directory(entry.path, depth + 1)
            if depth == 0:
                self._report(entry.name)
            return node
        finally:
            if pooled:
                self._slots.release()

    def _report(self, name: str) -> None:
        with self._report_lock:
            if self.cancel_event.is_set():
                return
            fraction = self.counter.increment()
            if self.progress_callback:
                self.progress_callback(f"Scanning: {name}", fraction)


def get_top_level_directories(
    home: Optional[str] = None, existing_only: bool = False
) -> list[tuple[str, str]]:
    """
    Well-known starting points for a scan.

    Args:
        home: Home directory to use (default: the current user's)
        existing_only: Drop entries that do not exist on this machine

    Returns:
        List of (display name, absolute path)
    """
    home = home or str(Path.home())
    candidates = [
        ("Home", home),
        ("Desktop", os.path.join(home, "Desktop")),
        ("Documents", os.path.join(home, "Documents")),
        ("Downloads", os.path.join(home, "Downloads")),
        ("Applications", "/Applications"),
        ("Library", os.path.join(home, "Library")),
    ]
    if existing_only:
        return [(name, path) for name, path in candidates if os.path.isdir(path)]
    return candidates


def get_disk_usage(mount_point: str = "/") -> DiskUsage:
    """
    Get overall disk usage for a mount point.

    Args:
        mount_point: Mount point to check (default: /)

    Returns:
        DiskUsage with total, used, and free bytes
    """
    usage = shutil.disk_usage(mount_point)
    return DiskUsage(
        total_bytes=usage.total,
        used_bytes=usage.used,
        free_bytes=usage.free,
        mount_point=mount_point,
    )
