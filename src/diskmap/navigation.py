"""Scan lifecycle and zoom navigation over a scanned tree."""

import logging
import queue
import threading
from typing import Optional

from diskmap.layout import DEFAULT_INSET, layout
from diskmap.models import DiskTree, ProgressEvent, Rect, ScanState, TreemapRect, TreeNode
from diskmap.scanner import DEFAULT_MAX_DEPTH, DirectoryScanner, ScanCancelled

log = logging.getLogger(__name__)


class ProgressChannel:
    """One-way queue of progress events from a scan to whoever is watching.

    The scanner side only publishes; the observer drains whenever it likes.
    Once closed, further events are dropped.
    """

    def __init__(self) -> None:
        self._queue: "queue.SimpleQueue[ProgressEvent]" = queue.SimpleQueue()
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def publish(self, label: str, fraction: float) -> None:
        if self._closed.is_set():
            return
        self._queue.put(ProgressEvent(label=label, fraction=fraction))

    def close(self) -> None:
        self._closed.set()

    def drain(self) -> list[ProgressEvent]:
        """Everything published since the last drain, oldest first."""
        events: list[ProgressEvent] = []
        while True:
            try:
                events.append(self._queue.get_nowait())
            except queue.Empty:
                return events


class ScanJob:
    """A scan running on a background thread."""

    def __init__(self, path: str, channel: ProgressChannel):
        self.path = path
        self.channel = channel
        self.cancel_event = threading.Event()
        self.thread: Optional[threading.Thread] = None

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    @property
    def done(self) -> bool:
        return self.thread is not None and not self.thread.is_alive()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the scan thread exits. Returns False on timeout."""
        if self.thread is None:
            return True
        self.thread.join(timeout)
        return not self.thread.is_alive()


class NavigationController:
    """Owns the scanned tree and the user's position in it.

    Positions are kept as DiskTree handles. Navigation calls never raise:
    requests that make no sense for the current tree are ignored.
    """

    def __init__(
        self,
        scanner: Optional[DirectoryScanner] = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ):
        self.scanner = scanner or DirectoryScanner()
        self.max_depth = max_depth

        self.state = ScanState.IDLE
        self.tree: Optional[DiskTree] = None
        self.progress = 0.0
        self.status = ""
        self.progress_events = ProgressChannel()

        self._current: Optional[int] = None
        self._breadcrumbs: list[int] = []
        self._selected: Optional[int] = None
        self._job: Optional[ScanJob] = None
        self._lock = threading.RLock()

    # -- observable state -------------------------------------------------

    @property
    def is_scanning(self) -> bool:
        return self.state == ScanState.SCANNING

    @property
    def root_node(self) -> Optional[TreeNode]:
        return self.tree.root if self.tree is not None else None

    @property
    def current_node(self) -> Optional[TreeNode]:
        with self._lock:
            if self.tree is None or self._current is None:
                return None
            return self.tree.node(self._current)

    @property
    def breadcrumbs(self) -> list[TreeNode]:
        with self._lock:
            if self.tree is None:
                return []
            return [self.tree.node(handle) for handle in self._breadcrumbs]

    @property
    def selected_node(self) -> Optional[TreeNode]:
        with self._lock:
            if self.tree is None or self._selected is None:
                return None
            return self.tree.node(self._selected)

    # -- scanning ---------------------------------------------------------

    def start_scan(self, path: str) -> ScanJob:
        """Start scanning ``path`` in the background, cancelling any running scan."""
        with self._lock:
            self._stop_job()

            channel = ProgressChannel()
            job = ScanJob(path, channel)
            self._job = job
            self.progress_events = channel
            self.state = ScanState.SCANNING
            self.progress = 0.0
            self.status = "Preparing scan..."

            job.thread = threading.Thread(
                target=self._run, args=(job,), name="diskmap-controller", daemon=True
            )
            job.thread.start()
        return job

    def cancel(self) -> None:
        """Cancel the running scan, keeping whatever tree was shown before."""
        with self._lock:
            if self._job is None or self.state != ScanState.SCANNING:
                return
            self._stop_job()
            self.state = ScanState.CANCELLED
            self.status = "Scan cancelled"
            self.progress = 0.0
        log.info("Scan cancelled")

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Wait for the current scan job to finish."""
        job = self._job
        if job is None:
            return True
        return job.wait(timeout)

    def _stop_job(self) -> None:
        if self._job is not None:
            self._job.cancel_event.set()
            self._job.channel.close()
            self._job = None

    def _is_live(self, job: ScanJob) -> bool:
        return job is self._job and not job.cancelled

    def _settle_cancelled(self, job: ScanJob) -> None:
        """Finish a job that was cancelled through its own event rather than cancel()."""
        with self._lock:
            if job is not self._job:
                return
            self._job = None
            job.channel.close()
            self.state = ScanState.CANCELLED
            self.status = "Scan cancelled"
            self.progress = 0.0

    def _run(self, job: ScanJob) -> None:
        def on_progress(label: str, fraction: float) -> None:
            with self._lock:
                if not self._is_live(job):
                    return
                self.status = label
                self.progress = fraction
                job.channel.publish(label, fraction)

        try:
            root = self.scanner.scan(
                job.path,
                max_depth=self.max_depth,
                progress_callback=on_progress,
                cancel_event=job.cancel_event,
            )
        except ScanCancelled:
            log.info("Discarded cancelled scan of %s", job.path)
            self._settle_cancelled(job)
            return
        except Exception:
            log.exception("Scan of %s failed", job.path)
            with self._lock:
                if job is self._job:
                    self._job = None
                    job.channel.close()
                    self.state = ScanState.CANCELLED
                    self.status = "Scan failed"
                    self.progress = 0.0
            return

        tree = DiskTree(root)
        with self._lock:
            if not self._is_live(job):
                self._settle_cancelled(job)
                return
            self.tree = tree
            self._current = 0
            self._breadcrumbs = [0]
            self._selected = None
            self.state = ScanState.READY
            self.status = "Scan complete!"
            self.progress = 1.0
            job.channel.publish(self.status, 1.0)
            job.channel.close()

    # -- navigation -------------------------------------------------------

    def navigate_into(self, node: TreeNode) -> None:
        """Zoom into a directory that has children."""
        with self._lock:
            if self.tree is None or not isinstance(node, TreeNode):
                return
            if not node.is_directory or not node.children:
                return
            handle = self.tree.handle_of(node)
            if handle is None:
                return
            self._current = handle
            if handle in self._breadcrumbs:
                del self._breadcrumbs[self._breadcrumbs.index(handle) + 1 :]
            else:
                self._breadcrumbs.append(handle)

    def navigate_up(self) -> None:
        """Zoom out one level."""
        with self._lock:
            if len(self._breadcrumbs) <= 1:
                return
            self._breadcrumbs.pop()
            self._current = self._breadcrumbs[-1]

    def navigate_to_breadcrumb(self, node: TreeNode) -> None:
        """Jump back to an ancestor already on the breadcrumb trail."""
        with self._lock:
            if self.tree is None or not isinstance(node, TreeNode):
                return
            handle = self.tree.handle_of(node)
            if handle is None or handle not in self._breadcrumbs:
                return
            del self._breadcrumbs[self._breadcrumbs.index(handle) + 1 :]
            self._current = handle

    def select(self, node: Optional[TreeNode]) -> None:
        """Mark a node as highlighted (None clears the highlight)."""
        with self._lock:
            if not isinstance(node, TreeNode) or self.tree is None:
                self._selected = None
                return
            self._selected = self.tree.handle_of(node)

    def reset(self) -> None:
        """Back to the scan root, without rescanning."""
        with self._lock:
            self._selected = None
            if self.tree is None:
                self._current = None
                self._breadcrumbs = []
                return
            self._current = 0
            self._breadcrumbs = [0]

    def clear(self) -> None:
        """Drop the tree and go back to idle."""
        with self._lock:
            self._stop_job()
            self.tree = None
            self._current = None
            self._breadcrumbs = []
            self._selected = None
            self.state = ScanState.IDLE
            self.status = ""
            self.progress = 0.0

    # -- rendering --------------------------------------------------------

    def visible_rects(self, rect: Rect, inset: float = DEFAULT_INSET) -> list[TreemapRect]:
        """Layout of the current node's children inside ``rect``."""
        with self._lock:
            current = self.current_node
            depth = max(len(self._breadcrumbs) - 1, 0)
        if current is None:
            return []
        return layout(current.children, rect, depth=depth, inset=inset)
