"""Aggregate size of a file or directory tree."""

import logging
import os
import stat
import threading
import time
from pathlib import Path

from diskmap.models import SizeReport

log = logging.getLogger(__name__)

CACHE_TTL = 300  # 5 minutes


def expand_path(path: str) -> Path:
    """Expand ~ and environment variables in path."""
    return Path(os.path.expanduser(os.path.expandvars(path)))


class SizeProbe:
    """Measure how many bytes of regular files live under a path.

    Symlinks are never followed, so self-referential links cannot loop.
    Entries that cannot be read count as zero.
    """

    def __init__(self, cache_ttl: float = CACHE_TTL, fast: bool = True):
        self.cache_ttl = cache_ttl
        self.fast = fast
        self._cache: dict[str, tuple[SizeReport, float]] = {}
        self._lock = threading.Lock()

    def clear_cache(self) -> None:
        """Forget every cached measurement."""
        with self._lock:
            self._cache.clear()

    def size_of(self, path: str | Path) -> int:
        """Total bytes of regular files at or below ``path``."""
        return self.measure(path).total_bytes

    def measure(self, path: str | Path) -> SizeReport:
        """
        Measure a path, using the cache when it is fresh.

        Args:
            path: File or directory to measure

        Returns:
            SizeReport with total bytes, file count and directory count
        """
        key = str(path)
        now = time.monotonic()

        if self.cache_ttl > 0:
            with self._lock:
                cached = self._cache.get(key)
            if cached is not None:
                report, cached_at = cached
                if now - cached_at < self.cache_ttl:
                    return report

        report = self._measure_uncached(key)

        if self.cache_ttl > 0:
            with self._lock:
                self._prune(now)
                self._cache[key] = (report, now)
        return report

    def _prune(self, now: float) -> None:
        """Drop expired entries. Caller holds the lock."""
        expired = [key for key, (_, at) in self._cache.items() if now - at >= self.cache_ttl]
        for key in expired:
            del self._cache[key]

    def _measure_uncached(self, path: str) -> SizeReport:
        try:
            st = os.lstat(path)
        except OSError:
            return SizeReport()

        if stat.S_ISREG(st.st_mode):
            return SizeReport(total_bytes=st.st_size, file_count=1)
        if not stat.S_ISDIR(st.st_mode):
            return SizeReport()

        if self.fast:
            return _scandir_total(path)
        return _walk_total(path)


def _scandir_total(root: str) -> SizeReport:
    """Directory total via os.scandir, using the dirent type information."""
    total_size = 0
    file_count = 0
    dir_count = 0
    pending = [root]

    while pending:
        current = pending.pop()
        try:
            with os.scandir(current) as entries:
                for entry in entries:
                    try:
                        if entry.is_file(follow_symlinks=False):
                            total_size += entry.stat(follow_symlinks=False).st_size
                            file_count += 1
                        elif entry.is_dir(follow_symlinks=False):
                            dir_count += 1
                            pending.append(entry.path)
                    except OSError:
                        continue
        except OSError as e:
            log.debug("Cannot list %s: %s", current, e)
            continue

    return SizeReport(total_bytes=total_size, file_count=file_count, dir_count=dir_count)


def _walk_total(root: str) -> SizeReport:
    """Directory total via os.walk and lstat on every entry."""
    total_size = 0
    file_count = 0
    dir_count = 0

    for dirpath, dirnames, filenames in os.walk(root, followlinks=False):
        dir_count += sum(
            1 for name in dirnames if not os.path.islink(os.path.join(dirpath, name))
        )
        for filename in filenames:
            try:
                st = os.lstat(os.path.join(dirpath, filename))
            except OSError:
                continue
            # Regular files only; symlinks show up in filenames too
            if stat.S_ISREG(st.st_mode):
                total_size += st.st_size
                file_count += 1

    return SizeReport(total_bytes=total_size, file_count=file_count, dir_count=dir_count)
