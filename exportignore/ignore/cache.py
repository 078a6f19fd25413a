"""
Per-directory cache of parsed rule files
"""

import os
import threading
from pathlib import Path
from typing import Dict, Optional, Union

from .file_loader import IgnoreFileLoader, RuleFile
from exportignore.utils import get_logger

logger = get_logger(__name__)

PathLike = Union[str, os.PathLike]

_MISSING = object()


def canonical_path(path: PathLike) -> Path:
    """Absolute, normalized path used as cache and set key (symlinks are kept)"""
    return Path(os.path.normpath(os.path.abspath(os.fspath(path))))


class RuleCache:
    """
    Thread-safe map from directory to its parsed rule file

    A directory without a rule file is cached as ``None`` so the file
    system is only consulted once per directory until invalidated.
    """

    def __init__(self, loader: Optional[IgnoreFileLoader] = None):
        """
        Args:
            loader: Loader used on cache misses
        """
        self.loader = loader or IgnoreFileLoader()
        self._entries: Dict[Path, Optional[RuleFile]] = {}
        # Loads in flight per directory, and the invalidations seen meanwhile; a
        # miss parsed under an older generation is returned but not stored.
        # Both maps only hold directories with a load in flight.
        self._loading: Dict[Path, int] = {}
        self._generations: Dict[Path, int] = {}
        self._epoch = 0
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._parses = 0

    @property
    def ignore_filename(self) -> str:
        return self.loader.ignore_filename

    @property
    def parse_count(self) -> int:
        """Number of rule files parsed since creation (or the last clear)"""
        with self._lock:
            return self._parses

    def get(self, directory: PathLike) -> Optional[RuleFile]:
        """
        Get the rule file for a directory, loading it on first access

        Args:
            directory: Directory whose rule file is wanted

        Returns:
            RuleFile, or None when the directory has no rule file
        """
        key = canonical_path(directory)

        with self._lock:
            if key in self._entries:
                self._hits += 1
                return self._entries[key]
            self._misses += 1
            self._loading[key] = self._loading.get(key, 0) + 1
            generation = (self._epoch, self._generations.get(key, 0))

        stored = False
        try:
            rule_file = self._load(key)
            with self._lock:
                if generation == (self._epoch, self._generations.get(key, 0)):
                    # Concurrent misses converge on whichever result was stored first
                    rule_file = self._entries.setdefault(key, rule_file)
                    stored = True
        finally:
            with self._lock:
                self._release(key)

        if not stored:
            logger.debug(f"Rule file for {key} invalidated while loading; not caching")
        return rule_file

    def _release(self, key: Path):
        # Caller holds the lock; generations are only kept while a load is in flight
        remaining = self._loading[key] - 1
        if remaining:
            self._loading[key] = remaining
        else:
            del self._loading[key]
            self._generations.pop(key, None)

    def _load(self, directory: Path) -> Optional[RuleFile]:
        rule_path = self.loader.rule_file_path(directory)
        try:
            present = rule_path.is_file()
        except OSError as e:
            logger.warning(f"Cannot stat {rule_path}: {e}")
            return None
        if not present:
            logger.debug(f"No {self.ignore_filename} in {directory}")
            return None

        rule_file = self.loader.load_file(rule_path)
        with self._lock:
            self._parses += 1
        return rule_file

    def invalidate(self, directory: PathLike) -> bool:
        """
        Drop the cached entry for a directory

        Args:
            directory: Directory whose rule file changed

        Returns:
            True if an entry was removed
        """
        key = canonical_path(directory)
        with self._lock:
            if key in self._loading:
                self._generations[key] = self._generations.get(key, 0) + 1
            removed = self._entries.pop(key, _MISSING) is not _MISSING
        logger.debug(f"Invalidated rule cache for {key} (had entry: {removed})")
        return removed

    def invalidate_all(self):
        """Drop every cached entry"""
        with self._lock:
            self._entries.clear()
            self._generations.clear()
            self._epoch += 1
        logger.debug("Cleared rule cache")

    def clear(self):
        """Drop every entry and reset statistics"""
        with self._lock:
            self._entries.clear()
            self._generations.clear()
            self._epoch += 1
            self._hits = 0
            self._misses = 0
            self._parses = 0

    def _is_rule_file(self, file_path: PathLike) -> bool:
        return Path(os.fspath(file_path)).name == self.ignore_filename

    def notify_changed(self, file_path: PathLike) -> bool:
        """
        Handle a content-changed, created or deleted notification

        Only paths named like the configured rule file are considered.

        Args:
            file_path: Path of the file the notification refers to

        Returns:
            True if the notification referred to a rule file
        """
        if not self._is_rule_file(file_path):
            logger.debug(f"Not a rule file: {file_path}")
            return False
        self.invalidate(canonical_path(file_path).parent)
        return True

    notify_deleted = notify_changed
    notify_created = notify_changed

    def notify_moved(self, src_path: PathLike, dest_path: PathLike) -> bool:
        """
        Handle a rename/move notification

        Both the old and the new containing directories are invalidated when
        either end of the move is a rule file.

        Returns:
            True if any cache entry could have been affected
        """
        if not (self._is_rule_file(src_path) or self._is_rule_file(dest_path)):
            return False
        self.invalidate(canonical_path(src_path).parent)
        self.invalidate(canonical_path(dest_path).parent)
        return True

    def get_stats(self) -> Dict[str, int]:
        """
        Get cache statistics

        Returns:
            Dictionary with size, hits, misses and parses
        """
        with self._lock:
            return {
                'size': len(self._entries),
                'rule_files': sum(1 for v in self._entries.values() if v is not None),
                'hits': self._hits,
                'misses': self._misses,
                'parses': self._parses,
            }

