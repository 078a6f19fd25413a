"""
Main ignore manager API: hierarchical rule files, explicit inclusions and
change notifications behind one object
"""

import os
import threading
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from .cache import PathLike, RuleCache, canonical_path
from .config import IgnoreConfig
from .file_loader import IgnoreFileLoader, RuleFile
from .override import ExplicitInclusionOverride
from .resolver import HierarchicalResolver, MatchDetail
from .rule_engine import MatchResult
from exportignore.utils import get_logger

logger = get_logger(__name__)


class IgnoreManager:
    """
    Main API for deciding which entries a recursive export must skip
    """

    def __init__(self,
                 root_path: PathLike,
                 explicit_paths: Optional[Iterable[PathLike]] = None,
                 config: Optional[IgnoreConfig] = None,
                 cache: Optional[RuleCache] = None):
        """
        Initialize the ignore manager

        Args:
            root_path: Root directory bounding the ancestor walk
            explicit_paths: Files that are always included (relative paths
                are relative to root_path)
            config: Engine configuration; defaults to IgnoreConfig()
            cache: Rule cache to share between managers; one is built from
                config when omitted
        """
        self.root_path = canonical_path(root_path)
        self.config = config or IgnoreConfig()

        if cache is not None and cache.ignore_filename != self.config.ignore_filename:
            raise ValueError(
                f"Cache is configured for {cache.ignore_filename!r}, "
                f"manager for {self.config.ignore_filename!r}"
            )

        self._cache = cache or RuleCache(IgnoreFileLoader(self.config))
        self._resolver = HierarchicalResolver(self.root_path, self._cache)
        self._override = ExplicitInclusionOverride(self._resolver, explicit_paths)

        logger.debug(
            f"IgnoreManager for {self.root_path} using {self.ignore_filename} "
            f"({len(self._override.explicit_paths)} explicit paths)"
        )

    @property
    def ignore_filename(self) -> str:
        return self.config.ignore_filename

    @property
    def cache(self) -> RuleCache:
        return self._cache

    @property
    def resolver(self) -> HierarchicalResolver:
        return self._resolver

    def _is_directory(self, path: PathLike, is_directory: Optional[bool]) -> bool:
        if is_directory is not None:
            return is_directory
        path = Path(path)
        if not path.is_absolute():
            path = self.root_path / path
        return os.path.isdir(path)

    def is_ignored(self, path: PathLike, is_directory: Optional[bool] = None,
                   cancel_event: Optional[threading.Event] = None) -> bool:
        """
        Check if a path should be excluded from the export

        Args:
            path: Path to check (relative to the root, or absolute)
            is_directory: Whether the path is a directory; looked up on disk
                when omitted
            cancel_event: Optional cancellation event

        Returns:
            True if path should be excluded, False otherwise
        """
        is_dir = self._is_directory(path, is_directory)
        return self._override.is_ignored(path, is_dir, cancel_event)

    def is_ignored_detailed(self, path: PathLike, is_directory: Optional[bool] = None,
                            cancel_event: Optional[threading.Event] = None) -> MatchResult:
        """Tri-state verdict, distinguishing explicit re-inclusion from no opinion"""
        is_dir = self._is_directory(path, is_directory)
        return self._override.is_ignored_detailed(path, is_dir, cancel_event)

    def explain(self, path: PathLike, is_directory: Optional[bool] = None,
                cancel_event: Optional[threading.Event] = None) -> MatchDetail:
        """Verdict plus the rule and rule file that produced it"""
        is_dir = self._is_directory(path, is_directory)
        return self._override.explain(path, is_dir, cancel_event)

    def get_rule_file(self, directory: PathLike) -> Optional[RuleFile]:
        """
        Get the parsed rule file of a directory

        Args:
            directory: Directory (relative to the root, or absolute)

        Returns:
            RuleFile or None if the directory has none
        """
        directory = Path(directory)
        if not directory.is_absolute():
            directory = self.root_path / directory
        return self._cache.get(directory)

    def notify_file_changed(self, file_path: PathLike) -> bool:
        """
        Handle external notification of rule file change

        Args:
            file_path: Path to the changed rule file

        Returns:
            True if the path was a rule file and the cache was invalidated
        """
        logger.info(f"Received change notification for: {file_path}")
        return self._cache.notify_changed(file_path)

    def notify_file_created(self, file_path: PathLike) -> bool:
        logger.info(f"Received creation notification for: {file_path}")
        return self._cache.notify_created(file_path)

    def notify_file_deleted(self, file_path: PathLike) -> bool:
        logger.info(f"Received deletion notification for: {file_path}")
        return self._cache.notify_deleted(file_path)

    def notify_file_moved(self, src_path: PathLike, dest_path: PathLike) -> bool:
        logger.info(f"Received move notification: {src_path} -> {dest_path}")
        return self._cache.notify_moved(src_path, dest_path)

    def clear_cache(self):
        """Drop all parsed rule files; call between independent export runs"""
        logger.info("Clearing rule file cache")
        self._cache.invalidate_all()

    def get_stats(self) -> Dict[str, Any]:
        """
        Get comprehensive statistics

        Returns:
            Dictionary with various statistics
        """
        return {
            'root_path': str(self.root_path),
            'ignore_filename': self.ignore_filename,
            'explicit_paths': len(self._override.explicit_paths),
            'cache': self._cache.get_stats(),
        }
