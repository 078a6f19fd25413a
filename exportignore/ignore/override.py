"""
Explicit inclusion of caller-selected files
"""

import threading
from pathlib import Path
from typing import FrozenSet, Iterable, Optional

from .cache import PathLike, canonical_path
from .resolver import HierarchicalResolver, MatchDetail
from .rule_engine import MatchResult
from exportignore.utils import get_logger

logger = get_logger(__name__)


class ExplicitInclusionOverride:
    """
    Reports explicitly selected files as included, whatever the rule files say

    Only files are overridden. A selected directory is still resolved
    normally, so a walker may refuse to descend into an excluded directory
    even when one of its descendants was selected.
    """

    def __init__(self, resolver: HierarchicalResolver,
                 explicit_paths: Optional[Iterable[PathLike]] = None):
        """
        Args:
            resolver: Resolver consulted for everything that is not overridden
            explicit_paths: Files that are always included; relative paths
                are taken relative to the resolver's root
        """
        self.resolver = resolver
        self._explicit: FrozenSet[Path] = frozenset(
            self._to_canonical(p) for p in (explicit_paths or ())
        )

    @property
    def root_path(self) -> Path:
        return self.resolver.root_path

    @property
    def explicit_paths(self) -> FrozenSet[Path]:
        return self._explicit

    def _to_canonical(self, path: PathLike) -> Path:
        path = Path(path)
        if not path.is_absolute():
            path = self.resolver.root_path / path
        return canonical_path(path)

    def is_explicit(self, path: PathLike, is_directory: bool) -> bool:
        return not is_directory and self._to_canonical(path) in self._explicit

    def explain(self, path: PathLike, is_directory: bool,
                cancel_event: Optional[threading.Event] = None) -> MatchDetail:
        if self.is_explicit(path, is_directory):
            target = self._to_canonical(path)
            logger.debug(f"Explicitly selected: {target}")
            return MatchDetail(path=target, result=MatchResult.MATCH_NEGATE, explicit=True)
        return self.resolver.explain(path, is_directory, cancel_event)

    def is_ignored_detailed(self, path: PathLike, is_directory: bool,
                            cancel_event: Optional[threading.Event] = None) -> MatchResult:
        """
        Tri-state verdict; explicitly selected files report MATCH_NEGATE
        """
        return self.explain(path, is_directory, cancel_event).result

    def is_ignored(self, path: PathLike, is_directory: bool,
                   cancel_event: Optional[threading.Event] = None) -> bool:
        if self.is_explicit(path, is_directory):
            logger.info(f"Explicitly selected, including despite rule files: {path}")
            return False
        return self.resolver.is_ignored(path, is_directory, cancel_event)
