"""
Hierarchical precedence across nested rule files
"""

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .cache import PathLike, RuleCache, canonical_path
from .file_loader import RuleFile
from .rule_engine import MatchResult, Rule
from exportignore.utils import get_logger, log_with_context

logger = get_logger(__name__)


class OperationCancelledError(Exception):
    """Raised when the caller's cancel event is set during a query"""


@dataclass(frozen=True)
class MatchDetail:
    """Diagnostic result of an ignore query"""
    path: Path
    result: MatchResult
    rule: Optional[Rule] = None
    rule_file: Optional[Path] = None
    relative_path: Optional[str] = None
    explicit: bool = False

    @property
    def should_ignore(self) -> bool:
        return self.result is MatchResult.MATCH_IGNORE

    def describe(self) -> str:
        """``source:line:pattern`` for the deciding rule, '' when none decided"""
        if self.explicit:
            return "<explicit>::"
        if self.rule is None:
            return ""
        return f"{self.rule_file}:{self.rule.line_number}:{self.rule.original_text}"


class HierarchicalResolver:
    """
    Decides whether a path is excluded by the rule files between a root
    directory and the path's parent

    The closest directory whose rule file has an opinion decides: rule files
    are consulted leaf-to-root and the first one returning MATCH_IGNORE or
    MATCH_NEGATE ends the search.
    """

    def __init__(self, root_path: PathLike, cache: Optional[RuleCache] = None):
        """
        Args:
            root_path: Directory bounding the ancestor walk
            cache: Rule cache shared with other resolvers; a new one is created when omitted
        """
        self.root_path = canonical_path(root_path)
        self.cache = cache or RuleCache()

    def _to_canonical(self, path: PathLike) -> Path:
        path = Path(path)
        if not path.is_absolute():
            path = self.root_path / path
        return canonical_path(path)

    def ancestor_directories(self, path: PathLike) -> List[Path]:
        """
        Directories from the root down to the path's immediate parent

        Args:
            path: Target path (absolute, or relative to the root)

        Returns:
            Root-first list; empty when the path is the root or outside it
        """
        target = self._to_canonical(path)
        try:
            relative = target.relative_to(self.root_path)
        except ValueError:
            return []
        if not relative.parts:
            return []

        directories = [self.root_path]
        current = self.root_path
        for part in relative.parts[:-1]:
            current = current / part
            directories.append(current)
        return directories

    def explain(self, path: PathLike, is_directory: bool,
                cancel_event: Optional[threading.Event] = None) -> MatchDetail:
        """
        Resolve a path and report which rule decided

        Args:
            path: Target path (absolute, or relative to the root)
            is_directory: Whether the target is a directory
            cancel_event: Optional event; when set, the query stops with
                OperationCancelledError before the next rule file is read

        Returns:
            MatchDetail with the deciding rule, if any
        """
        target = self._to_canonical(path)
        directories = self.ancestor_directories(target)
        if not directories:
            logger.debug(f"{target} is the root or outside {self.root_path}; not ignored")
            return MatchDetail(path=target, result=MatchResult.NO_MATCH)

        for directory in reversed(directories):
            if cancel_event is not None and cancel_event.is_set():
                raise OperationCancelledError(f"Ignore check for {target} cancelled")

            rule_file = self.cache.get(directory)
            if rule_file is None:
                continue

            detail = self._evaluate(rule_file, directory, target, is_directory)
            if detail is not None:
                if logger.isEnabledFor(logging.DEBUG):
                    log_with_context(
                        logger, logging.DEBUG,
                        f"{target}: {detail.result.value} by {detail.describe()}",
                        path=str(target), result=detail.result.value,
                        rule_file=str(detail.rule_file),
                    )
                return detail

        logger.debug(f"{target}: no rule matched in {len(directories)} directories")
        return MatchDetail(path=target, result=MatchResult.NO_MATCH)

    def _evaluate(self, rule_file: RuleFile, directory: Path, target: Path,
                  is_directory: bool) -> Optional[MatchDetail]:
        relative_path = target.relative_to(directory).as_posix()
        try:
            found = rule_file.find_match(relative_path, is_directory)
        except Exception as e:
            logger.warning(f"Error evaluating {rule_file.source} for {relative_path!r}: {e}")
            return None
        if found is None:
            return None
        rule, result = found
        return MatchDetail(
            path=target,
            result=result,
            rule=rule,
            rule_file=rule_file.source,
            relative_path=relative_path,
        )

    def is_ignored_detailed(self, path: PathLike, is_directory: bool,
                            cancel_event: Optional[threading.Event] = None) -> MatchResult:
        """
        Tri-state verdict: NO_MATCH when no rule file has an opinion,
        MATCH_NEGATE when the deciding rule explicitly re-includes the path
        """
        return self.explain(path, is_directory, cancel_event).result

    def is_ignored(self, path: PathLike, is_directory: bool,
                   cancel_event: Optional[threading.Event] = None) -> bool:
        """
        Check if a path must be excluded

        Args:
            path: Target path (absolute, or relative to the root)
            is_directory: Whether the target is a directory
            cancel_event: Optional cancellation event

        Returns:
            True if excluded, False otherwise (including paths outside the root)
        """
        return self.is_ignored_detailed(path, is_directory, cancel_event) is MatchResult.MATCH_IGNORE

    def clear_cache(self):
        """Force every rule file to be re-read on the next query"""
        self.cache.invalidate_all()
