"""
Hierarchical ignore-rule engine for recursive exports

This module decides whether an entry of a file tree is excluded, using
.gitignore-compatible semantics:
- One rule file per directory, composed from the root down to the entry
- Negation, rooted and directory-only patterns, glob wildcards
- Last matching rule wins inside a file; the closest deciding file wins
- Lazily parsed rule files, invalidated by external change notifications
- Explicit inclusion of caller-selected files
"""

from .constants import IGNORE_FILENAME
from .config import IgnoreConfig
from .rule_engine import (
    InvalidPatternError,
    MatchResult,
    MatchSource,
    PatternCompiler,
    Rule,
    glob_to_regex,
)
from .file_loader import IgnoreFileLoader, LoadIssue, RuleFile
from .cache import RuleCache, canonical_path
from .resolver import HierarchicalResolver, MatchDetail, OperationCancelledError
from .override import ExplicitInclusionOverride
from .manager import IgnoreManager

__all__ = [
    'IGNORE_FILENAME',
    'IgnoreConfig',
    'InvalidPatternError',
    'MatchResult',
    'MatchSource',
    'PatternCompiler',
    'Rule',
    'glob_to_regex',
    'IgnoreFileLoader',
    'LoadIssue',
    'RuleFile',
    'RuleCache',
    'canonical_path',
    'HierarchicalResolver',
    'MatchDetail',
    'OperationCancelledError',
    'ExplicitInclusionOverride',
    'IgnoreManager',
]
