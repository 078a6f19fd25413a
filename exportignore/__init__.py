"""export-ignore: .gitignore-compatible exclusion decisions for recursive exports"""

from .ignore import (
    IGNORE_FILENAME,
    ExplicitInclusionOverride,
    HierarchicalResolver,
    IgnoreConfig,
    IgnoreManager,
    MatchDetail,
    MatchResult,
    RuleCache,
)

__version__ = "0.1.0"

__all__ = [
    'IGNORE_FILENAME',
    'ExplicitInclusionOverride',
    'HierarchicalResolver',
    'IgnoreConfig',
    'IgnoreManager',
    'MatchDetail',
    'MatchResult',
    'RuleCache',
    '__version__',
]
