"""
Configuration for the ignore engine
"""

import os
from dataclasses import dataclass
from typing import Optional

from .constants import (
    DEFAULT_ENCODING,
    IGNORE_FILENAME,
    MAX_IGNORE_FILE_SIZE,
    MAX_PATTERNS_PER_FILE,
)
from exportignore.utils import get_logger

logger = get_logger(__name__)

_TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class IgnoreConfig:
    """Settings shared by the loader, cache and resolver"""
    ignore_filename: str = IGNORE_FILENAME
    max_file_size: int = MAX_IGNORE_FILE_SIZE
    max_patterns_per_file: int = MAX_PATTERNS_PER_FILE
    encoding: str = DEFAULT_ENCODING

    # Filename-only regex strategy for slash-free patterns (see rule_engine)
    filename_fallback: bool = True

    def __post_init__(self):
        """Validate configuration values"""
        if not self.ignore_filename or "/" in self.ignore_filename or "\\" in self.ignore_filename:
            raise ValueError(f"Invalid rule filename: {self.ignore_filename!r}")
        if self.max_file_size <= 0:
            raise ValueError(f"max_file_size must be positive, got {self.max_file_size}")
        if self.max_patterns_per_file <= 0:
            raise ValueError(
                f"max_patterns_per_file must be positive, got {self.max_patterns_per_file}"
            )

    @classmethod
    def from_env(cls, **overrides) -> "IgnoreConfig":
        """
        Build a configuration from EXPORTIGNORE_* environment variables

        Args:
            **overrides: Explicit values that take precedence over the environment

        Returns:
            IgnoreConfig instance
        """
        values = {}

        filename = os.environ.get("EXPORTIGNORE_FILENAME")
        if filename:
            values["ignore_filename"] = filename

        max_size = _int_from_env("EXPORTIGNORE_MAX_FILE_SIZE")
        if max_size is not None:
            values["max_file_size"] = max_size

        max_patterns = _int_from_env("EXPORTIGNORE_MAX_PATTERNS")
        if max_patterns is not None:
            values["max_patterns_per_file"] = max_patterns

        fallback = os.environ.get("EXPORTIGNORE_FILENAME_FALLBACK")
        if fallback is not None:
            values["filename_fallback"] = fallback.strip().lower() in _TRUE_VALUES

        values.update(overrides)
        return cls(**values)


def _int_from_env(name: str) -> Optional[int]:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return None
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Ignoring non-integer value for {name}: {raw!r}")
        return None
    if value <= 0:
        logger.warning(f"Ignoring non-positive value for {name}: {value}")
        return None
    return value
