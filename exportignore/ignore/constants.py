"""
Central configuration for rule file processing
"""

# Single source of truth for the rule filename
IGNORE_FILENAME = ".gitignore"

# Characters that turn a pattern into a glob. A backslash is included so
# escaped sequences always go through the glob matcher.
GLOB_METACHARACTERS = frozenset("*?[\\")

# Patterns that exclude nearly everything below the rule file
OVERLY_BROAD_PATTERNS = frozenset(["*", "**", "**/*", "/*", "/**"])

# Limits for security and performance
MAX_IGNORE_FILE_SIZE = 1024 * 1024  # 1MB
MAX_PATTERNS_PER_FILE = 10000
DEFAULT_ENCODING = "utf-8"

# Decoding markers
BYTE_ORDER_MARK = "\ufeff"
REPLACEMENT_CHARACTER = "\ufffd"
