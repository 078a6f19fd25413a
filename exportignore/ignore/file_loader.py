"""
File loader for parsing rule files into RuleFile objects
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from .config import IgnoreConfig
from .constants import BYTE_ORDER_MARK, OVERLY_BROAD_PATTERNS, REPLACEMENT_CHARACTER
from .rule_engine import InvalidPatternError, MatchResult, PatternCompiler, Rule
from exportignore.utils import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class LoadIssue:
    """An error or warning found while loading a rule file"""
    line: int
    pattern: str
    message: str


@dataclass(frozen=True)
class RuleFile:
    """
    Ordered rules parsed from one rule file

    Instances are never mutated; a changed file is re-parsed into a new
    RuleFile and swapped in by the cache.
    """
    source: Path
    rules: Tuple[Rule, ...] = ()
    errors: Tuple[LoadIssue, ...] = ()
    warnings: Tuple[LoadIssue, ...] = ()
    stats: Dict[str, int] = field(default_factory=dict, compare=False)

    @property
    def is_valid(self) -> bool:
        """Check if file has no errors"""
        return not self.errors

    @property
    def directory(self) -> Path:
        return self.source.parent

    def find_match(self, relative_path: str, is_directory: bool) -> Optional[Tuple[Rule, MatchResult]]:
        """
        Find the deciding rule for a path

        The last matching line wins, so rules are scanned in reverse
        declaration order and the first hit is returned.

        Args:
            relative_path: Path relative to this file's directory, '/'-separated
            is_directory: Whether the candidate is a directory

        Returns:
            (rule, result) for the deciding rule, or None if no rule matches
        """
        normalized = relative_path.lstrip('/')
        if not normalized:
            return None

        for rule in reversed(self.rules):
            result = rule.matches(normalized, is_directory)
            if result is not MatchResult.NO_MATCH:
                return rule, result
        return None

    def match(self, relative_path: str, is_directory: bool) -> MatchResult:
        """Evaluate a path against this file; NO_MATCH when no rule applies"""
        found = self.find_match(relative_path, is_directory)
        return found[1] if found else MatchResult.NO_MATCH


class IgnoreFileLoader:
    """
    Handles loading, parsing, and validating rule files
    """

    def __init__(self, config: Optional[IgnoreConfig] = None,
                 compiler: Optional[PatternCompiler] = None):
        """
        Initialize loader

        Args:
            config: Engine configuration (filename, size and pattern limits)
            compiler: Pattern compiler to use; built from config when omitted
        """
        self.config = config or IgnoreConfig()
        self.compiler = compiler or PatternCompiler(filename_fallback=self.config.filename_fallback)

    @property
    def ignore_filename(self) -> str:
        return self.config.ignore_filename

    def rule_file_path(self, directory: Path) -> Path:
        return directory / self.config.ignore_filename

    def load_file(self, file_path: Path) -> RuleFile:
        """
        Load and parse a rule file

        Never raises: unreadable or oversized files produce a RuleFile with
        no rules and the problem recorded in ``errors``. Undecodable bytes
        are replaced; only the pattern lines containing them are dropped.

        Args:
            file_path: Path to the rule file

        Returns:
            RuleFile with compiled rules and validation results
        """
        try:
            file_size = file_path.stat().st_size
            if file_size > self.config.max_file_size:
                message = f"File too large: {file_size} bytes (max: {self.config.max_file_size})"
                logger.warning(f"{file_path}: {message}")
                return RuleFile(source=file_path, errors=(LoadIssue(0, "", message),))

            with open(file_path, 'rb') as f:
                data = f.read()
            text, lossy = self._decode(data, file_path)
        except (OSError, LookupError) as e:
            message = f"Error reading file: {e}"
            logger.warning(f"Cannot read {file_path}: {e}")
            return RuleFile(source=file_path, errors=(LoadIssue(0, "", message),))

        if text.startswith(BYTE_ORDER_MARK):
            text = text[1:]

        return self.parse_lines(text.splitlines(), file_path, lossy=lossy)

    def _decode(self, data: bytes, file_path: Path) -> Tuple[str, bool]:
        try:
            return data.decode(self.config.encoding), False
        except UnicodeDecodeError as e:
            logger.warning(f"{file_path}: undecodable bytes replaced: {e}")
            return data.decode(self.config.encoding, errors='replace'), True

    def parse_lines(self, lines: Iterable[str], source: Path, lossy: bool = False) -> RuleFile:
        """
        Compile rule file lines, skipping blank lines, comments and bad lines

        Args:
            lines: Raw lines of the rule file
            source: Path of the rule file the lines came from
            lossy: The text was decoded with replacement characters; pattern
                lines containing one are rejected

        Returns:
            RuleFile in declaration order
        """
        rules: List[Rule] = []
        errors: List[LoadIssue] = []
        warnings: List[LoadIssue] = []
        stats = {
            'total_lines': 0,
            'empty_lines': 0,
            'comment_lines': 0,
            'pattern_lines': 0,
        }

        for line_num, line in enumerate(lines, 1):
            stats['total_lines'] += 1
            stripped = line.strip()

            if not stripped:
                stats['empty_lines'] += 1
                continue
            if stripped.startswith('#'):
                stats['comment_lines'] += 1
                continue

            stats['pattern_lines'] += 1
            if lossy and REPLACEMENT_CHARACTER in line:
                logger.warning(f"{source}:{line_num}: skipping rule with undecodable bytes")
                errors.append(LoadIssue(line_num, stripped, "Undecodable bytes in pattern"))
                continue

            try:
                rule = self.compiler.compile(line, line_number=line_num)
            except InvalidPatternError as e:
                logger.warning(f"{source}:{line_num}: skipping bad rule {stripped!r}: {e}")
                errors.append(LoadIssue(line_num, stripped, str(e)))
                continue
            except Exception as e:
                logger.warning(f"{source}:{line_num}: failed to compile {stripped!r}: {e}")
                errors.append(LoadIssue(line_num, stripped, f"Failed to compile: {e}"))
                continue

            rules.append(rule)
            for message in self._check_pattern_warnings(rule):
                warnings.append(LoadIssue(line_num, rule.original_text, message))

        if lossy:
            warnings.insert(0, LoadIssue(
                0, "", f"Undecodable bytes replaced while decoding as {self.config.encoding}"
            ))

        max_patterns = self.config.max_patterns_per_file
        if len(rules) > max_patterns:
            message = f"Too many patterns: {len(rules)} (max: {max_patterns})"
            logger.warning(f"{source}: {message}")
            errors.append(LoadIssue(0, "", message))
            rules = rules[:max_patterns]

        logger.debug(f"Parsed {len(rules)} rules from {source}")
        return RuleFile(
            source=source,
            rules=tuple(rules),
            errors=tuple(errors),
            warnings=tuple(warnings),
            stats=stats,
        )

    def _check_pattern_warnings(self, rule: Rule) -> List[str]:
        """
        Check a compiled rule for likely mistakes that aren't errors

        Args:
            rule: Compiled rule

        Returns:
            List of warning messages
        """
        warnings = []
        text = rule.original_text

        if text.endswith('\\') and not text.endswith('\\\\'):
            warnings.append("Pattern ends with a lone backslash")

        if not rule.negated and text in OVERLY_BROAD_PATTERNS:
            warnings.append("Very broad pattern - will exclude nearly everything below this file")

        return warnings
