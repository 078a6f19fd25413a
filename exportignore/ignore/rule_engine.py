"""
Pattern compilation and per-rule matching

A rule file line is compiled once into an immutable ``Rule``. Matching a
candidate path runs the rule's strategies in order and stops at the first
hit:

1. ``LITERAL``        - plain string comparison for patterns without glob
                        characters that are not directory-only.
2. ``GLOB``           - structural gitwildmatch matcher (via pathspec) built
                        from the rooted/prefixed/suffixed glob.
3. ``FILENAME_REGEX`` - regex over the final path segment only, built for
                        rootless, slash-free patterns.

The filename regex is a robustness net, not part of canonical ignore-file
semantics: it only fires when the structural matcher did not, and can be
disabled with ``PatternCompiler(filename_fallback=False)``.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, Tuple

import pathspec

from .constants import GLOB_METACHARACTERS
from exportignore.utils import TRACE_LEVEL, get_logger

logger = get_logger(__name__)


class MatchResult(Enum):
    """Outcome of evaluating a path against a rule or a rule file"""
    NO_MATCH = "no_match"
    MATCH_IGNORE = "ignore"
    MATCH_NEGATE = "negate"

    @property
    def matched(self) -> bool:
        return self is not MatchResult.NO_MATCH


class MatchSource(Enum):
    """Strategy that produced a hit"""
    LITERAL = "literal"
    GLOB = "glob"
    FILENAME_REGEX = "filename_regex"


class InvalidPatternError(ValueError):
    """Raised when a rule file line cannot be turned into a rule"""


# (source, predicate(relative_path, final_segment))
Strategy = Tuple[MatchSource, Callable[[str, str], bool]]

# Characters escaped by glob_to_regex when they appear unescaped in the glob
_REGEX_SPECIALS = set(".()+|^${}[]@%")


def glob_to_regex(glob: str) -> re.Pattern:
    """
    Translate a filename glob into an anchored regular expression

    ``*`` becomes ``[^/]*``, ``**`` becomes ``.*``, ``?`` becomes ``[^/]``,
    a backslash makes the next character literal, and ``. ( ) + | ^ $ { } [ ]
    @ %`` are escaped. Bracket expressions are therefore literal here; the
    structural matcher is the one that understands them.

    Args:
        glob: Glob for a single path segment

    Returns:
        Compiled regex to be used with ``fullmatch``
    """
    parts = []
    i = 0
    while i < len(glob):
        c = glob[i]
        if c == '*':
            if i + 1 < len(glob) and glob[i + 1] == '*':
                parts.append('.*')
                i += 1
            else:
                parts.append('[^/]*')
        elif c == '?':
            parts.append('[^/]')
        elif c == '\\':
            if i + 1 < len(glob):
                parts.append(re.escape(glob[i + 1]))
                i += 1
            else:
                parts.append('\\\\')
        elif c in _REGEX_SPECIALS:
            parts.append('\\' + c)
        else:
            parts.append(c)
        i += 1
    source = ''.join(parts)
    try:
        return re.compile(source, re.DOTALL)
    except re.error as e:
        logger.warning(f"Failed to compile regex {source!r} from glob {glob!r}: {e}")
        # Matches nothing
        return re.compile(r'(?!)')


def _final_segment(relative_path: str) -> str:
    return relative_path.rsplit('/', 1)[-1]


def _strip_trailing_whitespace(text: str) -> str:
    """Remove trailing spaces and tabs unless the last one is backslash-escaped"""
    end = len(text)
    while end > 0 and text[end - 1] in ' \t':
        # Count the backslashes in front of this whitespace character
        backslashes = 0
        j = end - 2
        while j >= 0 and text[j] == '\\':
            backslashes += 1
            j -= 1
        if backslashes % 2 == 1:
            break
        end -= 1
    return text[:end]


def _has_unescaped_suffix(text: str, suffix: str) -> bool:
    if not text.endswith(suffix):
        return False
    backslashes = 0
    j = len(text) - len(suffix) - 1
    while j >= 0 and text[j] == '\\':
        backslashes += 1
        j -= 1
    return backslashes % 2 == 0


@dataclass(frozen=True)
class Rule:
    """
    One compiled rule file line

    ``pattern`` is the core pattern: the leading ``!``, trailing ``/`` and
    leading ``/`` have already been stripped and recorded in ``negated``,
    ``dir_only`` and ``rooted``.
    """
    original_text: str
    negated: bool
    rooted: bool
    dir_only: bool
    pattern: str
    line_number: int = 0
    literal: bool = False
    glob: Optional[str] = None
    dir_name: str = ""
    strategies: Tuple[Strategy, ...] = field(default=(), repr=False, compare=False)
    _dir_name_matcher: Optional[Callable[[str], bool]] = field(default=None, repr=False, compare=False)

    @property
    def anchored(self) -> bool:
        """True when the pattern is compared against the whole relative path"""
        return self.rooted or '/' in self.pattern

    def matches(self, relative_path: str, is_directory: bool) -> MatchResult:
        """
        Evaluate this rule for a path relative to the rule file's directory

        Args:
            relative_path: '/'-separated path, no leading slash
            is_directory: Whether the candidate is a directory

        Returns:
            MatchResult.NO_MATCH, MATCH_IGNORE or MATCH_NEGATE
        """
        source = self.match_source(relative_path, is_directory)
        if source is None:
            return MatchResult.NO_MATCH
        return MatchResult.MATCH_NEGATE if self.negated else MatchResult.MATCH_IGNORE

    def match_source(self, relative_path: str, is_directory: bool) -> Optional[MatchSource]:
        """Return the strategy that matched, or None when the rule does not apply"""
        if not relative_path:
            return None

        name = _final_segment(relative_path)
        hit: Optional[MatchSource] = None

        for source, predicate in self.strategies:
            try:
                if predicate(relative_path, name):
                    hit = source
                    break
            except Exception as e:
                # Fall through to the next strategy for this rule
                logger.debug(f"Rule {self.original_text!r}: {source.value} failed for {relative_path!r}: {e}")

        tracing = logger.isEnabledFor(TRACE_LEVEL)
        if hit is None:
            if tracing:
                logger.trace(f"Rule {self.original_text!r}: no match for {relative_path!r}")
            return None

        if self.dir_only and not is_directory:
            # A directory-only rule never swallows a file sharing the directory's name
            if hit is MatchSource.FILENAME_REGEX or self._matches_dir_name(name):
                if tracing:
                    logger.trace(
                        f"Rule {self.original_text!r}: {hit.value} matched file {relative_path!r} "
                        f"but rule is directory-only"
                    )
                return None

        if tracing:
            logger.trace(f"Rule {self.original_text!r}: {hit.value} match for {relative_path!r}")
        return hit

    def _matches_dir_name(self, name: str) -> bool:
        if name == self.dir_name:
            return True
        return self._dir_name_matcher is not None and self._dir_name_matcher(name)


class PatternCompiler:
    """
    Turns one rule file line into an immutable Rule
    """

    def __init__(self, filename_fallback: bool = True):
        """
        Args:
            filename_fallback: Add the filename-only regex strategy to
                rootless, slash-free glob patterns
        """
        self.filename_fallback = filename_fallback

    @staticmethod
    def is_rule_line(line: str) -> bool:
        """False for blank lines and lines starting with an unescaped '#'"""
        stripped = line.strip()
        return bool(stripped) and not stripped.startswith('#')

    def compile(self, line: str, line_number: int = 0) -> Rule:
        """
        Compile a rule file line

        Args:
            line: Raw line (line terminators are ignored)
            line_number: 1-based position in the rule file, for diagnostics

        Returns:
            Compiled Rule

        Raises:
            InvalidPatternError: Blank/comment lines or lines with no pattern left
        """
        text = line.rstrip('\r\n').lstrip()
        if not self.is_rule_line(text):
            raise InvalidPatternError(f"Not a rule line: {line!r}")

        original = _strip_trailing_whitespace(text)
        p = original

        negated = p.startswith('!')
        if negated:
            p = p[1:]
        if p.startswith('\\#') or p.startswith('\\!'):
            p = p[1:]

        p = p.replace('\\ ', ' ')

        dir_only = _has_unescaped_suffix(p, '/')
        if dir_only:
            p = p[:-1]

        rooted = p.startswith('/')
        if rooted:
            p = p[1:]

        if not p or p == '/':
            raise InvalidPatternError(f"Empty pattern in line {original!r}")

        literal = not dir_only and not any(c in GLOB_METACHARACTERS for c in p)
        has_slash = '/' in p
        dir_name = _final_segment(p) if dir_only else ""

        if literal:
            return Rule(
                original_text=original,
                negated=negated,
                rooted=rooted,
                dir_only=dir_only,
                pattern=p,
                line_number=line_number,
                literal=True,
                strategies=(self._literal_strategy(p, rooted or has_slash),),
            )

        glob = self._build_glob(p, rooted, has_slash)
        strategies = []

        spec = self._compile_glob(glob, dir_only, original)
        if spec is not None:
            strategies.append((MatchSource.GLOB, lambda rel, name: spec.match_file(rel)))

        name_regex = None
        if self.filename_fallback and not rooted and not has_slash:
            name_regex = glob_to_regex(p)
            strategies.append(
                (MatchSource.FILENAME_REGEX, lambda rel, name: name_regex.fullmatch(name) is not None)
            )

        dir_name_matcher = None
        if dir_only and any(c in GLOB_METACHARACTERS for c in dir_name):
            dir_name_matcher = self._compile_dir_name(dir_name, original)

        rule = Rule(
            original_text=original,
            negated=negated,
            rooted=rooted,
            dir_only=dir_only,
            pattern=p,
            line_number=line_number,
            literal=False,
            glob=glob,
            dir_name=dir_name,
            strategies=tuple(strategies),
            _dir_name_matcher=dir_name_matcher,
        )
        logger.trace(
            f"Rule {original!r} -> pattern={p!r}, glob={glob!r}, neg={negated}, "
            f"dir_only={dir_only}, rooted={rooted}, strategies={[s.value for s, _ in strategies]}"
        )
        return rule

    @staticmethod
    def _literal_strategy(pattern: str, anchored: bool) -> Strategy:
        if anchored:
            prefix = pattern + '/'

            def predicate(rel: str, name: str) -> bool:
                return rel == pattern or rel.startswith(prefix)
        else:
            def predicate(rel: str, name: str) -> bool:
                return name == pattern or pattern in rel.split('/')

        return (MatchSource.LITERAL, predicate)

    @staticmethod
    def _build_glob(pattern: str, rooted: bool, has_slash: bool) -> str:
        if rooted:
            glob = '/' + pattern
        elif not pattern.startswith('**') and not has_slash:
            glob = '**/' + pattern
        else:
            glob = pattern
            if glob[0] in '#!':
                glob = '\\' + glob

        if glob.endswith(' '):
            # pathspec strips trailing whitespace unless it is escaped
            glob = glob[:-1] + '\\ '
        return glob

    @staticmethod
    def _compile_glob(glob: str, dir_only: bool, original: str) -> Optional[pathspec.PathSpec]:
        lines = [glob]
        if dir_only and not glob.endswith('/**'):
            # The directory itself plus everything below it
            lines.append(glob + '/**')
        try:
            return pathspec.PathSpec.from_lines('gitwildmatch', lines)
        except Exception as e:
            logger.warning(f"Invalid glob {glob!r} generated from rule {original!r}: {e}")
            return None

    @staticmethod
    def _compile_dir_name(dir_name: str, original: str) -> Callable[[str], bool]:
        # Bare final segment of a directory-only glob, checked against a single name
        try:
            spec = pathspec.PathSpec.from_lines('gitwildmatch', ['/' + dir_name])
            return spec.match_file
        except Exception as e:
            logger.warning(f"Invalid directory name glob {dir_name!r} from rule {original!r}: {e}")
            regex = glob_to_regex(dir_name)
            return lambda name: regex.fullmatch(name) is not None
