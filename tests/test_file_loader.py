#!/usr/bin/env python3
"""
Tests for rule file loading and last-match-wins evaluation
"""

from pathlib import Path

import pytest

from exportignore.ignore import IgnoreConfig, IgnoreFileLoader, MatchResult, RuleFile

SOURCE = Path("/project/.gitignore")


@pytest.fixture
def loader():
    return IgnoreFileLoader()


def test_parse_lines_skips_blank_and_comment_lines(loader):
    rule_file = loader.parse_lines(["# build output", "", "*.log", "!keep.log"], SOURCE)

    assert [r.original_text for r in rule_file.rules] == ["*.log", "!keep.log"]
    assert rule_file.stats == {
        'total_lines': 4,
        'empty_lines': 1,
        'comment_lines': 1,
        'pattern_lines': 2,
    }
    assert rule_file.is_valid
    assert rule_file.directory == Path("/project")


def test_last_matching_rule_wins(loader):
    rule_file = loader.parse_lines(["*.log", "!keep.log"], SOURCE)

    assert rule_file.match("app.log", False) is MatchResult.MATCH_IGNORE
    assert rule_file.match("keep.log", False) is MatchResult.MATCH_NEGATE
    assert rule_file.match("notes.txt", False) is MatchResult.NO_MATCH


def test_later_rule_overrides_earlier_negation(loader):
    rule_file = loader.parse_lines(["!keep.log", "*.log"], SOURCE)
    assert rule_file.match("keep.log", False) is MatchResult.MATCH_IGNORE


def test_find_match_reports_deciding_rule(loader):
    rule_file = loader.parse_lines(["*.log", "", "!keep.log"], SOURCE)

    rule, result = rule_file.find_match("logs/keep.log", False)
    assert result is MatchResult.MATCH_NEGATE
    assert rule.original_text == "!keep.log"
    assert rule.line_number == 3


def test_find_match_normalizes_leading_slash(loader):
    rule_file = loader.parse_lines(["/dist"], SOURCE)
    assert rule_file.match("/dist", True) is MatchResult.MATCH_IGNORE
    assert rule_file.find_match("/", True) is None
    assert rule_file.find_match("", False) is None


def test_directory_only_rule_in_file(loader):
    rule_file = loader.parse_lines(["build/"], SOURCE)
    assert rule_file.match("build", True) is MatchResult.MATCH_IGNORE
    assert rule_file.match("build", False) is MatchResult.NO_MATCH


def test_empty_rule_file_matches_nothing():
    rule_file = RuleFile(source=SOURCE)
    assert rule_file.match("anything", False) is MatchResult.NO_MATCH


def test_bad_lines_are_recorded_and_skipped(loader):
    rule_file = loader.parse_lines(["*.log", "!", "*.tmp"], SOURCE)

    assert [r.original_text for r in rule_file.rules] == ["*.log", "*.tmp"]
    assert not rule_file.is_valid
    assert len(rule_file.errors) == 1
    assert rule_file.errors[0].line == 2
    assert rule_file.errors[0].pattern == "!"


def test_pattern_warnings(loader):
    rule_file = loader.parse_lines(["*", "!*", "foo\\"], SOURCE)

    warned = {(w.line, w.pattern) for w in rule_file.warnings}
    assert (1, "*") in warned
    assert (3, "foo\\") in warned
    # Negated broad patterns re-include things and are not flagged
    assert all(w.line != 2 for w in rule_file.warnings)


def test_too_many_patterns_are_truncated():
    loader = IgnoreFileLoader(IgnoreConfig(max_patterns_per_file=2))
    rule_file = loader.parse_lines(["a", "b", "c"], SOURCE)

    assert [r.pattern for r in rule_file.rules] == ["a", "b"]
    assert any("Too many patterns" in e.message for e in rule_file.errors)


def test_load_file(tmp_path, loader):
    path = tmp_path / ".gitignore"
    path.write_text("*.pyc\n__pycache__/\n", encoding='utf-8')

    rule_file = loader.load_file(path)
    assert rule_file.source == path
    assert len(rule_file.rules) == 2
    assert rule_file.match("pkg/__pycache__", True) is MatchResult.MATCH_IGNORE


def test_load_file_handles_crlf(tmp_path, loader):
    path = tmp_path / ".gitignore"
    path.write_bytes(b"*.log\r\n!keep.log\r\n")

    rule_file = loader.load_file(path)
    assert [r.original_text for r in rule_file.rules] == ["*.log", "!keep.log"]


def test_missing_file_contributes_no_rules(tmp_path, loader):
    rule_file = loader.load_file(tmp_path / ".gitignore")
    assert rule_file.rules == ()
    assert "Error reading file" in rule_file.errors[0].message


def test_undecodable_comment_keeps_other_rules(tmp_path, loader):
    path = tmp_path / ".gitignore"
    path.write_bytes(b"# caf\xe9 notes\n*.log\n")

    rule_file = loader.load_file(path)
    assert [r.original_text for r in rule_file.rules] == ["*.log"]
    assert rule_file.is_valid
    assert rule_file.warnings[0].line == 0
    assert "Undecodable bytes replaced" in rule_file.warnings[0].message
    assert rule_file.match("app.log", False) is MatchResult.MATCH_IGNORE


def test_undecodable_pattern_line_is_skipped(tmp_path, loader):
    path = tmp_path / ".gitignore"
    path.write_bytes(b"*.log\nbad\xe9.txt\n*.tmp\n")

    rule_file = loader.load_file(path)
    assert [r.original_text for r in rule_file.rules] == ["*.log", "*.tmp"]
    assert [(e.line, e.message) for e in rule_file.errors] == [(2, "Undecodable bytes in pattern")]


def test_byte_order_mark_is_stripped(tmp_path, loader):
    path = tmp_path / ".gitignore"
    path.write_bytes("*.log\n!keep.log\n".encode("utf-8-sig"))

    rule_file = loader.load_file(path)
    assert rule_file.rules[0].pattern == "*.log"
    assert rule_file.match("app.log", False) is MatchResult.MATCH_IGNORE
    assert rule_file.match("keep.log", False) is MatchResult.MATCH_NEGATE


def test_oversized_file_contributes_no_rules(tmp_path):
    path = tmp_path / ".gitignore"
    path.write_text("*.log\n" * 10, encoding='utf-8')

    loader = IgnoreFileLoader(IgnoreConfig(max_file_size=16))
    rule_file = loader.load_file(path)
    assert rule_file.rules == ()
    assert "File too large" in rule_file.errors[0].message


def test_custom_rule_filename():
    loader = IgnoreFileLoader(IgnoreConfig(ignore_filename=".exportignore"))
    assert loader.ignore_filename == ".exportignore"
    assert loader.rule_file_path(Path("/project")) == Path("/project/.exportignore")
