#!/usr/bin/env python3
"""
Tests for the IgnoreManager API
"""

import pytest

from exportignore.ignore import IgnoreConfig, IgnoreManager, MatchResult, RuleCache


def test_is_directory_is_looked_up_on_disk(make_tree):
    root = make_tree({
        ".gitignore": "build/\n",
        "build/out.o": "",
        "docs/build": "a file named build",
    })
    manager = IgnoreManager(root)

    assert manager.is_ignored("build")
    assert manager.is_ignored("build/out.o")
    assert not manager.is_ignored("docs/build")
    # Explicit is_directory wins over the disk
    assert manager.is_ignored("docs/build", is_directory=True)


def test_explicit_paths(make_tree):
    root = make_tree({
        ".gitignore": "*.tmp\n",
        "sub/important.tmp": "",
        "sub/other.tmp": "",
    })
    manager = IgnoreManager(root, explicit_paths=["sub/important.tmp"])

    assert not manager.is_ignored("sub/important.tmp")
    assert manager.is_ignored("sub/other.tmp")
    assert manager.is_ignored_detailed("sub/important.tmp") is MatchResult.MATCH_NEGATE
    assert manager.explain("sub/important.tmp").explicit


def test_notify_file_changed(make_tree):
    root = make_tree({".gitignore": "*.log\n"})
    manager = IgnoreManager(root)
    assert manager.is_ignored("a.log", is_directory=False)

    (root / ".gitignore").write_text("*.tmp\n", encoding='utf-8')
    assert manager.notify_file_changed(root / ".gitignore")

    assert not manager.is_ignored("a.log", is_directory=False)
    assert manager.is_ignored("a.tmp", is_directory=False)


def test_notify_ignores_other_files(make_tree):
    root = make_tree({".gitignore": "*.log\n"})
    manager = IgnoreManager(root)

    assert not manager.notify_file_changed(root / "main.py")
    assert not manager.notify_file_moved(root / "a.py", root / "b.py")


def test_notify_file_created(make_tree):
    root = make_tree({"sub/a.tmp": ""})
    manager = IgnoreManager(root)
    assert not manager.is_ignored("sub/a.tmp")

    (root / "sub" / ".gitignore").write_text("*.tmp\n", encoding='utf-8')
    assert manager.notify_file_created(root / "sub" / ".gitignore")

    assert manager.is_ignored("sub/a.tmp")


def test_notify_file_deleted(make_tree):
    root = make_tree({"sub/.gitignore": "*.tmp\n", "sub/a.tmp": ""})
    manager = IgnoreManager(root)
    assert manager.is_ignored("sub/a.tmp")

    (root / "sub" / ".gitignore").unlink()
    assert manager.notify_file_deleted(root / "sub" / ".gitignore")

    assert not manager.is_ignored("sub/a.tmp")


def test_notify_file_moved(make_tree):
    root = make_tree({"a/.gitignore": "*.tmp\n", "a/x.tmp": "", "b/y.tmp": ""})
    manager = IgnoreManager(root)
    assert manager.is_ignored("a/x.tmp")
    assert not manager.is_ignored("b/y.tmp")

    (root / "a" / ".gitignore").rename(root / "b" / ".gitignore")
    assert manager.notify_file_moved(root / "a" / ".gitignore", root / "b" / ".gitignore")

    assert not manager.is_ignored("a/x.tmp")
    assert manager.is_ignored("b/y.tmp")


def test_clear_cache_forces_reparse(make_tree):
    root = make_tree({".gitignore": "*.log\n"})
    manager = IgnoreManager(root)
    manager.is_ignored("a.log", is_directory=False)
    assert manager.cache.parse_count == 1

    manager.clear_cache()
    manager.is_ignored("a.log", is_directory=False)
    assert manager.cache.parse_count == 2


def test_custom_rule_filename(make_tree):
    root = make_tree({".gitignore": "*.log\n", ".exportignore": "*.tmp\n"})
    manager = IgnoreManager(root, config=IgnoreConfig(ignore_filename=".exportignore"))

    assert manager.ignore_filename == ".exportignore"
    assert not manager.is_ignored("a.log", is_directory=False)
    assert manager.is_ignored("a.tmp", is_directory=False)


def test_cache_config_mismatch_is_rejected(tmp_path):
    with pytest.raises(ValueError):
        IgnoreManager(tmp_path, config=IgnoreConfig(ignore_filename=".exportignore"), cache=RuleCache())


def test_shared_cache(make_tree):
    root = make_tree({".gitignore": "*.log\n"})
    cache = RuleCache()

    IgnoreManager(root, cache=cache).is_ignored("a.log", is_directory=False)
    IgnoreManager(root, cache=cache).is_ignored("b.log", is_directory=False)

    assert cache.parse_count == 1


@pytest.mark.parametrize("content", [
    "*.log\n".encode("utf-8-sig"),
    b"# caf\xe9 notes\n*.log\n",
])
def test_rule_files_with_encoding_quirks(tmp_path, content):
    (tmp_path / ".gitignore").write_bytes(content)
    manager = IgnoreManager(tmp_path)

    assert manager.is_ignored("app.log", is_directory=False)
    assert not manager.is_ignored("app.txt", is_directory=False)


def test_get_rule_file(make_tree):
    root = make_tree({"sub/.gitignore": "*.tmp\n!keep.tmp\n"})
    manager = IgnoreManager(root)

    rule_file = manager.get_rule_file("sub")
    assert rule_file.source == root / "sub" / ".gitignore"
    assert len(rule_file.rules) == 2
    assert manager.get_rule_file(root) is None


def test_get_stats(make_tree):
    root = make_tree({".gitignore": "*.log\n"})
    manager = IgnoreManager(root, explicit_paths=["keep.log"])
    manager.is_ignored("a.log", is_directory=False)

    stats = manager.get_stats()
    assert stats['root_path'] == str(root)
    assert stats['ignore_filename'] == ".gitignore"
    assert stats['explicit_paths'] == 1
    assert stats['cache']['parses'] == 1
