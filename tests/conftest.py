"""
Shared fixtures for the ignore engine tests
"""

from pathlib import Path
from typing import Dict, Optional

import pytest


@pytest.fixture
def make_tree(tmp_path):
    """
    Build a file tree under tmp_path

    Takes a mapping of relative path to file content. A value of None
    creates a directory instead of a file. Returns the tree root.
    """
    def _make(entries: Dict[str, Optional[str]]) -> Path:
        for rel, content in entries.items():
            target = tmp_path / rel
            if content is None:
                target.mkdir(parents=True, exist_ok=True)
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding='utf-8')
        return tmp_path

    return _make
