"""Load serialized syntax trees written by an external parser."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from convcheck.syntax import SyntaxTree

from .fileio import read_yaml_file


def load_tree(path: Path, source_path: Optional[str] = None) -> SyntaxTree | None:
    """Load a serialized syntax tree, or ``None`` when the file is missing.

    The tree's ``path`` (matched against exclusion globs) comes from
    ``source_path``, then the document's own ``path`` key, then the file name.
    """

    data = read_yaml_file(path)
    if data is None:
        return None
    if not isinstance(data, dict):
        raise ValueError(f"Syntax tree at {path} is not a mapping")
    return SyntaxTree.from_dict(data, path=source_path or data.get("path") or str(path))
