"""Utility helpers for convcheck."""

from .fileio import read_yaml_file
from .trees import load_tree

__all__ = [
    "read_yaml_file",
    "load_tree",
]
