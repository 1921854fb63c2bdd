"""Shared fixtures for building small syntax trees.

Every node sits on line 1 and its column equals its byte offset, which keeps
the spans in the tests readable.
"""

import pytest

from convcheck.syntax import SyntaxTree


def _span(start, end, line=1):
    return {"start": [line, start, start], "end": [line, end, end]}


def _node(kind, start, end, *children, **attributes):
    return {
        "kind": kind,
        "span": _span(start, end),
        "attributes": attributes,
        "children": list(children),
    }


def _tree(*children, path="pkg/owner.go", end=1000):
    return SyntaxTree.from_dict(_node("File", 0, end, *children), path=path)


@pytest.fixture
def span():
    """Build a serialized span on line 1."""

    return _span


@pytest.fixture
def node():
    """Build a serialized node: ``node(kind, start, end, *children, **attributes)``."""

    return _node


@pytest.fixture
def make_tree():
    """Wrap serialized nodes in a File root and load them as a tree."""

    return _tree


@pytest.fixture
def getter_tree():
    """File with one exported function named ``getOwner``."""

    return _tree(
        _node(
            "Declaration",
            100,
            200,
            _node("Identifier", 105, 113, name="getOwner"),
            name="getOwner",
            declKind="func",
            exported=True,
        )
    )
