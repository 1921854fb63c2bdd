"""Read-only, language-agnostic syntax tree that rules query.

Trees are produced by an external parser, either directly through the
constructors below or through :meth:`SyntaxTree.from_dict` from the plain
mapping form a parser can serialize to YAML or JSON::

    kind: File
    span: {start: [1, 0, 0], end: [12, 0, 240]}
    attributes: {package: owners}
    children:
      - kind: Declaration
        span: {start: [3, 0, 20], end: [5, 1, 80]}
        attributes: {name: GetOwner, declKind: func, exported: true}

Once built, a tree never changes. Children are owned by their parent; the
parent link on a child is a weak reference used only for upward lookups.
"""

from __future__ import annotations

import weakref
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional, Sequence


class NodeKind(str, Enum):
    """Enumerate the syntactic categories rules dispatch on."""

    FILE = "File"
    DECLARATION = "Declaration"
    IMPORT = "Import"
    FUNCTION_LITERAL = "FunctionLiteral"
    STRUCT_LITERAL = "StructLiteral"
    IDENTIFIER = "Identifier"
    COMMENT = "Comment"
    LITERAL = "Literal"
    CALL = "Call"
    BLOCK = "Block"
    OTHER = "Other"

    @classmethod
    def parse(cls, value: str) -> "NodeKind":
        for member in cls:
            if value in (member.value, member.name):
                return member
        raise ValueError(f"unknown node kind {value!r}")


@dataclass(frozen=True, order=True)
class Position:
    """A point in the source: 1-based line, 0-based column, byte offset."""

    line: int
    column: int
    offset: int

    @classmethod
    def from_value(cls, value: Any) -> "Position":
        if isinstance(value, Mapping):
            return cls(int(value["line"]), int(value["column"]), int(value["offset"]))
        if isinstance(value, (list, tuple)) and len(value) == 3:
            return cls(int(value[0]), int(value[1]), int(value[2]))
        raise ValueError(f"cannot read position from {value!r}")

    def to_dict(self) -> dict[str, int]:
        return {"line": self.line, "column": self.column, "offset": self.offset}


@dataclass(frozen=True, order=True)
class Span:
    """Half-open source range ``[start, end)`` measured in byte offsets."""

    start: Position
    end: Position

    def __post_init__(self) -> None:
        if self.end.offset < self.start.offset:
            raise ValueError(f"span ends before it starts: {self.start.offset} > {self.end.offset}")

    @classmethod
    def from_value(cls, value: Any) -> "Span":
        if not isinstance(value, Mapping):
            raise ValueError(f"cannot read span from {value!r}")
        return cls(Position.from_value(value["start"]), Position.from_value(value["end"]))

    def contains(self, other: "Span") -> bool:
        """Return ``True`` when ``other`` lies entirely within this span."""

        return self.start.offset <= other.start.offset and other.end.offset <= self.end.offset

    def to_dict(self) -> dict[str, dict[str, int]]:
        return {"start": self.start.to_dict(), "end": self.end.to_dict()}

    def __str__(self) -> str:
        return f"{self.start.line}:{self.start.column}"


class SyntaxNode:
    """A single node of the syntax tree.

    ``children`` and ``attributes`` are exposed as immutable views, so lookups
    are constant time and rules cannot alter what other rules see.
    """

    __slots__ = ("kind", "span", "_children", "_attributes", "_parent", "__weakref__")

    def __init__(
        self,
        kind: NodeKind,
        span: Span,
        attributes: Optional[Mapping[str, Any]] = None,
        children: Sequence["SyntaxNode"] = (),
    ) -> None:
        self.kind = kind
        self.span = span
        self._attributes = MappingProxyType(dict(attributes or {}))
        self._children = tuple(children)
        self._parent: Optional[weakref.ReferenceType[SyntaxNode]] = None
        for child in self._children:
            if child._parent is not None:
                raise ValueError(f"{child!r} already belongs to another node")
            if not span.contains(child.span):
                raise ValueError(f"{child!r} extends outside its parent {self!r}")
            child._parent = weakref.ref(self)

    @property
    def children(self) -> tuple["SyntaxNode", ...]:
        return self._children

    @property
    def attributes(self) -> Mapping[str, Any]:
        return self._attributes

    @property
    def parent(self) -> Optional["SyntaxNode"]:
        if self._parent is None:
            return None
        return self._parent()

    @property
    def name(self) -> str:
        """Shortcut for the ``name`` attribute, empty when absent."""

        value = self._attributes.get("name")
        return value if isinstance(value, str) else ""

    def get(self, attribute: str, default: Any = None) -> Any:
        return self._attributes.get(attribute, default)

    def __repr__(self) -> str:
        label = f" {self.name}" if self.name else ""
        return f"<{self.kind.value}{label} @{self.span}>"


class SyntaxTree:
    """One parsed compilation unit: a single root node plus its file path."""

    def __init__(self, root: SyntaxNode, path: str = "<memory>") -> None:
        if root.parent is not None:
            raise ValueError("tree root must not have a parent")
        self.root = root
        self.path = path
        self._size: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], path: Optional[str] = None) -> "SyntaxTree":
        """Build a tree from its serialized mapping form.

        ``path`` overrides a top-level ``path`` key when both are present.
        Raises ``ValueError`` when the mapping is not a well-formed tree.
        """

        if not isinstance(data, Mapping):
            raise ValueError("syntax tree must be a mapping")
        tree_path = path or str(data.get("path") or "<memory>")
        node_data = data.get("root", data)
        return cls(_build_node(node_data, "root"), path=tree_path)

    def walk(self) -> Iterator[SyntaxNode]:
        """Yield every node depth-first, pre-order.

        Each call returns a fresh iterator, so traversal can be restarted.
        """

        stack = [self.root]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def __iter__(self) -> Iterator[SyntaxNode]:
        return self.walk()

    def __len__(self) -> int:
        if self._size is None:
            self._size = sum(1 for _ in self.walk())
        return self._size

    @property
    def span(self) -> Span:
        return self.root.span

    def contains(self, outer: SyntaxNode, inner: SyntaxNode) -> bool:
        return outer.span.contains(inner.span)

    def ancestors(self, node: SyntaxNode) -> Iterator[SyntaxNode]:
        """Yield the parents of ``node`` from nearest to the root."""

        current = node.parent
        while current is not None:
            yield current
            current = current.parent

    def enclosing(self, node: SyntaxNode, kind: NodeKind) -> Optional[SyntaxNode]:
        """Return the nearest ancestor of the given kind, if any."""

        for ancestor in self.ancestors(node):
            if ancestor.kind is kind:
                return ancestor
        return None

    def nodes_of_kind(self, kind: NodeKind) -> Iterator[SyntaxNode]:
        return (node for node in self.walk() if node.kind is kind)


def _build_node(data: Any, where: str) -> SyntaxNode:
    if not isinstance(data, Mapping):
        raise ValueError(f"{where}: node must be a mapping")
    try:
        kind = NodeKind.parse(str(data["kind"]))
        span = Span.from_value(data["span"])
    except KeyError as exc:
        raise ValueError(f"{where}: missing {exc.args[0]!r}") from None
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{where}: {exc}") from None

    attributes = data.get("attributes") or {}
    if not isinstance(attributes, Mapping):
        raise ValueError(f"{where}: attributes must be a mapping")
    raw_children = data.get("children") or []
    if not isinstance(raw_children, list):
        raise ValueError(f"{where}: children must be a list")

    children = [_build_node(child, f"{where}.children[{idx}]") for idx, child in enumerate(raw_children)]
    try:
        return SyntaxNode(kind, span, attributes, children)
    except ValueError as exc:
        raise ValueError(f"{where}: {exc}") from None
