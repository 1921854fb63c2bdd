import pytest

from convcheck.syntax import NodeKind, Position, Span, SyntaxNode, SyntaxTree


@pytest.fixture
def sample_tree(node, make_tree):
    return make_tree(
        node("Import", 10, 20, path="fmt"),
        node(
            "Declaration",
            30,
            90,
            node("Identifier", 35, 40, name="Owner"),
            node("Block", 45, 89, node("Literal", 50, 60, value="x")),
            name="Owner",
        ),
    )


def test_walk_is_preorder(sample_tree):
    kinds = [item.kind for item in sample_tree.walk()]

    assert kinds == [
        NodeKind.FILE,
        NodeKind.IMPORT,
        NodeKind.DECLARATION,
        NodeKind.IDENTIFIER,
        NodeKind.BLOCK,
        NodeKind.LITERAL,
    ]


def test_walk_can_be_restarted(sample_tree):
    first = [item.span for item in sample_tree]
    second = [item.span for item in sample_tree]

    assert first == second
    assert len(sample_tree) == 6


def test_parent_links_and_enclosing_lookup(sample_tree):
    literal = next(sample_tree.nodes_of_kind(NodeKind.LITERAL))

    ancestors = [item.kind for item in sample_tree.ancestors(literal)]
    declaration = sample_tree.enclosing(literal, NodeKind.DECLARATION)

    assert ancestors == [NodeKind.BLOCK, NodeKind.DECLARATION, NodeKind.FILE]
    assert declaration.name == "Owner"
    assert sample_tree.enclosing(literal, NodeKind.IMPORT) is None
    assert sample_tree.root.parent is None


def test_span_containment(sample_tree):
    declaration = sample_tree.root.children[1]
    identifier = declaration.children[0]
    imported = sample_tree.root.children[0]

    assert sample_tree.contains(declaration, identifier)
    assert not sample_tree.contains(declaration, imported)
    assert Span(Position(1, 0, 0), Position(1, 5, 5)).contains(Span(Position(1, 5, 5), Position(1, 5, 5)))


def test_attributes_are_read_only(sample_tree):
    declaration = sample_tree.root.children[1]

    with pytest.raises(TypeError):
        declaration.attributes["name"] = "Other"

    assert declaration.get("name") == "Owner"
    assert declaration.get("missing", "fallback") == "fallback"


def test_child_outside_parent_span_is_rejected(node):
    data = node("File", 0, 50, node("Declaration", 40, 60))

    with pytest.raises(ValueError, match="outside its parent"):
        SyntaxTree.from_dict(data)


def test_unknown_kind_is_rejected(span):
    with pytest.raises(ValueError, match="unknown node kind"):
        SyntaxTree.from_dict({"kind": "Banana", "span": span(0, 1)})


def test_node_cannot_be_adopted_twice():
    child = SyntaxNode(NodeKind.IDENTIFIER, Span(Position(1, 1, 1), Position(1, 2, 2)))
    parent = SyntaxNode(NodeKind.DECLARATION, Span(Position(1, 0, 0), Position(1, 3, 3)), children=[child])

    with pytest.raises(ValueError, match="already belongs"):
        SyntaxNode(NodeKind.BLOCK, Span(Position(1, 0, 0), Position(1, 3, 3)), children=[child])
    assert child.parent is parent


def test_from_dict_reads_path_and_root_keys(node):
    data = {"path": "svc/main.go", "root": node("File", 0, 10)}

    syntax_tree = SyntaxTree.from_dict(data)

    assert syntax_tree.path == "svc/main.go"
    assert syntax_tree.root.kind is NodeKind.FILE
    assert SyntaxTree.from_dict(data, path="other.go").path == "other.go"
