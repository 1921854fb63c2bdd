import pytest

from convcheck.errors import DuplicateRuleID, RegistryFrozen
from convcheck.registry import RuleRegistry, build_default_registry
from convcheck.rules import ConventionRule, RuleScope
from convcheck.syntax import NodeKind


class StubRule(ConventionRule):
    def __init__(self, rule_id, kinds=(), exported_only=False):
        self.id = rule_id
        self.title = rule_id
        self.kinds = frozenset(kinds)
        self.exported_only = exported_only

    def applies_to(self, node):
        return not self.exported_only or node.get("exported") is True

    def evaluate(self, node, tree):
        return []


def test_duplicate_rule_id_is_rejected_and_first_kept():
    first = StubRule("naming.getter-prefix")
    registry = RuleRegistry([first])

    with pytest.raises(DuplicateRuleID) as excinfo:
        registry.register(StubRule("naming.getter-prefix"))

    assert excinfo.value.rule_id == "naming.getter-prefix"
    assert len(registry) == 1
    assert registry.get("naming.getter-prefix") is first


def test_rules_for_kind_keeps_registration_order():
    registry = RuleRegistry(
        [
            StubRule("z.last", kinds=[NodeKind.IDENTIFIER]),
            StubRule("a.any"),
            StubRule("m.decl", kinds=[NodeKind.DECLARATION]),
        ]
    ).freeze()

    identifier_rules = [rule.id for rule in registry.rules_for_kind(NodeKind.IDENTIFIER)]
    declaration_rules = [rule.id for rule in registry.rules_for_kind(NodeKind.DECLARATION)]

    assert identifier_rules == ["z.last", "a.any"]
    assert declaration_rules == ["a.any", "m.decl"]
    assert registry.rule_ids == ["z.last", "a.any", "m.decl"]


def test_applicable_rules_filters_by_predicate_and_scope(node, make_tree):
    registry = RuleRegistry(
        [
            StubRule("naming.exported", kinds=[NodeKind.DECLARATION], exported_only=True),
            StubRule("naming.all", kinds=[NodeKind.DECLARATION]),
        ]
    ).freeze()
    syntax_tree = make_tree(
        node("Declaration", 10, 20, name="Owner", exported=True),
        node("Declaration", 30, 40, name="owner", exported=False),
    )
    exported, unexported = syntax_tree.root.children

    assert [rule.id for rule in registry.applicable_rules(exported)] == ["naming.exported", "naming.all"]
    assert [rule.id for rule in registry.applicable_rules(unexported)] == ["naming.all"]
    assert registry.applicable_rules(exported, scope=RuleScope.TREE) == []


def test_frozen_registry_rejects_registration():
    registry = RuleRegistry([StubRule("a.rule")]).freeze()

    with pytest.raises(RegistryFrozen):
        registry.register(StubRule("b.rule"))

    assert registry.frozen
    assert "b.rule" not in registry


def test_default_registry_holds_builtin_rules():
    registry = build_default_registry()

    assert registry.frozen
    assert registry.rule_ids == [
        "naming.getter-prefix",
        "naming.initialism-case",
        "naming.receiver-name",
        "errors.string-format",
        "imports.duplicate",
    ]
