"""Rule registry: populated once at startup, then frozen and shared."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .errors import DuplicateRuleID, RegistryFrozen
from .rules import Rule, RuleScope, builtin_rules
from .syntax import NodeKind, SyntaxNode

logger = logging.getLogger(__name__)


class RuleRegistry:
    """Hold the registered rules and answer which of them apply to a node.

    Registration order is preserved; lookups return rules in that order with
    ties broken by rule id. After :meth:`freeze` the registry is read-only
    and may be shared by any number of concurrent runs.
    """

    def __init__(self, rules: Iterable[Rule] = ()) -> None:
        self._rules: Dict[str, Tuple[int, Rule]] = {}
        self._frozen = False
        self._by_kind: Dict[NodeKind, Tuple[Rule, ...]] = {}
        for rule in rules:
            self.register(rule)

    def register(self, rule: Rule) -> None:
        if self._frozen:
            raise RegistryFrozen(f"cannot register {rule.id!r}: registry is frozen")
        if not rule.id:
            raise ValueError(f"rule {rule!r} has no id")
        if rule.id in self._rules:
            raise DuplicateRuleID(rule.id)
        self._rules[rule.id] = (len(self._rules), rule)
        self._by_kind.clear()
        logger.debug("Registered rule %s", rule.id)

    def freeze(self) -> "RuleRegistry":
        self._frozen = True
        self._by_kind = {kind: self._collect(kind) for kind in NodeKind}
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def _ordered(self) -> List[Rule]:
        entries = sorted(self._rules.values(), key=lambda entry: (entry[0], entry[1].id))
        return [rule for _, rule in entries]

    def _collect(self, kind: NodeKind) -> Tuple[Rule, ...]:
        return tuple(rule for rule in self._ordered() if not rule.kinds or kind in rule.kinds)

    def rules_for_kind(self, kind: NodeKind) -> Tuple[Rule, ...]:
        """Return the rules dispatched on nodes of ``kind``."""

        cached = self._by_kind.get(kind)
        if cached is None:
            cached = self._collect(kind)
            if self._frozen:
                self._by_kind[kind] = cached
        return cached

    def applicable_rules(self, node: SyntaxNode, scope: Optional[RuleScope] = None) -> List[Rule]:
        """Return the rules whose kind and ``applies_to`` predicate match ``node``.

        A predicate that raises propagates; the engine guards each call
        itself so it can attribute the failure to the rule.
        """

        return [
            rule
            for rule in self.rules_for_kind(node.kind)
            if (scope is None or rule.scope is scope) and rule.applies_to(node)
        ]

    def get(self, rule_id: str) -> Optional[Rule]:
        entry = self._rules.get(rule_id)
        return entry[1] if entry else None

    @property
    def rule_ids(self) -> List[str]:
        return [rule.id for rule in self._ordered()]

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._ordered())

    def __len__(self) -> int:
        return len(self._rules)


def build_default_registry() -> RuleRegistry:
    """Return a frozen registry holding the built-in rules."""

    return RuleRegistry(builtin_rules()).freeze()
