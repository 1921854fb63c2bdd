"""Rule contract shared by the engine and every convention check.

Rule authoring contract: ``evaluate`` must be pure. Given the same node and
tree it returns the same findings, keeps no state between calls and never
mutates the tree. The engine relies on this to dispatch rules from several
worker threads at once without locking.
"""

from __future__ import annotations

from enum import Enum
from typing import FrozenSet, Iterable, Protocol

from convcheck.result import Finding
from convcheck.severity import Severity
from convcheck.syntax import NodeKind, SyntaxNode, SyntaxTree


class RuleScope(str, Enum):
    """How often the engine invokes a rule for one tree."""

    NODE = "node"
    TREE = "tree"


class Rule(Protocol):
    """Protocol implemented by all rule evaluators."""

    id: str
    title: str
    default_severity: Severity
    kinds: FrozenSet[NodeKind]
    scope: RuleScope

    def applies_to(self, node: SyntaxNode) -> bool:
        """Return ``True`` when ``node`` is worth evaluating."""

    def evaluate(self, node: SyntaxNode, tree: SyntaxTree) -> Iterable[Finding]:
        """Return the candidate findings for ``node``."""


class ConventionRule:
    """Convenience base for rules; subclasses set the class attributes."""

    id = ""
    title = ""
    recommendation = ""
    default_severity = Severity.WARNING
    kinds: FrozenSet[NodeKind] = frozenset()
    scope = RuleScope.NODE

    def applies_to(self, node: SyntaxNode) -> bool:
        return True

    def evaluate(self, node: SyntaxNode, tree: SyntaxTree) -> Iterable[Finding]:
        raise NotImplementedError

    def finding(self, node: SyntaxNode, message: str) -> Finding:
        """Build a candidate finding located at ``node``."""

        return Finding(
            rule_id=self.id,
            severity=self.default_severity,
            span=node.span,
            message=message,
            title=self.title,
            recommendation=self.recommendation,
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.id}>"


def builtin_rules() -> list[Rule]:
    """Return fresh instances of the rules shipped with convcheck."""

    from . import errstrings, imports, naming

    return [*naming.get_rules(), errstrings.get_rule(), imports.get_rule()]


__all__ = ["ConventionRule", "Rule", "RuleScope", "builtin_rules"]
