"""Import hygiene checks that need the whole file at once."""

from __future__ import annotations

from typing import Dict, Iterator

from convcheck.result import Finding
from convcheck.severity import Severity
from convcheck.syntax import NodeKind, SyntaxNode, SyntaxTree

from . import ConventionRule, Rule, RuleScope


class DuplicateImportRule(ConventionRule):
    """Each package is imported once per file.

    Runs once per tree on the root and reports every repeat after the
    first import of a path.
    """

    id = "imports.duplicate"
    title = "Package imported twice"
    recommendation = "Remove the repeated import and refer to the package through a single name."
    default_severity = Severity.ERROR
    kinds = frozenset({NodeKind.FILE})
    scope = RuleScope.TREE

    def evaluate(self, node: SyntaxNode, tree: SyntaxTree) -> Iterator[Finding]:
        seen: Dict[str, SyntaxNode] = {}
        for candidate in tree.nodes_of_kind(NodeKind.IMPORT):
            path = candidate.get("path")
            if not isinstance(path, str) or not path:
                continue
            if path in seen:
                yield self.finding(candidate, f'package "{path}" is imported more than once.')
            else:
                seen[path] = candidate


def get_rule() -> Rule:
    return DuplicateImportRule()
