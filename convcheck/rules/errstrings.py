"""Error strings are lower-case fragments without trailing punctuation."""

from __future__ import annotations

from typing import Iterator

from convcheck.result import Finding
from convcheck.severity import Severity
from convcheck.syntax import NodeKind, SyntaxNode, SyntaxTree

from . import ConventionRule, Rule

TRAILING_PUNCTUATION = (".", "!", "?", ":")


class ErrorStringRule(ConventionRule):
    """Flag error messages that start capitalized or end with punctuation.

    The parser marks string literals passed to error constructors with the
    ``errorString`` attribute; other literals are never inspected.
    """

    id = "errors.string-format"
    title = "Error string formatting"
    recommendation = "Start error strings lower-case and drop trailing punctuation; they are often wrapped."
    default_severity = Severity.WARNING
    kinds = frozenset({NodeKind.LITERAL})

    def applies_to(self, node: SyntaxNode) -> bool:
        return node.get("errorString") is True and isinstance(node.get("value"), str)

    def evaluate(self, node: SyntaxNode, tree: SyntaxTree) -> Iterator[Finding]:
        text = node.get("value").strip()
        if not text:
            return
        first_word = text.split()[0]
        # acronyms and proper nouns such as "JSON" or "URL" keep their case
        if first_word[0].isupper() and not first_word.isupper():
            yield self.finding(node, "error strings should not be capitalized.")
        if text.endswith(TRAILING_PUNCTUATION):
            yield self.finding(node, "error strings should not end with punctuation.")


def get_rule() -> Rule:
    return ErrorStringRule()
