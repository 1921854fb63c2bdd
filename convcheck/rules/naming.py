"""Naming conventions for declarations and identifiers."""

from __future__ import annotations

import re
from typing import Iterator, List

from convcheck.result import Finding
from convcheck.severity import Severity
from convcheck.syntax import NodeKind, SyntaxNode, SyntaxTree

from . import ConventionRule, Rule

GETTER_PATTERN = re.compile(r"^[Gg]et(?=[A-Z])")
WORD_PATTERN = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z0-9]+|[A-Z]+")
FUNCTION_DECL_KINDS = {"func", "method"}
RECEIVER_NAMES_TO_AVOID = {"this", "self", "me"}

INITIALISMS = frozenset(
    {
        "ACL", "API", "ASCII", "CPU", "CSS", "DNS", "EOF", "GUID", "HTML", "HTTP",
        "HTTPS", "ID", "IP", "JSON", "LHS", "QPS", "RAM", "RHS", "RPC", "SLA",
        "SMTP", "SQL", "SSH", "TCP", "TLS", "TTL", "UDP", "UI", "UID", "UUID",
        "URI", "URL", "UTF8", "VM", "XML", "XMPP", "XSRF", "XSS",
    }
)


def split_words(identifier: str) -> List[str]:
    """Split a mixedCaps identifier into its words.

    ``"parseHTTPUrl"`` becomes ``["parse", "HTTP", "Url"]``.
    """

    return WORD_PATTERN.findall(identifier)


class GetterPrefixRule(ConventionRule):
    """Exported getters are named after the field, without a ``Get`` prefix."""

    id = "naming.getter-prefix"
    title = "Getter uses Get prefix"
    recommendation = "Name the getter after the value it returns, e.g. Owner() instead of GetOwner()."
    default_severity = Severity.WARNING
    kinds = frozenset({NodeKind.DECLARATION})

    def applies_to(self, node: SyntaxNode) -> bool:
        return node.get("declKind", "func") in FUNCTION_DECL_KINDS and node.get("exported") is True

    def evaluate(self, node: SyntaxNode, tree: SyntaxTree) -> Iterator[Finding]:
        if not GETTER_PATTERN.match(node.name):
            return
        params = node.get("params")
        if isinstance(params, (list, tuple)) and params:
            return
        if isinstance(params, int) and params > 0:
            return
        yield self.finding(node, "exported getter should not use Get prefix.")


class InitialismCaseRule(ConventionRule):
    """Initialisms keep a consistent case: ``URL`` or ``url``, never ``Url``."""

    id = "naming.initialism-case"
    title = "Initialism with mixed case"
    recommendation = "Write initialisms in a consistent case, e.g. ServeHTTP, userID, urlPath."
    default_severity = Severity.WARNING
    kinds = frozenset({NodeKind.IDENTIFIER})

    def applies_to(self, node: SyntaxNode) -> bool:
        return bool(node.name)

    def evaluate(self, node: SyntaxNode, tree: SyntaxTree) -> Iterator[Finding]:
        name = node.name
        for word in split_words(name):
            upper = word.upper()
            if upper in INITIALISMS and word != upper and word[0].isupper():
                yield self.finding(node, f'initialism "{word}" in "{name}" should be "{upper}".')


class ReceiverNameRule(ConventionRule):
    """Method receivers get a short name reflecting the type, not a generic one."""

    id = "naming.receiver-name"
    title = "Generic receiver name"
    recommendation = "Use a one or two letter abbreviation of the receiver type, e.g. c for Client."
    default_severity = Severity.INFO
    kinds = frozenset({NodeKind.DECLARATION})

    def applies_to(self, node: SyntaxNode) -> bool:
        return node.get("declKind") == "method"

    def evaluate(self, node: SyntaxNode, tree: SyntaxTree) -> Iterator[Finding]:
        receiver = node.get("receiverName")
        if not isinstance(receiver, str):
            return
        if receiver in RECEIVER_NAMES_TO_AVOID:
            yield self.finding(node, f'receiver name "{receiver}" should be an abbreviation of its type.')


def get_rules() -> list[Rule]:
    return [GetterPrefixRule(), InitialismCaseRule(), ReceiverNameRule()]
