"""Decide whether a candidate finding is silenced by a directive.

Two sources of directives exist:

* inline markers in comment nodes, ``// convcheck:ignore`` (every rule) or
  ``// convcheck:ignore naming.getter-prefix, errors.string-format``, which
  cover the smallest declaration enclosing the comment, or the declaration
  that follows it when the comment sits outside any declaration (a directive
  with neither is ignored);
* configuration exclusions, a path glob with an optional rule id.

Matching is OR-combined across all directives: once any directive matches,
the finding is suppressed and nothing can revert that.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import PurePosixPath
from typing import FrozenSet, Iterable, List, Optional, Tuple, Union

from .config import Configuration, PathExclusion
from .result import Finding
from .syntax import NodeKind, Span, SyntaxNode, SyntaxTree

logger = logging.getLogger(__name__)

DIRECTIVE_TOKEN = "convcheck:ignore"
DIRECTIVE_PATTERN = re.compile(
    re.escape(DIRECTIVE_TOKEN) + r"(?![\w.-])(?:[ \t]+(?P<rules>[\w.-]+(?:[ \t]*,[ \t]*[\w.-]+)*))?"
)


@dataclass(frozen=True)
class InlineDirective:
    """A marker found in a comment, anchored to the span it covers."""

    scope: Span
    rule_ids: FrozenSet[str] = frozenset()
    comment: Optional[Span] = None

    @property
    def wildcard(self) -> bool:
        return not self.rule_ids

    def matches(self, finding: Finding) -> bool:
        if not self.scope.contains(finding.span):
            return False
        return self.wildcard or finding.rule_id in self.rule_ids


Directive = Union[InlineDirective, PathExclusion]


def path_matches(path: str, pattern: str) -> bool:
    """Match ``path`` against a glob, either whole or as a trailing segment."""

    posix = path.replace("\\", "/")
    if fnmatchcase(posix, pattern):
        return True
    try:
        return PurePosixPath(posix).match(pattern)
    except ValueError:
        return False


def exclusion_matches(exclusion: PathExclusion, finding: Finding, path: str) -> bool:
    if exclusion.rule_id is not None and exclusion.rule_id != finding.rule_id:
        return False
    return path_matches(path, exclusion.pattern)


def is_suppressed(finding: Finding, directives: Iterable[Directive], path: str) -> bool:
    """Return ``True`` when any directive covers ``finding`` in file ``path``."""

    for directive in directives:
        if isinstance(directive, InlineDirective):
            if directive.matches(finding):
                return True
        elif exclusion_matches(directive, finding, path):
            return True
    return False


def parse_directive(text: str) -> Optional[FrozenSet[str]]:
    """Return the rule ids named by a comment's directive.

    ``None`` means the comment carries no directive; an empty set means a
    wildcard directive.
    """

    match = DIRECTIVE_PATTERN.search(text)
    if match is None:
        return None
    rules = match.group("rules")
    if not rules:
        return frozenset()
    return frozenset(part.strip() for part in rules.split(",") if part.strip())


def anchor_for(comment: SyntaxNode, tree: SyntaxTree) -> Optional[SyntaxNode]:
    """Return the node whose span an inline directive in ``comment`` covers.

    ``None`` means the comment neither sits inside a declaration nor precedes
    one, so the directive has nothing to cover.
    """

    enclosing = tree.enclosing(comment, NodeKind.DECLARATION)
    if enclosing is not None:
        return enclosing
    parent = comment.parent
    if parent is not None:
        for sibling in parent.children:
            if sibling.kind is NodeKind.DECLARATION and sibling.span.start.offset >= comment.span.end.offset:
                return sibling
    return None


def collect_inline_directives(tree: SyntaxTree) -> Tuple[InlineDirective, ...]:
    directives: List[InlineDirective] = []
    for node in tree.nodes_of_kind(NodeKind.COMMENT):
        text = node.get("text")
        if not isinstance(text, str):
            continue
        rule_ids = parse_directive(text)
        if rule_ids is None:
            continue
        anchor = anchor_for(node, tree)
        if anchor is None:
            logger.warning(
                "Ignoring %s directive at %s in %s: no declaration to cover",
                DIRECTIVE_TOKEN,
                node.span,
                tree.path,
            )
            continue
        directives.append(InlineDirective(scope=anchor.span, rule_ids=rule_ids, comment=node.span))
    return tuple(directives)


@dataclass(frozen=True)
class Suppressions:
    """All directives in force for one run over one file."""

    path: str
    inline: Tuple[InlineDirective, ...] = ()
    exclusions: Tuple[PathExclusion, ...] = ()

    @classmethod
    def from_tree(cls, tree: SyntaxTree, config: Optional[Configuration] = None) -> "Suppressions":
        exclusions = config.all_exclusions() if config is not None else ()
        return cls(path=tree.path, inline=collect_inline_directives(tree), exclusions=exclusions)

    @property
    def directives(self) -> Tuple[Directive, ...]:
        return self.inline + self.exclusions

    def is_suppressed(self, finding: Finding) -> bool:
        return is_suppressed(finding, self.directives, self.path)
