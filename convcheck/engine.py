"""Execution engine: walk one tree, dispatch rules, collect the report.

A run moves through ``IDLE -> TRAVERSING -> RULE_DISPATCH -> COLLECTING ->
DONE``. Every rule invocation is isolated: an exception inside a rule becomes
a :class:`~convcheck.result.RuleFault` in the report and the run carries on.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import replace
from enum import Enum
from typing import Iterable, Iterator, List, Optional, Protocol, Sequence, Tuple

from .config import Configuration
from .errors import EmptyRegistry
from .registry import RuleRegistry
from .result import Finding, FindingAggregator, Report, RuleFault
from .rules import Rule, RuleScope
from .suppression import Suppressions
from .severity import Severity
from .syntax import Span, SyntaxNode, SyntaxTree

logger = logging.getLogger(__name__)

NodeOutcome = Tuple[List[Finding], List[RuleFault]]


class EngineState(str, Enum):
    IDLE = "idle"
    TRAVERSING = "traversing"
    RULE_DISPATCH = "rule_dispatch"
    COLLECTING = "collecting"
    DONE = "done"


class CancellationSignal(Protocol):
    """Anything with ``is_set()``, for example :class:`threading.Event`."""

    def is_set(self) -> bool: ...


class Engine:
    """Run the rules of a frozen registry against syntax trees.

    The constructor validates the configuration against the registry, so a
    misconfigured engine never starts a run. One engine may serve many runs,
    including concurrent ones; all per-run state lives in :class:`AnalysisRun`.
    """

    def __init__(
        self,
        registry: RuleRegistry,
        config: Optional[Configuration] = None,
        workers: int = 1,
    ) -> None:
        if workers < 1:
            raise ValueError("workers must be at least 1")
        self.registry = registry
        self.config = config or Configuration()
        self.workers = workers

        if not registry.frozen:
            logger.debug("Freezing registry with %d rules", len(registry))
            registry.freeze()
        if len(registry) == 0:
            raise EmptyRegistry("no rules are registered")
        self.config.validate(registry)
        for rule_id in sorted(self.config.disabled_rules):
            if rule_id not in registry:
                logger.warning("Disabled rule %s is not registered", rule_id)
        if all(rule.id in self.config.disabled_rules for rule in registry):
            raise EmptyRegistry("every registered rule is disabled")

    def is_enabled(self, rule: Rule) -> bool:
        return rule.id not in self.config.disabled_rules

    def start(self, tree: SyntaxTree) -> "AnalysisRun":
        return AnalysisRun(self, tree)

    def run(self, tree: SyntaxTree, cancel: Optional[CancellationSignal] = None) -> Report:
        """Analyze ``tree`` and return its report."""

        return self.start(tree).execute(cancel)


class AnalysisRun:
    """State of a single analysis of one tree."""

    def __init__(self, engine: Engine, tree: SyntaxTree) -> None:
        self.engine = engine
        self.tree = tree
        self.state = EngineState.IDLE
        self.history: List[EngineState] = [EngineState.IDLE]
        self.visited = 0
        self._aggregator = FindingAggregator()
        self._suppressions: Optional[Suppressions] = None
        self._tree_rules = [
            rule for rule in engine.registry if rule.scope is RuleScope.TREE and engine.is_enabled(rule)
        ]

    def _enter(self, state: EngineState) -> None:
        if self.state is not state:
            self.state = state
            self.history.append(state)

    def execute(self, cancel: Optional[CancellationSignal] = None) -> Report:
        if self.state is not EngineState.IDLE:
            raise RuntimeError("an analysis run can only be executed once")
        tree = self.tree
        logger.debug("Analyzing %s (%d nodes, %d workers)", tree.path, len(tree), self.engine.workers)
        self._suppressions = Suppressions.from_tree(tree, self.engine.config)

        self._enter(EngineState.TRAVERSING)
        if self.engine.workers == 1:
            complete = self._traverse_inline(cancel)
        else:
            complete = self._traverse_parallel(cancel)

        if not complete:
            logger.info("Analysis of %s cancelled after %d nodes", tree.path, self.visited)
        self._enter(EngineState.DONE)
        report = self._aggregator.finalize(tree.path, complete=complete)
        logger.debug(
            "Finished %s: %d findings, %d suppressed, %d faults",
            tree.path,
            len(report.findings),
            report.suppressed_count,
            len(report.faults),
        )
        return report

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------
    def _traverse_inline(self, cancel: Optional[CancellationSignal]) -> bool:
        for node in self.tree.walk():
            if cancel is not None and cancel.is_set():
                return False
            self._enter(EngineState.RULE_DISPATCH)
            outcome = self.dispatch(node)
            self._collect(outcome)
            self._enter(EngineState.TRAVERSING)
        return True

    def _traverse_parallel(self, cancel: Optional[CancellationSignal]) -> bool:
        batch_size = self.engine.workers * 4
        with ThreadPoolExecutor(max_workers=self.engine.workers, thread_name_prefix="convcheck") as pool:
            for batch in _batched(self.tree.walk(), batch_size):
                self._enter(EngineState.RULE_DISPATCH)
                futures: List[Future[NodeOutcome]] = []
                cancelled = False
                for node in batch:
                    if cancel is not None and cancel.is_set():
                        cancelled = True
                        break
                    futures.append(pool.submit(self.dispatch, node))
                for future in futures:
                    self._collect(future.result())
                self._enter(EngineState.TRAVERSING)
                if cancelled:
                    return False
        return True

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------
    def dispatch(self, node: SyntaxNode) -> NodeOutcome:
        """Invoke every applicable rule on ``node``.

        Safe to call from worker threads: it reads only the immutable tree,
        registry and configuration.
        """

        findings: List[Finding] = []
        faults: List[RuleFault] = []
        engine = self.engine
        for rule in engine.registry.rules_for_kind(node.kind):
            if rule.scope is RuleScope.NODE and engine.is_enabled(rule):
                self._invoke(rule, node, findings, faults)
        if node is self.tree.root:
            for rule in self._tree_rules:
                self._invoke(rule, node, findings, faults)
        return findings, faults

    def _invoke(self, rule: Rule, node: SyntaxNode, findings: List[Finding], faults: List[RuleFault]) -> None:
        try:
            if not rule.applies_to(node):
                return
            candidates = list(rule.evaluate(node, self.tree) or ())
        except Exception as exc:  # a faulty rule must not abort the run
            faults.append(_fault(rule, node, type(exc).__name__, str(exc) or repr(exc)))
            return

        severity_for = self.engine.config.severity_for
        for candidate in candidates:
            try:
                problem = self._malformed(rule, candidate)
                if problem:
                    faults.append(_fault(rule, node, "MalformedFinding", problem))
                    continue
                severity = severity_for(rule.id, candidate.severity)
                if severity is not candidate.severity:
                    candidate = replace(candidate, severity=severity)
            except Exception as exc:  # checking a candidate must not abort the run either
                faults.append(_fault(rule, node, type(exc).__name__, str(exc) or repr(exc)))
                continue
            findings.append(candidate)

    def _malformed(self, rule: Rule, candidate: object) -> Optional[str]:
        if not isinstance(candidate, Finding):
            return f"expected a Finding, got {type(candidate).__name__}"
        if not isinstance(candidate.span, Span):
            return f"finding span must be a Span, got {type(candidate.span).__name__}"
        if not isinstance(candidate.severity, Severity):
            return f"finding severity must be a Severity, got {candidate.severity!r}"
        if candidate.rule_id != rule.id:
            return f"finding carries rule id {candidate.rule_id!r}"
        if not isinstance(candidate.message, str) or not candidate.message.strip():
            return "finding has an empty message"
        if not self.tree.span.contains(candidate.span):
            return f"finding span {candidate.span.start.offset}-{candidate.span.end.offset} lies outside the tree"
        if candidate.suppressed:
            return "rules must not mark findings as suppressed"
        return None

    # ------------------------------------------------------------------
    # Collection
    # ------------------------------------------------------------------
    def _collect(self, outcome: NodeOutcome) -> None:
        self._enter(EngineState.COLLECTING)
        findings, faults = outcome
        suppressions = self._suppressions
        for fault in faults:
            logger.warning(
                "Rule %s faulted on %s at %s: %s: %s",
                fault.rule_id,
                fault.node_kind,
                fault.span,
                fault.error_type,
                fault.detail,
            )
            self._aggregator.add_fault(fault)
        for finding in findings:
            if suppressions is not None and suppressions.is_suppressed(finding):
                finding = replace(finding, suppressed=True)
            self._aggregator.add(finding)
        self.visited += 1


def analyze(
    tree: SyntaxTree,
    registry: RuleRegistry,
    config: Optional[Configuration] = None,
    cancel: Optional[CancellationSignal] = None,
    workers: int = 1,
) -> Report:
    """Validate ``config`` against ``registry`` and analyze one tree."""

    return Engine(registry, config, workers=workers).run(tree, cancel)


def _fault(rule: Rule, node: SyntaxNode, error_type: str, detail: str) -> RuleFault:
    return RuleFault(
        rule_id=rule.id,
        node_kind=node.kind.value,
        span=node.span,
        error_type=error_type,
        detail=detail,
    )


def _batched(nodes: Iterable[SyntaxNode], size: int) -> Iterator[Sequence[SyntaxNode]]:
    batch: List[SyntaxNode] = []
    for node in nodes:
        batch.append(node)
        if len(batch) >= size:
            yield batch
            batch = []
    if batch:
        yield batch
