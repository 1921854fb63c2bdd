"""Core result data structures: findings, faults, aggregation and reports."""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional, Sequence, Tuple

from .severity import Severity
from .syntax import Span

SEVERITY_ORDER: Sequence[Severity] = (
    Severity.ERROR,
    Severity.WARNING,
    Severity.INFO,
)


@dataclass(frozen=True)
class Finding:
    """A single violation of one rule at one location.

    The span is a copied value, so a finding stays valid after its tree is
    discarded.
    """

    rule_id: str
    severity: Severity
    span: Span
    message: str
    title: str = ""
    recommendation: str = ""
    suppressed: bool = False

    @property
    def dedup_key(self) -> Tuple[str, Span, str]:
        return (self.rule_id, self.span, self.message)

    @property
    def sort_key(self) -> Tuple[int, str, int, str]:
        return (self.span.start.offset, self.rule_id, self.span.end.offset, self.message)

    def to_dict(self) -> Dict[str, object]:
        data = asdict(self)
        data["severity"] = self.severity.value
        data["span"] = self.span.to_dict()
        return data


@dataclass(frozen=True)
class RuleFault:
    """An internal failure of one rule invocation, distinct from a finding."""

    rule_id: str
    node_kind: str
    span: Optional[Span]
    error_type: str
    detail: str

    @property
    def sort_key(self) -> Tuple[int, str, str, str]:
        offset = self.span.start.offset if self.span is not None else -1
        return (offset, self.rule_id, self.error_type, self.detail)

    def to_dict(self) -> Dict[str, object]:
        data = asdict(self)
        data["span"] = self.span.to_dict() if self.span is not None else None
        return data


@dataclass
class Summary:
    """Aggregate finding counts by severity."""

    error: int = 0
    warning: int = 0
    info: int = 0

    def increment(self, severity: Severity) -> None:
        attr = severity.value.lower()
        setattr(self, attr, getattr(self, attr) + 1)

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)

    def as_rows(self) -> List[Tuple[str, int]]:
        """Return severity/count pairs ordered for reporting."""

        return [(severity.value, getattr(self, severity.value.lower())) for severity in SEVERITY_ORDER]

    @property
    def total(self) -> int:
        return sum(getattr(self, severity.value.lower()) for severity in SEVERITY_ORDER)


@dataclass(frozen=True)
class Report:
    """Outcome of one analysis run, owned by the caller once returned."""

    path: str
    findings: Tuple[Finding, ...] = ()
    suppressed_count: int = 0
    faults: Tuple[RuleFault, ...] = ()
    complete: bool = True
    summary: Summary = field(default_factory=Summary)

    @property
    def passed(self) -> bool:
        return self.complete and not self.faults and self.summary.error == 0

    def exit_code(self) -> int:
        if self.faults:
            return Severity.ERROR.exit_priority
        return max((finding.severity.exit_priority for finding in self.findings), default=0)

    def to_dict(self) -> Dict[str, object]:
        return {
            "path": self.path,
            "summary": self.summary.to_dict(),
            "findings": [finding.to_dict() for finding in self.findings],
            "suppressed": self.suppressed_count,
            "faults": [fault.to_dict() for fault in self.faults],
            "complete": self.complete,
            "passed": self.passed,
        }


class FindingAggregator:
    """Collect findings for one run and finalize them into a :class:`Report`.

    Suppressed findings are counted and dropped, exact duplicates (same rule,
    span and message) are kept once, and the survivors are ordered by start
    offset then rule id so the report does not depend on traversal order.
    """

    def __init__(self) -> None:
        self._findings: Dict[Tuple[str, Span, str], Finding] = {}
        self._suppressed: set[Tuple[str, Span, str]] = set()
        self._faults: List[RuleFault] = []

    def add(self, finding: Finding) -> None:
        if finding.suppressed:
            self._suppressed.add(finding.dedup_key)
            return
        self._findings.setdefault(finding.dedup_key, finding)

    def add_fault(self, fault: RuleFault) -> None:
        self._faults.append(fault)

    def finalize(self, path: str, complete: bool = True) -> Report:
        ordered = tuple(sorted(self._findings.values(), key=lambda finding: finding.sort_key))
        summary = Summary()
        for finding in ordered:
            summary.increment(finding.severity)
        return Report(
            path=path,
            findings=ordered,
            suppressed_count=len(self._suppressed),
            faults=tuple(sorted(self._faults, key=lambda fault: fault.sort_key)),
            complete=complete,
            summary=summary,
        )


def format_summary_table(report: Report, max_findings: int = 10) -> str:
    """Create a human-readable summary table for console output."""

    lines: List[str] = []
    lines.append(f"Convention Report: {report.path}")
    lines.append("=" * 40)
    header = f"{'Severity':<10} | {'Count':>5}"
    lines.append(header)
    lines.append("-" * len(header))
    for severity, count in report.summary.as_rows():
        lines.append(f"{severity:<10} | {count:>5}")
    lines.append("-" * len(header))
    status = "PASS" if report.passed else "FAIL"
    lines.append(f"Status    : {status}")
    lines.append(f"Findings  : {report.summary.total}")
    lines.append(f"Suppressed: {report.suppressed_count}")
    if report.faults:
        lines.append(f"Faults    : {len(report.faults)}")
    if not report.complete:
        lines.append("Complete  : no (run cancelled)")

    if report.findings:
        lines.append("")
        lines.append("Findings")
        lines.append("-" * 40)
        for finding in report.findings[:max_findings]:
            lines.append(f"[{finding.severity.value}] {finding.span} {finding.rule_id}: {finding.message}")
            if finding.recommendation:
                lines.append(f"  Fix: {finding.recommendation}")
        remaining = len(report.findings) - max_findings
        if remaining > 0:
            lines.append(f"... {remaining} more")

    for fault in report.faults:
        where = f" at {fault.span}" if fault.span is not None else ""
        lines.append(f"[FAULT] {fault.rule_id} on {fault.node_kind}{where}: {fault.error_type}: {fault.detail}")
    return "\n".join(lines)
