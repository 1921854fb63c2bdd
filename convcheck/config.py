"""Run configuration: path exclusions, disabled rules and severity overrides.

Example ``convcheck.yaml``::

    excluded_paths:
      - "vendor/*"
    disabled_rules:
      - naming.receiver-name
    severity_overrides:
      naming.getter-prefix: error
    exclusions:
      - path: "internal/legacy/*"
        rule: naming.initialism-case
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Dict, FrozenSet, List, Mapping, Optional, Tuple

from .errors import InvalidConfiguration
from .severity import Severity
from .utils import read_yaml_file

if TYPE_CHECKING:
    from .registry import RuleRegistry

KNOWN_KEYS = {"excluded_paths", "disabled_rules", "severity_overrides", "exclusions"}


@dataclass(frozen=True)
class PathExclusion:
    """Suppress findings in files matching ``pattern``, for one rule or all."""

    pattern: str
    rule_id: Optional[str] = None


@dataclass(frozen=True)
class Configuration:
    """Options recognized by the engine. The default applies no changes."""

    excluded_paths: FrozenSet[str] = frozenset()
    disabled_rules: FrozenSet[str] = frozenset()
    severity_overrides: Mapping[str, Severity] = field(default_factory=lambda: MappingProxyType({}))
    exclusions: Tuple[PathExclusion, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Configuration":
        """Build a configuration from its YAML mapping form.

        Raises :class:`InvalidConfiguration` listing every problem found.
        """

        problems: List[str] = []
        unknown = sorted(set(data) - KNOWN_KEYS)
        if unknown:
            problems.append(f"unknown configuration keys: {', '.join(unknown)}")

        excluded = _string_list(data.get("excluded_paths"), "excluded_paths", problems)
        disabled = _string_list(data.get("disabled_rules"), "disabled_rules", problems)

        overrides: Dict[str, Severity] = {}
        raw_overrides = data.get("severity_overrides") or {}
        if not isinstance(raw_overrides, Mapping):
            problems.append("severity_overrides must be a mapping of rule id to severity")
            raw_overrides = {}
        for rule_id, value in raw_overrides.items():
            try:
                overrides[str(rule_id)] = Severity.parse(value)
            except ValueError as exc:
                problems.append(f"severity_overrides[{rule_id}]: {exc}")

        exclusions: List[PathExclusion] = []
        raw_exclusions = data.get("exclusions") or []
        if not isinstance(raw_exclusions, list):
            problems.append("exclusions must be a list")
            raw_exclusions = []
        for index, entry in enumerate(raw_exclusions):
            if not isinstance(entry, Mapping) or not isinstance(entry.get("path"), str):
                problems.append(f"exclusions[{index}] must be a mapping with a 'path' glob")
                continue
            rule_id = entry.get("rule")
            exclusions.append(PathExclusion(entry["path"], str(rule_id) if rule_id else None))

        if problems:
            raise InvalidConfiguration(problems)
        return cls(
            excluded_paths=frozenset(excluded),
            disabled_rules=frozenset(disabled),
            severity_overrides=MappingProxyType(overrides),
            exclusions=tuple(exclusions),
        )

    def severity_for(self, rule_id: str, default: Severity) -> Severity:
        return self.severity_overrides.get(rule_id, default)

    def all_exclusions(self) -> Tuple[PathExclusion, ...]:
        """Return rule-less path exclusions followed by per-rule ones."""

        blanket = tuple(PathExclusion(pattern) for pattern in sorted(self.excluded_paths))
        return blanket + self.exclusions

    def validate(self, registry: "RuleRegistry") -> None:
        """Check globs and rule ids against ``registry`` before a run starts."""

        problems: List[str] = []
        for exclusion in self.all_exclusions():
            reason = glob_problem(exclusion.pattern)
            if reason:
                problems.append(f"malformed glob {exclusion.pattern!r}: {reason}")
            if exclusion.rule_id is not None and exclusion.rule_id not in registry:
                problems.append(f"exclusion for {exclusion.pattern!r} names unknown rule {exclusion.rule_id!r}")
        for rule_id in sorted(self.severity_overrides):
            if rule_id not in registry:
                problems.append(f"severity override names unknown rule {rule_id!r}")
        if problems:
            raise InvalidConfiguration(problems)


def glob_problem(pattern: str) -> Optional[str]:
    """Return why ``pattern`` is not a usable glob, or ``None`` if it is."""

    if not pattern.strip():
        return "empty pattern"
    if "\x00" in pattern:
        return "contains a NUL byte"
    depth = 0
    for char in pattern:
        if char == "[":
            if depth:
                return "nested '['"
            depth = 1
        elif char == "]" and depth:
            depth = 0
    if depth:
        return "unbalanced '['"
    return None


def load_config(path: Path) -> Configuration:
    """Read a YAML configuration file; a missing file yields the defaults."""

    try:
        data = read_yaml_file(path)
    except ValueError as exc:
        raise InvalidConfiguration([str(exc)]) from None
    if data is None:
        return Configuration()
    if not isinstance(data, Mapping):
        raise InvalidConfiguration([f"configuration at {path} is not a mapping"])
    return Configuration.from_dict(data)


def merge_configs(*configs: Configuration) -> Configuration:
    """Combine configurations from several sources.

    Exclusions and disabled rules accumulate. When two sources override the
    same rule's severity, the later source wins.
    """

    excluded: set[str] = set()
    disabled: set[str] = set()
    overrides: Dict[str, Severity] = {}
    exclusions: List[PathExclusion] = []
    for config in configs:
        excluded.update(config.excluded_paths)
        disabled.update(config.disabled_rules)
        overrides.update(config.severity_overrides)
        exclusions.extend(item for item in config.exclusions if item not in exclusions)
    return Configuration(
        excluded_paths=frozenset(excluded),
        disabled_rules=frozenset(disabled),
        severity_overrides=MappingProxyType(overrides),
        exclusions=tuple(exclusions),
    )


def _string_list(value: Any, key: str, problems: List[str]) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, (list, tuple, set)):
        problems.append(f"{key} must be a list of strings")
        return []
    return [str(item) for item in value]
