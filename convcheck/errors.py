"""Exception types raised by the engine before or outside a run."""

from __future__ import annotations


class ConvcheckError(Exception):
    """Base class for errors that stop a run from starting."""


class DuplicateRuleID(ConvcheckError):
    """A rule with the same identifier is already registered."""

    def __init__(self, rule_id: str) -> None:
        super().__init__(f"rule {rule_id!r} is already registered")
        self.rule_id = rule_id


class RegistryFrozen(ConvcheckError):
    """Registration was attempted after the registry was frozen."""


class EmptyRegistry(ConvcheckError):
    """No rules remain to run, so a run would be meaningless."""


class InvalidConfiguration(ConvcheckError):
    """Configuration values cannot be applied to the registry."""

    def __init__(self, problems: list[str]) -> None:
        super().__init__("; ".join(problems))
        self.problems = list(problems)
