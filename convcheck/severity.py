"""Severity definitions for convention findings."""

from __future__ import annotations

from enum import Enum


class Severity(str, Enum):
    """Enumerate the supported severity levels for findings."""

    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"

    @property
    def exit_priority(self) -> int:
        """Return an integer ranking to drive exit code decisions."""

        ordering = {
            Severity.ERROR: 2,
            Severity.WARNING: 1,
            Severity.INFO: 0,
        }
        return ordering[self]

    @classmethod
    def parse(cls, value: str) -> "Severity":
        """Resolve a case-insensitive severity name such as ``"warning"``."""

        try:
            return cls(str(value).strip().upper())
        except ValueError:
            choices = ", ".join(member.value.lower() for member in cls)
            raise ValueError(f"unknown severity {value!r} (expected one of: {choices})") from None
