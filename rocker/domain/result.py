from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, TypeVar

from rocker.domain.diagnostics import Diagnostic, Severity

T = TypeVar("T")

EXIT_OK = 0
EXIT_INVALID = 2
EXIT_EXECUTION = 3


def _new_diagnostics() -> list[Diagnostic]:
    return []


@dataclass
class Result(Generic[T]):
    value: T | None = None
    diagnostics: list[Diagnostic] = field(default_factory=_new_diagnostics)

    @property
    def has_errors(self) -> bool:
        return any(d.severity == Severity.ERROR for d in self.diagnostics)

    @property
    def exit_code(self) -> int:
        errors = [d for d in self.diagnostics if d.severity == Severity.ERROR]
        if any(d.is_execution for d in errors):
            return EXIT_EXECUTION
        if errors:
            return EXIT_INVALID
        return EXIT_OK
