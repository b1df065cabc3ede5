"""Check registry for managing active triage checks."""

from __future__ import annotations

from collections.abc import Callable, Iterable

from .models import Finding, RuleContext

TriageCheck = Callable[[RuleContext], list[Finding]]


class CheckRegistry:
    def __init__(self) -> None:
        self._checks: list[TriageCheck] = []

    def register(self, check: TriageCheck) -> None:
        if check not in self._checks:
            self._checks.append(check)

    def extend(self, checks: Iterable[TriageCheck]) -> None:
        for check in checks:
            self.register(check)

    def active_checks(self) -> Iterable[TriageCheck]:
        return tuple(self._checks)

    def __len__(self) -> int:
        return len(self._checks)


default_registry = CheckRegistry()
