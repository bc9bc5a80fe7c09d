"""Error taxonomy for loading and querying an organizational dataset."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ViolationRule(str, Enum):
    """Structural rules checked when a dataset is loaded."""

    UNKNOWN_DEPARTMENT = "unknown_department"
    UNKNOWN_MANAGER = "unknown_manager"
    REPORTING_CYCLE = "reporting_cycle"
    SELF_REPORT = "self_report"
    DUPLICATE_EMPLOYEE = "duplicate_employee"
    DUPLICATE_DEPARTMENT = "duplicate_department"
    MISSING_EMPLOYMENT = "missing_employment"
    DUPLICATE_EMPLOYMENT = "duplicate_employment"
    UNKNOWN_EMPLOYEE = "unknown_employee"
    EMPLOYMENT_MISMATCH = "employment_mismatch"
    UNKNOWN_COMPANY = "unknown_company"


@dataclass(frozen=True)
class Violation:
    """A single broken rule, tied to the offending identifier."""

    rule: ViolationRule
    subject_id: str
    message: str
    related: tuple[str, ...] = ()

    def __str__(self) -> str:
        return f"[{self.rule.value}] {self.subject_id}: {self.message}"


class HierarchyError(Exception):
    """Base class for org-hierarchy errors."""


class LoadError(HierarchyError):
    """Raised when a dataset fails validation; nothing is loaded."""

    def __init__(self, violations: list[Violation]):
        self.violations = list(violations)
        lines = "\n".join(f"  - {v}" for v in self.violations)
        super().__init__(f"dataset rejected with {len(self.violations)} violation(s):\n{lines}")

    def subjects(self, rule: ViolationRule | None = None) -> set[str]:
        """Identifiers cited by the violations, optionally for one rule."""
        return {
            v.subject_id
            for v in self.violations
            if rule is None or v.rule == rule
        }


@dataclass
class CycleDetected(HierarchyError):
    """Raised when a fixed-point traversal exceeds its iteration bound.

    After a successful load this means the store and the rows derived from it
    disagree, which is a bug rather than bad input.
    """

    employee_id: str
    iterations: int
    direction: str = field(default="descendants")

    def __str__(self) -> str:
        return (
            f"{self.direction} of {self.employee_id!r} did not reach a fixed point "
            f"after {self.iterations} iterations"
        )


class NotFound(HierarchyError, LookupError):
    """A query referenced an employee or department that is not in the store."""

    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} not found: {identifier!r}")
