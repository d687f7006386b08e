from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ConfigIssueKind = Literal[
    "dangling_reference",
    "unknown_category",
    "missing_parent",
    "category_cycle",
    "alias_collision",
    "alias_target_missing",
    "duplicate_skill",
]


@dataclass(frozen=True)
class ConfigIssue:
    """One problem in the declared relationship graph."""

    kind: ConfigIssueKind
    message: str
    path: str = ""

    def __str__(self) -> str:
        if self.path:
            return f"{self.path}: {self.message}"
        return self.message


class MatrixConfigError(ValueError):
    """Aggregated configuration errors found while merging a matrix."""

    def __init__(self, issues: tuple[ConfigIssue, ...]):
        self.issues = tuple(issues)
        lines = [f"Skills matrix has {len(self.issues)} configuration error(s):"]
        lines.extend(f"  - {issue}" for issue in self.issues)
        super().__init__("\n".join(lines))


class MatrixInvariantError(AssertionError):
    """A resolved matrix violates its own structural invariants."""
