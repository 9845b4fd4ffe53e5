from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ValidationIssue:
    """One problem in a table definition; `source` names the file when known."""
    code: str
    message: str
    source: Optional[str] = None

    def __str__(self) -> str:
        prefix = f"{self.source}: " if self.source else ""
        return f"{prefix}{self.code}: {self.message}"


class ValidationError(Exception):
    """All issues found in one validation pass, reported together."""

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = issues
        super().__init__("\n".join(str(i) for i in issues))

    @property
    def codes(self) -> list[str]:
        return [i.code for i in self.issues]

    def with_source(self, source: str) -> ValidationError:
        return ValidationError([ValidationIssue(i.code, i.message, source) for i in self.issues])
