"""Compliance issue model.

Issues are ephemeral reports produced by resolvers and validation passes.
They are never persisted; each pass builds a fresh list.

Severity:
 - ``ERROR``: a derived pair fails the threshold and re-deriving it may fix
   it (eligible for the single bounded auto-fix pass)
 - ``WARNING``: reported only (exhausted ramp, neither anchor compliant,
   unresolvable references)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Optional

__all__ = ["Severity", "IssueKind", "ComplianceIssue", "summarize"]


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class IssueKind(str, Enum):
    CONTRAST_FAIL = "contrast-fail"
    RAMP_EXHAUSTED = "ramp-exhausted"
    NO_COMPLIANT_ANCHOR = "no-compliant-anchor"
    UNRESOLVED_REFERENCE = "unresolved-reference"
    LITERAL_VALUE = "literal-value"
    SURFACE_PALETTE_MISSING = "surface-palette-missing"


@dataclass(frozen=True)
class ComplianceIssue:
    kind: IssueKind
    locus: str
    message: str
    severity: Severity = Severity.WARNING
    measured_ratio: Optional[float] = None
    auto_fixable: bool = False

    def as_report(self) -> Dict[str, str]:
        """Public ``{kind, message, severity}`` view for external observers."""
        return {"kind": self.kind.value, "message": self.message, "severity": self.severity.value}

    def downgrade(self, note: str = "") -> "ComplianceIssue":
        return ComplianceIssue(
            kind=self.kind,
            locus=self.locus,
            message=f"{self.message}{note}",
            severity=Severity.WARNING,
            measured_ratio=self.measured_ratio,
            auto_fixable=False,
        )


def summarize(issues: Iterable[ComplianceIssue]) -> Dict[str, int]:
    counts: Dict[str, int] = {s.value: 0 for s in Severity}
    for issue in issues:
        counts[issue.severity.value] += 1
    return counts

