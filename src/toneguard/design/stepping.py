"""Contrast-driven color stepping ("alternating search").

Given a ramp, a starting level and a background, the search visits levels in
the order::

    L, L+100, L-100, L+200, L-200, ...

where ``+100`` means one canonical ramp position darker. Positions outside
the ramp are skipped, as are levels the ramp does not define. Every
candidate is blended over the background at the requested opacity and
tested against the threshold; the first compliant level wins.

If the whole ramp is exhausted the original (non-compliant) color is
returned with ``compliant=False``; callers turn that into a
:class:`~toneguard.design.issues.ComplianceIssue`. The search is a pure
function of ``(ramp, start, background, opacity)`` and visits each level
at most once, so it always terminates.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Mapping, Optional, Sequence, Tuple

from ..config.settings import AA_THRESHOLD
from .contrast import blended_contrast
from .issues import ComplianceIssue, IssueKind, Severity
from .token_index import LEVELS, normalize_level

__all__ = ["StepResult", "alternating_levels", "step_for_contrast"]


def alternating_levels(start: str, levels: Sequence[str] = LEVELS) -> List[str]:
    """Return every level of ``levels`` in alternating order around ``start``.

    >>> alternating_levels("400")[:5]
    ['400', '500', '300', '600', '200']
    """
    start = normalize_level(start)
    if start not in levels:
        raise ValueError(f"unknown ramp level: {start!r}")
    idx = levels.index(start)
    order = [start]
    for offset in range(1, len(levels)):
        for pos in (idx + offset, idx - offset):
            if 0 <= pos < len(levels) and levels[pos] not in order:
                order.append(levels[pos])
    return order


@dataclass(frozen=True)
class StepResult:
    family: str
    start_level: str
    level: str
    color: Optional[str]
    ratio: float
    compliant: bool
    attempts: Tuple[str, ...]

    @property
    def stepped(self) -> bool:
        return self.compliant and self.level != self.start_level

    def issue(self, locus: str) -> ComplianceIssue:
        return ComplianceIssue(
            kind=IssueKind.RAMP_EXHAUSTED,
            locus=locus,
            message=(
                f"no level of ramp '{self.family}' reaches {AA_THRESHOLD}:1 from "
                f"{self.start_level} (best kept ratio={self.ratio:.2f})"
            ),
            severity=Severity.WARNING,
            measured_ratio=self.ratio,
        )


def step_for_contrast(
    ramp: Mapping[str, str],
    start_level: str,
    background: str,
    *,
    opacity: float = 1.0,
    threshold: float = AA_THRESHOLD,
    family: str = "",
) -> StepResult:
    """Search ``ramp`` for the nearest level compliant against ``background``.

    Parameters
    ----------
    ramp : Mapping[str, str]
        ``level -> hex`` for the levels the ramp defines.
    start_level : str
        Design-intent level the search starts from.
    background : str
        Opaque background hex.
    opacity : float
        Opacity the foreground is rendered at (blended before measuring).

    Returns
    -------
    StepResult
        ``compliant`` is False when every level failed; ``color`` is then the
        ramp's value at ``start_level`` (None if the ramp lacks it).
    """
    start = normalize_level(start_level)
    attempts: List[str] = []
    for level in alternating_levels(start):
        color = ramp.get(level)
        if color is None:
            continue
        attempts.append(level)
        ratio = blended_contrast(color, background, opacity)
        if ratio >= threshold:
            return StepResult(family, start, level, color, ratio, True, tuple(attempts))
    original = ramp.get(start)
    ratio = blended_contrast(original, background, opacity) if original else 1.0
    return StepResult(family, start, start, original, ratio, False, tuple(attempts))
