"""Contrast utilities for validating derived color relationships.

Implements WCAG 2.1 contrast ratio calculations.

Public API:
- relative_luminance(color: str) -> float
- contrast_ratio(fg: str, bg: str) -> float
- blended_contrast(fg: str, bg: str, opacity: float) -> float
- meets_aa(fg: str, bg: str, opacity: float=1.0) -> bool
- validate_contrast(pairs: list[tuple[str,str,str]], threshold: float=4.5) -> list[str]

The ratio is symmetric and always lies in [1, 21].
"""

from __future__ import annotations

from typing import Iterable, List, Tuple

from ..config.settings import AA_THRESHOLD
from .color_mixing import blend, parse_hex

__all__ = [
    "AA_THRESHOLD",
    "relative_luminance",
    "contrast_ratio",
    "blended_contrast",
    "meets_aa",
    "validate_contrast",
]


def _linear_channel(c: float) -> float:
    c = c / 255.0
    if c <= 0.03928:
        return c / 12.92
    return ((c + 0.055) / 1.055) ** 2.4


def relative_luminance(color: str) -> float:
    r, g, b = parse_hex(color)
    r_l = _linear_channel(r)
    g_l = _linear_channel(g)
    b_l = _linear_channel(b)
    # Rec. 709 coefficients used by WCAG
    return 0.2126 * r_l + 0.7152 * g_l + 0.0722 * b_l


def contrast_ratio(fg: str, bg: str) -> float:
    l1 = relative_luminance(fg)
    l2 = relative_luminance(bg)
    lighter = max(l1, l2)
    darker = min(l1, l2)
    return (lighter + 0.05) / (darker + 0.05)


def blended_contrast(fg: str, bg: str, opacity: float = 1.0) -> float:
    """Contrast of ``fg`` rendered at ``opacity`` over ``bg`` against ``bg``."""
    return contrast_ratio(blend(fg, bg, opacity), bg)


def meets_aa(fg: str, bg: str, opacity: float = 1.0, *, threshold: float = AA_THRESHOLD) -> bool:
    return blended_contrast(fg, bg, opacity) >= threshold


def validate_contrast(
    pairs: Iterable[Tuple[str, str, str]], threshold: float = AA_THRESHOLD
) -> List[str]:
    """Validate a collection of literal foreground/background pairs.

    Parameters
    ----------
    pairs : Iterable[Tuple[str,str,str]]
        Each tuple is (foreground_hex, background_hex, label)
    threshold : float
        Minimum acceptable contrast ratio.

    Returns
    -------
    list[str]
        A list of failure messages (empty if all pass).
    """
    failures: List[str] = []
    for fg, bg, label in pairs:
        try:
            ratio = contrast_ratio(fg, bg)
        except ValueError as e:
            failures.append(f"[contrast-error] {label}: {e}")
            continue
        if ratio < threshold:
            failures.append(f"[contrast-fail] {label}: ratio={ratio:.2f} < {threshold}")
    return failures
