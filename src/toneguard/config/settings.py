"""Global configuration and constants for the token engine."""

from __future__ import annotations

import os
from typing import Final

PROPERTY_PREFIX: Final = os.environ.get("TONEGUARD_PROPERTY_PREFIX", "toneguard")

# WCAG AA for normal text; not configurable on purpose
AA_THRESHOLD: Final = 4.5

MAX_REFERENCE_DEPTH: Final = 10

DEBOUNCE_MS: Final = int(os.environ.get("TONEGUARD_DEBOUNCE_MS", "50"))
FIX_WINDOW_SECONDS: Final = float(os.environ.get("TONEGUARD_FIX_WINDOW_SECONDS", "2.0"))
SLOW_RECOMPUTE_WARN_MS: Final = float(os.environ.get("TONEGUARD_SLOW_RECOMPUTE_MS", "50.0"))

FALLBACK_PALETTE: Final = os.environ.get("TONEGUARD_FALLBACK_PALETTE", "neutral")
REGULAR_LAYER_COUNT: Final = 4  # layer-0 .. layer-3

DEFAULT_HIGH_EMPHASIS: Final = 1.0

MODES: Final = ("light", "dark")
