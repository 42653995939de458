"""Math helpers — rounding, precision checks, vector similarity. No engine imports."""

from __future__ import annotations

import math
from collections.abc import Sequence
from decimal import Decimal

import numpy as np


def round2(value: float) -> float:
    """Round to 2 decimal places. Used for every emitted coordinate."""
    return round(float(value), 2)


def decimal_places(value: float) -> int:
    """Number of decimal digits in the shortest repr of a finite float."""
    if not math.isfinite(value) or float(value).is_integer():
        return 0
    exponent = Decimal(repr(float(value))).as_tuple().exponent
    return -exponent if isinstance(exponent, int) and exponent < 0 else 0


def is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def format_number(value: float) -> str:
    """Compact SVG number: 200.0 → '200', 12.50 → '12.5'."""
    rounded = round2(value) + 0.0  # folds -0.0 into 0.0
    if rounded.is_integer():
        return str(int(rounded))
    return f"{rounded:.2f}".rstrip("0").rstrip(".")


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity; 0.0 when either vector has zero magnitude or lengths differ."""
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape or va.size == 0:
        return 0.0
    norm = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if norm == 0.0:
        return 0.0
    return float(np.dot(va, vb) / norm)
