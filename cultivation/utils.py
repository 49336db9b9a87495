"""Numeric and formatting helpers shared by the progression components."""

from __future__ import annotations

import math
from typing import Any

from .constants import QI_CAP


def safe_num(value: Any, default: float = 0.0) -> float:
    """Return ``value`` as a float, or ``default`` when it is not finite."""

    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    if not math.isfinite(number):
        return default
    return number


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def safe_add_qi(state: Any, amount: float) -> float:
    """Add ``amount`` Qi to ``state`` keeping it within ``[0, QI_CAP]``.

    Non-finite and non-positive amounts are ignored. Returns the amount that
    was actually added once the cap applied (``0.0`` when ignored).
    """

    try:
        gain = float(amount)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    if not math.isfinite(gain) or gain <= 0:
        return 0.0
    current = safe_num(state.qi, 0.0)
    state.qi = clamp(current + gain, 0.0, QI_CAP)
    return state.qi - current


def format_number(value: float) -> str:
    """Return a compact human readable rendering of ``value``."""

    number = safe_num(value, 0.0)
    magnitude = abs(number)
    if magnitude < 1_000:
        if number == int(number):
            return str(int(number))
        return f"{number:.2f}"
    suffixes = ("K", "M", "B", "T", "Qa", "Qi", "Sx", "Sp", "Oc", "No", "Dc")
    exponent = int(math.log10(magnitude) // 3)
    if exponent > len(suffixes):
        return f"{number:.2e}"
    scaled = number / (1000 ** exponent)
    return f"{scaled:.2f}{suffixes[exponent - 1]}"


def format_years(years: float | None) -> str:
    if years is None:
        return "∞"
    value = safe_num(years, 0.0)
    if value < 1:
        return f"{value * 365:.1f} days"
    return f"{value:.2f} years"


__all__ = ["safe_num", "clamp", "safe_add_qi", "format_number", "format_years"]
