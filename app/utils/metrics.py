"""Numeric helpers shared by the dashboard aggregates."""
import math
from typing import Iterable


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer, halves rounding up.

    Examples:
        >>> round_half_up(2.5)
        3
        >>> round_half_up(-2.5)
        -2
    """
    return int(math.floor(value + 0.5))


def clamp(value: float, lower: float = 0, upper: float = 100) -> float:
    """Limit `value` to the closed range [lower, upper]."""
    return max(lower, min(upper, value))


def average(values: Iterable[float]) -> float | None:
    """Arithmetic mean, or None for an empty sequence."""
    items = list(values)
    if not items:
        return None
    return sum(items) / len(items)


def title_case_identifier(value: str) -> str:
    """
    Turn a snake_case identifier into display text.

    Examples:
        >>> title_case_identifier("bp_spike")
        'Bp Spike'
    """
    return " ".join(word[:1].upper() + word[1:] for word in value.replace("_", " ").split(" "))


def with_fallback(value, demo_value, enabled: bool, empty_value=0):
    """
    Return `value` unless it is None.

    A missing value becomes `demo_value` when demo fallbacks are enabled and
    `empty_value` otherwise.

    Examples:
        >>> with_fallback(None, 4.8, enabled=True)
        4.8
        >>> with_fallback(None, 4.8, enabled=False)
        0
        >>> with_fallback(3.5, 4.8, enabled=True)
        3.5
    """
    if value is not None:
        return value
    return demo_value if enabled else empty_value
