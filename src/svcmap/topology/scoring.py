"""Default SLA and Apdex calculators.

Both scores are integer percentages. Builders accept any callable with the
same signature, so deployments with their own scoring can swap them in.
"""

from __future__ import annotations

from collections.abc import Callable

SlaCalculator = Callable[[int, int], int]
ApdexCalculator = Callable[[int, int, int], int]


def calculate_sla(error_calls: int, calls: int) -> int:
    """Percentage of successful calls; 100 when nothing was called."""
    if calls <= 0:
        return 100
    return (calls - error_calls) * 100 // calls


def calculate_apdex(satisfied_count: int, tolerating_count: int, frustrated_count: int) -> int:
    """Apdex score scaled to 0-100: tolerating requests count half."""
    total = satisfied_count + tolerating_count + frustrated_count
    if total <= 0:
        return 100
    return (satisfied_count * 100 + tolerating_count * 50) // total
