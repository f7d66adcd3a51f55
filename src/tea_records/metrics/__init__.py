"""Derived production metrics."""

from tea_records.metrics.calculator import (
    DerivedMetrics,
    calculate_metrics,
    coal_ratio,
    electric_ratio,
    recovery_gl,
    recovery_ors,
    total_hours,
)

__all__ = [
    "DerivedMetrics",
    "calculate_metrics",
    "coal_ratio",
    "electric_ratio",
    "recovery_gl",
    "recovery_ors",
    "total_hours",
]
