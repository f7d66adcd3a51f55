"""Derived production metrics for a single record.

Each metric is a pure function of one record's numeric fields:
    - recovery_gl: teaMadeGL / inputKg * 100
    - recovery_ors: teaMadeORS / inputKg * 100
    - coal_ratio: coalKg / teaMadeGL
    - electric_ratio: electricityUnits / teaMadeGL
    - total_hours: ctcHours + dryerHours + heaterHours

A zero denominator yields the IEEE 754 result (inf, -inf or nan) instead of
raising, so anomalous days stay visible in reports. Values are returned at full
precision; rounding belongs to report formatting.
"""

import math
from dataclasses import dataclass

from tea_records.models import InvalidRecordField, ProductionRecord, column_name

__all__ = [
    "DerivedMetrics",
    "calculate_metrics",
    "coal_ratio",
    "divide",
    "electric_ratio",
    "numeric_field",
    "recovery_gl",
    "recovery_ors",
    "total_hours",
]


@dataclass(frozen=True)
class DerivedMetrics:
    """Metrics derived from one production record.

    Attributes:
        recovery_gl: GL made tea as a percentage of leaf input.
        recovery_ors: ORS made tea as a percentage of leaf input.
        coal_ratio: Coal consumed per kg of GL made tea.
        electric_ratio: Electricity units per kg of GL made tea.
        total_hours: Combined CTC, dryer and heater runtime.
    """

    recovery_gl: float
    recovery_ors: float
    coal_ratio: float
    electric_ratio: float
    total_hours: float


def numeric_field(record: ProductionRecord, field: str) -> float:
    """Read a numeric field from a record.

    Numbers are accepted as-is (bool excluded). Text is accepted when it
    parses as a finite float, since entry forms submit text.

    Args:
        record: Record to read from.
        field: Attribute name, e.g. "dryer_hours".

    Returns:
        Field value as float.

    Raises:
        InvalidRecordField: If the value is missing or not numeric. The error
            names the store column, e.g. "dryerHours".
    """
    value = getattr(record, field)
    column = column_name(field)

    if value is None:
        raise InvalidRecordField(column)

    if isinstance(value, bool):
        raise InvalidRecordField(column, value)

    if isinstance(value, (int, float)):
        try:
            return float(value)
        except OverflowError as e:
            raise InvalidRecordField(column, value) from e

    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise InvalidRecordField(column)
        try:
            number = float(text)
        except ValueError as e:
            raise InvalidRecordField(column, value) from e
        if not math.isfinite(number):
            raise InvalidRecordField(column, value)
        return number

    raise InvalidRecordField(column, value)


def divide(numerator: float, denominator: float) -> float:
    """Divide with IEEE 754 semantics for a zero denominator.

    Args:
        numerator: Dividend.
        denominator: Divisor, may be 0.0 or -0.0.

    Returns:
        numerator / denominator; +/-inf for a non-zero numerator over zero,
        nan for zero (or nan) over zero.
    """
    if denominator == 0:
        if numerator == 0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator) * math.copysign(1.0, denominator)
    return numerator / denominator


def recovery_gl(record: ProductionRecord) -> float:
    """GL recovery percentage."""
    made = numeric_field(record, "tea_made_gl")
    leaf = numeric_field(record, "input_kg")
    return divide(made, leaf) * 100


def recovery_ors(record: ProductionRecord) -> float:
    """ORS recovery percentage."""
    made = numeric_field(record, "tea_made_ors")
    leaf = numeric_field(record, "input_kg")
    return divide(made, leaf) * 100


def coal_ratio(record: ProductionRecord) -> float:
    """Coal kg per kg of GL made tea."""
    coal = numeric_field(record, "coal_kg")
    made = numeric_field(record, "tea_made_gl")
    return divide(coal, made)


def electric_ratio(record: ProductionRecord) -> float:
    """Electricity units per kg of GL made tea."""
    units = numeric_field(record, "electricity_units")
    made = numeric_field(record, "tea_made_gl")
    return divide(units, made)


def total_hours(record: ProductionRecord) -> float:
    """Sum of CTC, dryer and heater runtime.

    A missing addend fails the whole sum rather than counting as zero.
    """
    return (
        numeric_field(record, "ctc_hours")
        + numeric_field(record, "dryer_hours")
        + numeric_field(record, "heater_hours")
    )


def calculate_metrics(record: ProductionRecord) -> DerivedMetrics:
    """Calculate all derived metrics for a record.

    Args:
        record: Production record.

    Returns:
        DerivedMetrics at full precision.

    Raises:
        InvalidRecordField: For the first required field that is missing or
            not numeric.
    """
    return DerivedMetrics(
        recovery_gl=recovery_gl(record),
        recovery_ors=recovery_ors(record),
        coal_ratio=coal_ratio(record),
        electric_ratio=electric_ratio(record),
        total_hours=total_hours(record),
    )
