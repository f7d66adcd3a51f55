"""Production record model and record-level errors.

A ProductionRecord holds one day's measurements exactly as they arrived from
the record store or the entry form. Values are not validated on construction;
metric derivation checks each field it needs and raises InvalidRecordField.

Store columns use the camelCase names of the hosted ``tea_records`` table:
    - date: Calendar date of the measurements (YYYY-MM-DD)
    - inputKg: Green leaf input mass
    - teaMadeGL / teaMadeORS: Made tea output per grade
    - ctcHours / dryerHours / heaterHours: Equipment runtime
    - coalKg / electricityUnits: Fuel and power consumed
    - mandays: Labour input
    - user_id: Owning identity
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Any

FieldValue = float | int | str | None

# Attribute name -> store column name, in entry-form order
FIELD_COLUMNS: dict[str, str] = {
    "date": "date",
    "input_kg": "inputKg",
    "tea_made_gl": "teaMadeGL",
    "tea_made_ors": "teaMadeORS",
    "ctc_hours": "ctcHours",
    "dryer_hours": "dryerHours",
    "heater_hours": "heaterHours",
    "coal_kg": "coalKg",
    "electricity_units": "electricityUnits",
    "mandays": "mandays",
}

OWNER_COLUMN = "user_id"

NUMERIC_FIELDS: tuple[str, ...] = tuple(name for name in FIELD_COLUMNS if name != "date")


class RecordError(Exception):
    """Base exception for records that cannot be reported on."""


class InvalidRecordField(RecordError):
    """Raised when a required numeric field is missing or not numeric."""

    def __init__(self, field: str, value: Any = None) -> None:
        self.field = field
        self.value = value
        if value is None:
            detail = "missing"
        else:
            detail = f"not numeric: {value!r}"
        super().__init__(f"{field} is {detail}")


class InvalidDate(RecordError):
    """Raised when a record date cannot be read as a calendar date."""

    def __init__(self, value: Any) -> None:
        self.value = value
        super().__init__(f"invalid date {value!r}")


@dataclass(frozen=True)
class ProductionRecord:
    """One day of production measurements.

    Attributes:
        date: Record date as text, date or datetime.
        input_kg: Green leaf input (kg).
        tea_made_gl: GL grade made tea (kg).
        tea_made_ors: ORS grade made tea (kg).
        ctc_hours: CTC machine runtime (hours).
        dryer_hours: Dryer runtime (hours).
        heater_hours: Heater runtime (hours).
        coal_kg: Coal consumed (kg).
        electricity_units: Electricity consumed (units).
        mandays: Labour input (mandays).
        owner_id: Opaque identity of the owner, used only for store scoping.
    """

    date: str | date | datetime | None = None
    input_kg: FieldValue = None
    tea_made_gl: FieldValue = None
    tea_made_ors: FieldValue = None
    ctc_hours: FieldValue = None
    dryer_hours: FieldValue = None
    heater_hours: FieldValue = None
    coal_kg: FieldValue = None
    electricity_units: FieldValue = None
    mandays: FieldValue = None
    owner_id: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ProductionRecord:
        """Build a record from a store row or a snake_case mapping.

        Store column names (``inputKg``, ``user_id``) take precedence over
        attribute names. Unknown keys such as ``id`` or ``created_at`` are
        ignored and missing keys become None.

        Args:
            data: Row as returned by the record store or entry form.

        Returns:
            ProductionRecord with the values as supplied.
        """
        values: dict[str, Any] = {}
        for name, column in FIELD_COLUMNS.items():
            if column in data:
                values[name] = data[column]
            else:
                values[name] = data.get(name)

        owner = data.get(OWNER_COLUMN, data.get("owner_id"))
        values["owner_id"] = None if owner is None else str(owner)
        return cls(**values)

    def to_mapping(self) -> dict[str, Any]:
        """Convert to a store row keyed by column name."""
        row: dict[str, Any] = {}
        for name, column in FIELD_COLUMNS.items():
            value = getattr(self, name)
            if isinstance(value, (date, datetime)):
                value = value.isoformat()
            row[column] = value
        row[OWNER_COLUMN] = self.owner_id
        return row

    def with_owner(self, owner_id: str) -> ProductionRecord:
        """Return a copy of this record scoped to another owner."""
        return replace(self, owner_id=owner_id)


def column_name(field: str) -> str:
    """Get the store column name for a record attribute."""
    return FIELD_COLUMNS.get(field, field)
