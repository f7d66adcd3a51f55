"""Shared fixtures for tea-records tests.

Provides:
- Production records (the reference scenario and variants)
- A factory for records with overridden fields
- Temporary config files for CLI and store tests
"""

from pathlib import Path
from typing import Any

import pytest

from tea_records.models import ProductionRecord

SCENARIO_ROW: dict[str, Any] = {
    "date": "2024-06-10",
    "inputKg": 100,
    "teaMadeGL": 25,
    "teaMadeORS": 5,
    "ctcHours": 8,
    "dryerHours": 6,
    "heaterHours": 2,
    "coalKg": 10,
    "electricityUnits": 50,
    "mandays": 12,
    "user_id": "factory-a",
}


@pytest.fixture
def scenario_row() -> dict[str, Any]:
    """Store row for the reference scenario."""
    return dict(SCENARIO_ROW)


@pytest.fixture
def scenario_record() -> ProductionRecord:
    """Record with recovery 25/5, coal 0.40, electric 2.00, hours 16."""
    return ProductionRecord.from_mapping(SCENARIO_ROW)


@pytest.fixture
def make_record() -> Any:
    """Factory for records based on the scenario row.

    Returns:
        Callable taking store-column overrides; a value of ... removes the key.
    """

    def _make(**overrides: Any) -> ProductionRecord:
        row = dict(SCENARIO_ROW)
        for key, value in overrides.items():
            if value is ...:
                row.pop(key, None)
            else:
                row[key] = value
        return ProductionRecord.from_mapping(row)

    return _make


@pytest.fixture
def jsonl_config_file(tmp_path: Path) -> Path:
    """Config file using a JSONL store under tmp_path."""
    store_path = tmp_path / "data" / "records.jsonl"
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        f"""owner:
  id: factory-a
store:
  backend: jsonl
  path: {store_path}
reporting:
  week_start: monday
  default_window: all
"""
    )
    return config_path
