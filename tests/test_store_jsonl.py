"""Tests for the JSONL record store."""

import json
from pathlib import Path

import pytest

from tea_records.config import OwnerConfig
from tea_records.models import ProductionRecord
from tea_records.store.base import StoreError, resolve_owner
from tea_records.store.jsonl import JsonlRecordStore, StoredRow


class TestStoredRow:
    """Tests for the stored row envelope."""

    def test_create_assigns_id_and_timestamp(self) -> None:
        """Test StoredRow.create fills id and created_at."""
        row = StoredRow.create({"date": "2024-06-10"})

        assert row.data == {"date": "2024-06-10"}
        assert len(row.id) == 36
        assert row.created_at.endswith("+00:00")

    def test_to_json_line(self) -> None:
        """Test the JSONL line has the envelope keys."""
        line = StoredRow(id="r1", created_at="2024-06-10T00:00:00+00:00", data={"a": 1})

        assert json.loads(line.to_json_line()) == {
            "id": "r1",
            "created_at": "2024-06-10T00:00:00+00:00",
            "data": {"a": 1},
        }
        assert "\n" not in line.to_json_line()


class TestJsonlRecordStore:
    """Tests for JsonlRecordStore."""

    @pytest.mark.asyncio
    async def test_insert_and_query(
        self, tmp_path: Path, scenario_record: ProductionRecord
    ) -> None:
        """Test an inserted record comes back for its owner."""
        store = JsonlRecordStore(tmp_path / "data" / "records.jsonl")

        stored = await store.insert(scenario_record)
        records = await store.query_by_owner("factory-a")

        assert stored == scenario_record
        assert records == [scenario_record]
        assert (tmp_path / "data" / "records.jsonl").exists()

    @pytest.mark.asyncio
    async def test_query_scoped_to_owner(self, tmp_path: Path, make_record) -> None:
        """Test records of other owners are not returned."""
        store = JsonlRecordStore(tmp_path / "records.jsonl")
        await store.insert(make_record(date="2024-06-10"))
        await store.insert(make_record(date="2024-06-11", user_id="factory-b"))
        await store.insert(make_record(date="2024-06-12"))

        records = await store.query_by_owner("factory-a")

        assert [r.date for r in records] == ["2024-06-10", "2024-06-12"]
        assert await store.query_by_owner("factory-c") == []

    @pytest.mark.asyncio
    async def test_insertion_order_kept(self, tmp_path: Path, make_record) -> None:
        """Test records are returned in insertion order, not date order."""
        store = JsonlRecordStore(tmp_path / "records.jsonl")
        for day in ("2024-06-12", "2024-06-10", "2024-06-11"):
            await store.insert(make_record(date=day))

        records = await store.query_by_owner("factory-a")

        assert [r.date for r in records] == ["2024-06-12", "2024-06-10", "2024-06-11"]

    @pytest.mark.asyncio
    async def test_raw_values_kept(self, tmp_path: Path, make_record) -> None:
        """Test invalid values are stored as entered."""
        store = JsonlRecordStore(tmp_path / "records.jsonl")
        await store.insert(make_record(coalKg="ten", mandays=...))

        (record,) = await store.query_by_owner("factory-a")

        assert record.coal_kg == "ten"
        assert record.mandays is None

    @pytest.mark.asyncio
    async def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        """Test querying before any insert returns nothing."""
        store = JsonlRecordStore(tmp_path / "missing.jsonl")
        assert await store.query_by_owner("factory-a") == []

    @pytest.mark.asyncio
    async def test_insert_without_owner(self, tmp_path: Path) -> None:
        """Test inserting a record with no owner raises StoreError."""
        store = JsonlRecordStore(tmp_path / "records.jsonl")

        with pytest.raises(StoreError, match="without owner_id"):
            await store.insert(ProductionRecord(date="2024-06-10"))

    @pytest.mark.asyncio
    async def test_corrupt_line(self, tmp_path: Path, scenario_record: ProductionRecord) -> None:
        """Test a corrupt line raises StoreError naming the line."""
        path = tmp_path / "records.jsonl"
        store = JsonlRecordStore(path)
        await store.insert(scenario_record)
        with path.open("a") as f:
            f.write("{not json\n")

        with pytest.raises(StoreError, match=r"records.jsonl:2"):
            await store.query_by_owner("factory-a")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "line",
        [
            '{"id": "x", "created_at": "t", "data": [1]}',
            '{"id": "x", "created_at": "t", "data": "text"}',
            '{"id": "x", "created_at": "t"}',
            "[1, 2]",
        ],
    )
    async def test_malformed_row(
        self, tmp_path: Path, scenario_record: ProductionRecord, line: str
    ) -> None:
        """Test a well-formed JSON line without a row object is reported as corrupt."""
        path = tmp_path / "records.jsonl"
        store = JsonlRecordStore(path)
        await store.insert(scenario_record)
        with path.open("a") as f:
            f.write(line + "\n")

        with pytest.raises(StoreError, match=r"Corrupt record at .*records.jsonl:2"):
            await store.query_by_owner("factory-a")

    @pytest.mark.asyncio
    async def test_blank_lines_skipped(
        self, tmp_path: Path, scenario_record: ProductionRecord
    ) -> None:
        """Test blank lines are ignored."""
        path = tmp_path / "records.jsonl"
        store = JsonlRecordStore(path)
        await store.insert(scenario_record)
        with path.open("a") as f:
            f.write("\n\n")

        assert len(await store.query_by_owner("factory-a")) == 1


class TestResolveOwner:
    """Tests for owner resolution."""

    def test_override_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the explicit owner takes precedence."""
        monkeypatch.setenv("TEA_RECORDS_OWNER", "from-env")
        config = OwnerConfig(id="from-config")

        assert resolve_owner(config, "from-cli") == "from-cli"

    def test_config_before_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test config owner is used before the environment."""
        monkeypatch.setenv("TEA_RECORDS_OWNER", "from-env")
        assert resolve_owner(OwnerConfig(id="from-config")) == "from-config"

    def test_env_fallback(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the named environment variable is the last source."""
        monkeypatch.setenv("MY_OWNER", "from-env")
        assert resolve_owner(OwnerConfig(id_env="MY_OWNER")) == "from-env"

    def test_no_owner(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test StoreError when no owner is available."""
        monkeypatch.delenv("TEA_RECORDS_OWNER", raising=False)

        with pytest.raises(StoreError, match="No owner identity"):
            resolve_owner(OwnerConfig())
