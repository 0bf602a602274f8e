"""Tests for the vend-report command line tool."""

import json
from decimal import Decimal
from pathlib import Path

import pandas as pd
import pytest

from vend_core.report.cli import main, read_transactions


@pytest.fixture
def raw_rows(make_raw):
    """A few raw orders in March 2024."""
    return [
        make_raw("a", "2024-03-01 09:00:00", 12000, payment="cash", ingredientUsage='{"CUP": 1}'),
        make_raw("b", "2024-03-02 10:00:00", 15000, payment="payme", machine="M2"),
        make_raw("c", "2024-03-02 11:00:00", 9000, payment="vip", delivery="DELIVERY_FAILED"),
    ]


def test_csv_to_json_and_tables(tmp_path: Path, raw_rows) -> None:
    """Test a full run from a CSV export to JSON plus per-table CSVs."""
    src = tmp_path / "orders.csv"
    pd.DataFrame(raw_rows).to_csv(src, index=False, encoding="utf-8-sig")
    out = tmp_path / "out" / "report.json"
    tables = tmp_path / "tables"

    main(
        [
            "--input", str(src),
            "--from", "2024-03-01",
            "--to", "2024-03-31",
            "--out", str(out),
            "--tables-dir", str(tables),
            "--quiet",
        ]
    )

    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["metadata"]["transaction_count"] == 3
    assert data["metadata"]["kind"] == "Full"
    assert data["financial"]["summary"]["orders"]["failed"] == 1
    assert (tables / "by_weekdays.csv").exists()
    assert (tables / "delivery_failures.csv").exists()
    weekdays = pd.read_csv(tables / "by_weekdays.csv", encoding="utf-8-sig")
    assert len(weekdays) == 7


def test_json_input_with_filters(tmp_path: Path, raw_rows) -> None:
    """Test JSON input, kind selection and a machine filter."""
    src = tmp_path / "orders.json"
    src.write_text(json.dumps({"transactions": raw_rows}), encoding="utf-8")
    out = tmp_path / "report.json"

    main(
        [
            "--input", str(src),
            "--from", "2024-03-01",
            "--to", "2024-03-31",
            "--kind", "financial",
            "--machine", "M2",
            "--organization", "org-7",
            "--out", str(out),
            "--quiet",
        ]
    )

    data = json.loads(out.read_text(encoding="utf-8"))
    assert "payment_types" not in data
    assert data["metadata"]["organization_id"] == "org-7"
    assert data["metadata"]["filters"]["machine_ids"] == ["M2"]
    assert data["financial"]["summary"]["orders"]["total"] == 1


def test_json_numeric_machine_ids_next_to_nulls(tmp_path: Path, make_raw) -> None:
    """Test that integer machine ids in JSON survive a null neighbour."""
    src = tmp_path / "orders.json"
    rows = [
        make_raw("a", "2024-03-01 09:00:00", 12000.5, machine=101),
        make_raw("b", "2024-03-01 10:00:00", 8000, machine=None),
    ]
    src.write_text(json.dumps(rows), encoding="utf-8")
    out = tmp_path / "report.json"

    main(
        [
            "--input", str(src),
            "--from", "2024-03-01",
            "--to", "2024-03-31",
            "--kind", "financial",
            "--machine", "101",
            "--out", str(out),
            "--quiet",
        ]
    )

    data = json.loads(out.read_text(encoding="utf-8"))
    financial = data["financial"]
    assert [m["machine_id"] for m in financial["by_machines"]] == ["101"]
    assert financial["summary"]["orders"]["total"] == 1


def test_read_transactions_json_keeps_values(tmp_path: Path) -> None:
    """Test that JSON ids keep their type and amounts are read as Decimal."""
    src = tmp_path / "orders.json"
    src.write_text(
        '{"transactions": [{"id": 1, "machineId": 101, "amount": 12000.50},'
        ' {"id": 2, "machineId": null, "amount": 100}]}',
        encoding="utf-8",
    )

    rows = read_transactions(src)

    assert rows[0]["machineId"] == 101
    assert rows[1]["machineId"] is None
    assert rows[0]["amount"] == Decimal("12000.50")


def test_read_transactions_keeps_ids_as_text(tmp_path: Path) -> None:
    """Test that CSV ids are not turned into numbers."""
    src = tmp_path / "orders.csv"
    src.write_text("id,createdAt,amount,machineId\n007,2024-03-01 09:00,100,0042\n", encoding="utf-8")

    df = read_transactions(src)

    assert df.loc[0, "id"] == "007"
    assert df.loc[0, "machineId"] == "0042"


def test_invalid_range_exits(tmp_path: Path) -> None:
    """Test that a rejected request ends the program with a message."""
    src = tmp_path / "orders.json"
    src.write_text("[]", encoding="utf-8")

    with pytest.raises(SystemExit, match="after"):
        main(["--input", str(src), "--from", "2024-03-31", "--to", "2024-03-01", "--quiet"])


def test_missing_input_exits(tmp_path: Path) -> None:
    """Test that a missing input file ends the program."""
    with pytest.raises(SystemExit, match="not found"):
        main(
            [
                "--input", str(tmp_path / "nope.csv"),
                "--from", "2024-03-01",
                "--to", "2024-03-31",
                "--quiet",
            ]
        )
