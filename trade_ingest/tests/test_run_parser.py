"""Tests for the command-line entry point."""

from __future__ import annotations

import json

from trade_ingest.parsers import generate_sample_csv
from trade_ingest.run_parser import main


def _write(tmp_path, text, name="trades.csv"):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


def test_summary_for_clean_file(tmp_path, capsys):
    path = _write(tmp_path, generate_sample_csv())
    assert main([str(path)]) == 0
    out = capsys.readouterr().out
    assert "Valid rows:        7" in out
    assert "Invalid rows:      0" in out
    assert "trades.csv" in out


def test_invalid_rows_exit_one(tmp_path, capsys):
    """Exit code 1 when any row fails validation."""
    path = _write(tmp_path, "Symbol,Side,Entry Price,Date\n,long,1,2024-01-15\n")
    assert main([str(path)]) == 1
    out = capsys.readouterr().out
    assert "Symbol is required" in out


def test_missing_file(tmp_path, capsys):
    assert main([str(tmp_path / "nope.csv")]) == 2
    assert "File not found" in capsys.readouterr().err


def test_structural_failure(tmp_path, capsys):
    path = _write(tmp_path, "Symbol,Side\n")
    assert main([str(path)]) == 2
    assert "header row" in capsys.readouterr().err


def test_json_output(tmp_path, capsys):
    path = _write(tmp_path, generate_sample_csv())
    main([str(path), "--json"])
    body = json.loads(capsys.readouterr().out)
    assert body["validCount"] == 7


def test_records_output_with_timezone(tmp_path, capsys):
    path = _write(tmp_path, "Symbol,Side,Entry Price,Date\nAAPL,buy,1,2024-01-15 09:30:00\n")
    assert main([str(path), "--records", "--timezone", "America/New_York"]) == 0
    records = json.loads(capsys.readouterr().out)
    assert records[0]["asset"] == "AAPL"
    assert records[0]["direction"] == "long"
    assert records[0]["entry_datetime_utc"] == "2024-01-15T14:30:00.000Z"


def test_bom_file(tmp_path, capsys):
    """A UTF-8 BOM does not end up in the first header."""
    path = tmp_path / "bom.csv"
    path.write_text("Symbol,Side,Entry Price,Date\nAAPL,long,1,2024-01-15\n", encoding="utf-8-sig")
    main([str(path), "--json"])
    assert json.loads(capsys.readouterr().out)["headers"][0] == "Symbol"
