"""Tests for snapshot loading, settings and the CLI."""

import json
from datetime import date
from decimal import Decimal

import pytest
from typer.testing import CliRunner

from group_ledger.cli import app, format_money
from group_ledger.config import Settings, load_settings
from group_ledger.exceptions import ConfigurationError, SnapshotError
from group_ledger.snapshot import load_snapshot

runner = CliRunner()

SNAPSHOT = {
    "profiles": [
        {"id": "p-ana", "name": "Ana", "position": 1},
        {"id": "p-beto", "name": "Beto", "position": 2},
        {"id": "p-3", "name": "Pessoa", "position": 3},
    ],
    "expenses": [
        {
            "id": "e1",
            "total_amount": 100,
            "paid_by": 1,
            "split_type": "equal",
            "split_value": {"person1": 50, "person2": 50},
            "expense_date": "2026-10-03",
        },
        {
            "id": "e2",
            "total_amount": 60,
            "paid_by": 1,
            "split_type": "equal",
            "split_value": {"person1": 50, "person2": 50},
            "expense_date": "2026-07-03",
        },
    ],
    "agreements": [],
    "settlements": [],
}


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Keep settings independent of the developer's environment."""
    for key in (
        "GROUP_LEDGER_SNAPSHOT_PATH",
        "GROUP_LEDGER_HIDE_VALUES",
        "GROUP_LEDGER_DEFAULT_WINDOW",
        "GROUP_LEDGER_CURRENCY_SYMBOL",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def snapshot_file(tmp_path):
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(SNAPSHOT), encoding="utf-8")
    return path


class TestSnapshot:
    """Loading snapshot files."""

    def test_load(self, snapshot_file):
        snapshot = load_snapshot(snapshot_file, reference_date=date(2026, 10, 18))

        assert [p.display_name for p in snapshot.participants] == ["Ana", "Beto"]
        assert [t.id for t in snapshot.transactions] == ["e1", "e2"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(SnapshotError, match="not found"):
            load_snapshot(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(SnapshotError, match="Invalid snapshot JSON"):
            load_snapshot(path)


class TestSettings:
    """Environment-driven configuration."""

    def test_defaults(self):
        settings = Settings()

        assert settings.snapshot_path is None
        assert settings.currency_symbol == "R$"
        assert settings.default_window == "current_month"

    def test_env_prefix(self, monkeypatch, tmp_path):
        monkeypatch.setenv("GROUP_LEDGER_CURRENCY_SYMBOL", "€")
        monkeypatch.setenv("GROUP_LEDGER_SNAPSHOT_PATH", str(tmp_path / "s.json"))

        settings = load_settings()

        assert settings.currency_symbol == "€"
        assert settings.snapshot_path == tmp_path / "s.json"

    def test_invalid_setting(self, monkeypatch):
        monkeypatch.setenv("GROUP_LEDGER_DEFAULT_WINDOW", "fortnight")

        with pytest.raises(ConfigurationError, match="Failed to load settings"):
            load_settings()


class TestFormatMoney:
    def test_positive_and_negative(self):
        assert format_money(Decimal("85.02"), "$", use_color=False) == " $85.02 "
        assert format_money(Decimal("-85.02"), "$", use_color=False) == "($85.02)"

    def test_hidden(self):
        assert "85" not in format_money(Decimal("85.02"), "$", hidden=True)


class TestBalanceCommand:
    """The balance command end to end."""

    def test_current_month(self, snapshot_file):
        """Only October's expense counts."""
        result = runner.invoke(
            app, ["balance", str(snapshot_file), "--today", "2026-10-18"]
        )

        assert result.exit_code == 0
        assert "Suggested Transfers" in result.output
        assert "50.00" in result.output
        assert "80.00" not in result.output

    def test_all_time(self, snapshot_file):
        result = runner.invoke(
            app, ["balance", str(snapshot_file), "--window", "all"]
        )

        assert result.exit_code == 0
        assert "80.00" in result.output

    def test_hide_values(self, snapshot_file):
        result = runner.invoke(
            app,
            ["balance", str(snapshot_file), "--today", "2026-10-18", "--hide-values"],
        )

        assert result.exit_code == 0
        assert "50.00" not in result.output

    def test_settled_range(self, snapshot_file):
        """A range without expenses is settled."""
        result = runner.invoke(
            app,
            [
                "balance",
                str(snapshot_file),
                "--window",
                "range",
                "--start",
                "2026-01-01",
                "--end",
                "2026-01-31",
            ],
        )

        assert result.exit_code == 0
        assert "All settled" in result.output

    def test_range_requires_bounds(self, snapshot_file):
        result = runner.invoke(
            app, ["balance", str(snapshot_file), "--window", "range"]
        )

        assert result.exit_code != 0

    def test_snapshot_from_settings(self, snapshot_file, monkeypatch):
        monkeypatch.setenv("GROUP_LEDGER_SNAPSHOT_PATH", str(snapshot_file))

        result = runner.invoke(app, ["balance", "--window", "all"])

        assert result.exit_code == 0
        assert "80.00" in result.output

    def test_missing_snapshot_file(self, tmp_path):
        result = runner.invoke(app, ["balance", str(tmp_path / "missing.json")])

        assert result.exit_code == 1
        assert "Error" in result.output


class TestCompareCommand:
    def test_compare(self, snapshot_file):
        result = runner.invoke(
            app, ["compare", str(snapshot_file), "--today", "2026-10-18"]
        )

        assert result.exit_code == 0
        assert "Monthly Spending" in result.output
        assert "100.00" in result.output
