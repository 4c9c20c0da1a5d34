from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from patrimony.app.cli import app
from patrimony.config import HOME_ENV

runner = CliRunner()


@pytest.fixture
def home(monkeypatch, tmp_path):
    monkeypatch.setenv(HOME_ENV, str(tmp_path))
    return tmp_path


def _capture(text: str, *args: str):
    return runner.invoke(app, ["capture", *args], input=text)


def test_version(home):
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0, result.output
    assert "patrimony 0.1.0" in result.output
    assert (home / "config.toml").exists()


def test_capture_history_and_show(home, btc_row):
    result = _capture(btc_row + "\n", "--date", "2024-01-31", "--tag", "jan")
    assert result.exit_code == 0, result.output
    assert "Snapshot saved" in result.output
    assert "value 12,000.00" in result.output

    stored = json.loads((home / "patrimony.json").read_text(encoding="utf-8"))
    snapshots = json.loads(stored["values"]["portfolio_snapshots"])
    assert snapshots[0]["tag"] == "jan"

    result = runner.invoke(app, ["history"])
    assert result.exit_code == 0, result.output
    assert "History" in result.output

    result = runner.invoke(app, ["show", "--tabular"])
    assert result.exit_code == 0, result.output
    assert "BTC\tLong\tCrypto\t20.000,00" in result.output


def test_capture_without_input_fails(home):
    result = _capture("", "--date", "2024-01-31")
    assert result.exit_code == 1
    assert "Paste your portfolio data" in result.output


def test_reports_on_empty_store(home):
    for command in (["summary"], ["dashboard"], ["roi"], ["categories"], ["composition"], ["opportunities"]):
        result = runner.invoke(app, command)
        assert result.exit_code == 0, (command, result.output)


def test_invalid_range_and_category(home, btc_row):
    _capture(btc_row, "--date", "2024-01-31")
    assert runner.invoke(app, ["dashboard", "--range", "2w"]).exit_code == 2
    assert runner.invoke(app, ["dashboard", "--category", "Bonds"]).exit_code == 2
    assert runner.invoke(app, ["roi", "--mode", "weekly"]).exit_code == 2
    result = runner.invoke(app, ["dashboard", "--category", "Crypto", "--range", "1y"])
    assert result.exit_code == 0, result.output


def test_roi_export(home, btc_row):
    _capture(btc_row, "--date", "2024-01-31")
    target = home / "roi.csv"
    result = runner.invoke(app, ["roi", "--mode", "periodic", "--export", "csv", str(target)])
    assert result.exit_code == 0, result.output
    assert target.read_text(encoding="utf-8").splitlines()[0] == "date,pct,gain"

    bad = runner.invoke(app, ["roi", "--export", "xls", str(home / "roi.xls")])
    assert bad.exit_code == 2


def test_export_and_import(home, btc_row, etf_row):
    _capture(btc_row, "--date", "2024-01-31")
    _capture(etf_row, "--date", "2024-02-29")
    backup = home / "backup.json"
    result = runner.invoke(app, ["export", str(backup)])
    assert result.exit_code == 0, result.output
    assert len(json.loads(backup.read_text(encoding="utf-8"))) == 2

    history = json.loads(backup.read_text(encoding="utf-8"))
    result = runner.invoke(app, ["delete", str(history[0]["id"]), "--yes"])
    assert result.exit_code == 0, result.output
    assert "Snapshot deleted" in result.output

    result = runner.invoke(app, ["import", str(backup), "--yes"])
    assert result.exit_code == 0, result.output
    assert "Imported 2 snapshots" in result.output

    invalid = home / "invalid.json"
    invalid.write_text("{}", encoding="utf-8")
    result = runner.invoke(app, ["import", str(invalid), "--yes"])
    assert result.exit_code == 1


def test_targets_commands(home, btc_row, etf_row):
    _capture("\n".join([btc_row, etf_row]), "--date", "2024-01-31")
    assert runner.invoke(app, ["targets", "set", "Crypto", "60"]).exit_code == 0
    assert runner.invoke(app, ["targets", "budget", "500"]).exit_code == 0
    assert runner.invoke(app, ["targets", "asset", "Crypto", "BTC", "100"]).exit_code == 0
    assert runner.invoke(app, ["targets", "monthly", "Funds", "50"]).exit_code == 0

    result = runner.invoke(app, ["targets", "show"])
    assert result.exit_code == 0, result.output
    assert "Targets: 60.0% (40.0% missing)" in result.output

    result = runner.invoke(app, ["targets", "auto-balance"])
    assert result.exit_code == 0, result.output
    assert "Monthly contributions balanced" in result.output

    result = runner.invoke(app, ["targets", "show", "--category", "Crypto"])
    assert result.exit_code == 0, result.output


def test_select_remembers_category(home, btc_row, etf_row):
    _capture("\n".join([btc_row, etf_row]), "--date", "2024-01-31")
    result = runner.invoke(app, ["select", "Funds"])
    assert result.exit_code == 0, result.output
    assert "Selected Funds" in result.output
    stored = json.loads((home / "patrimony.json").read_text(encoding="utf-8"))
    assert stored["values"]["portfolio_selected_category"] == "Funds"

    assert runner.invoke(app, ["select", "Bonds"]).exit_code == 2
    assert "whole portfolio" in runner.invoke(app, ["select"]).output


def test_holdings_set_and_changes(home, btc_row):
    _capture(btc_row, "--date", "2024-01-31")
    result = runner.invoke(app, ["holdings", "set", "BTC", "--quantity", "1", "--yes"])
    assert result.exit_code == 0, result.output
    assert "New snapshot created" in result.output
    assert "Holdings saved (append)" in result.output

    result = runner.invoke(app, ["holdings", "changes"])
    assert "Assets changed: 1" in result.output
    result = runner.invoke(app, ["holdings", "changes"])
    assert "No pending changes summary" in result.output

    history = json.loads(
        json.loads((home / "patrimony.json").read_text(encoding="utf-8"))["values"]["portfolio_snapshots"]
    )
    assert len(history) == 2

    assert runner.invoke(app, ["holdings", "set", "DOGE", "--price", "1", "--yes"]).exit_code == 2
    assert runner.invoke(app, ["holdings", "set", "BTC"]).exit_code == 2


def test_holdings_set_prefers_names_over_row_numbers(home, btc_row, etf_row):
    fund_row = etf_row.replace("World ETF", "2030", 1)
    _capture(fund_row + "\n" + btc_row, "--date", "2024-01-31")
    result = runner.invoke(app, ["holdings", "set", "2030", "--quantity", "2", "--yes"])
    assert result.exit_code == 0, result.output
    result = runner.invoke(app, ["holdings", "set", "1", "--price", "30000", "--yes"])
    assert result.exit_code == 0, result.output

    history = json.loads(
        json.loads((home / "patrimony.json").read_text(encoding="utf-8"))["values"]["portfolio_snapshots"]
    )
    fund, btc = history[-1]["assets"]
    assert fund[0] == "2030"
    assert fund[4] == 2.0
    assert btc[0] == "BTC"
    assert btc[5] == 30000.0


def test_terms_report(home, btc_row, etf_row):
    assert "No snapshots yet" in runner.invoke(app, ["terms"]).output
    _capture(btc_row.replace("\tLong\t", "\tShort\t", 1) + "\n" + etf_row, "--date", "2024-01-31")
    target = home / "terms.csv"
    result = runner.invoke(app, ["terms", "--export", "csv", str(target)])
    assert result.exit_code == 0, result.output
    assert "Short" in result.output
    assert target.read_text(encoding="utf-8").splitlines() == [
        "term,value,percent",
        "Short,12000.0000,72.7273",
        "Long,4500.0000,27.2727",
    ]


def test_sync_requires_url(home):
    assert runner.invoke(app, ["sync", "pull"]).exit_code == 2
