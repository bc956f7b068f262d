"""Tests for the command-line interface."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from stockdash.cli import main
from stockdash.types import SearchResult, Symbol


def test_no_command_prints_help(capsys: pytest.CaptureFixture[str]) -> None:
    """Running without a command prints usage and succeeds."""
    assert main([]) == 0
    assert "usage" in capsys.readouterr().out.lower()


class TestQuoteCommand:
    """Tests for the quote command."""

    def test_synthetic_quote_json(self, capsys: pytest.CaptureFixture[str]) -> None:
        """JSON output is the wire form of the quote."""
        assert main(["quote", "TCS.NS", "--source", "synthetic", "--period", "1mo", "--json"]) == 0

        payload = json.loads(capsys.readouterr().out)
        assert payload["success"] is True
        assert payload["symbol"] == "TCS.NS"
        assert payload["source"] == "offline"
        assert payload["currency"] == "INR"
        assert len(payload["data"]) == 30
        assert payload["data"][-1]["signal"] in {"BUY", "SELL", "HOLD"}
        assert "distSupport" in payload["data"][-1]

    def test_synthetic_quote_table(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Text output shows the summary and recent bars."""
        assert main(["quote", "AAPL", "--source", "synthetic", "-n", "3"]) == 0

        out = capsys.readouterr().out
        assert "QUOTE AAPL" in out
        assert "Signal:" in out
        assert "SMA14" in out

    def test_engine_config_file(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Engine settings from a YAML file are applied."""
        engine_file = tmp_path / "engine.yaml"
        engine_file.write_text(yaml.dump({"include_distances": False}))

        code = main([
            "quote", "AAPL", "--source", "synthetic",
            "--engine-config", str(engine_file), "--json",
        ])

        assert code == 0
        payload = json.loads(capsys.readouterr().out)
        assert "distSupport" not in payload["data"][-1]

    def test_local_source_without_history_fails(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Errors are printed and reported through the exit code."""
        code = main([
            "quote", "AAPL", "--source", "local", "--no-fallback",
            "--db-path", str(tmp_path / "empty.db"),
        ])

        assert code == 1
        assert "Error: No stored history" in capsys.readouterr().out


class TestSearchCommand:
    """Tests for the search command."""

    RESULTS = [
        SearchResult(symbol=Symbol("TCS.NS"), name="Tata Consultancy Services",
                     exchange="NSE", type="EQUITY"),
    ]

    def test_search_table(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Results are printed as a table."""
        with patch("stockdash.search.search_symbols", return_value=self.RESULTS) as mock:
            assert main(["search", "tata", "-l", "5"]) == 0

        mock.assert_called_once_with("tata", max_results=5)
        out = capsys.readouterr().out
        assert "TCS.NS" in out
        assert "Tata Consultancy Services" in out

    def test_search_json(self, capsys: pytest.CaptureFixture[str]) -> None:
        """JSON output uses the wire form."""
        with patch("stockdash.search.search_symbols", return_value=self.RESULTS):
            assert main(["search", "tata", "--json"]) == 0

        payload = json.loads(capsys.readouterr().out)
        assert payload == [
            {"symbol": "TCS.NS", "name": "Tata Consultancy Services",
             "exchange": "NSE", "type": "EQUITY"}
        ]

    def test_search_no_matches(self, capsys: pytest.CaptureFixture[str]) -> None:
        """An empty result set is reported."""
        with patch("stockdash.search.search_symbols", return_value=[]):
            assert main(["search", "zzzz"]) == 0

        assert "No matches" in capsys.readouterr().out


class TestScanCommand:
    """Tests for the scan command."""

    def test_scan_synthetic(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Each configured symbol gets a row."""
        config_file = tmp_path / "scan.yaml"
        config_file.write_text(yaml.dump({
            "symbols": ["AAPL", "MSFT"],
            "data_source": "synthetic",
            "log_level": "WARNING",
        }))

        assert main(["scan", str(config_file)]) == 0

        out = capsys.readouterr().out
        assert "AAPL" in out
        assert "MSFT" in out

    def test_scan_bad_config_returns_error(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Invalid configuration exits with status 1."""
        config_file = tmp_path / "scan.yaml"
        config_file.write_text(yaml.dump({"period": "6mo"}))

        assert main(["scan", str(config_file)]) == 1
        assert "Error: Missing required field" in capsys.readouterr().out
