"""Tests for ladder-optimizer CLI commands."""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from ladder_optimizer.cli import cli

AS_OF = "2024-11-27T08:00:00"


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch):
    """Point the default config path at an empty home and clear overrides."""
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    for name in (
        "LADDER_CONFIG_FILE",
        "LADDER_NUM_LEGS",
        "LADDER_ALLOW_REPETITION",
        "LADDER_FALLBACK_VOLATILITY_INDEX",
        "LADDER_MAX_EXERCISE_PROBABILITY",
        "LADDER_REFRESH_INTERVAL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def legs_file(tmp_path: Path, scenario_legs) -> str:
    """Write the three-leg scenario as a JSON list."""
    path = tmp_path / "legs.json"
    path.write_text(json.dumps([leg.to_dict() for leg in scenario_legs]))
    return str(path)


@pytest.fixture
def book_file(tmp_path: Path) -> str:
    """Write exchange book-summary records."""
    records = [
        {"instrument_name": "BTC-27DEC24-54000-P", "mark_price": 0.01,
         "mark_iv": 55.0, "underlying_price": 60000.0},
        {"instrument_name": "BTC-27DEC24-56000-P", "mark_price": 0.015,
         "mark_iv": 50.0, "underlying_price": 60000.0},
        {"instrument_name": "BTC-27DEC24-53000-P", "mark_price": 0.008,
         "mark_iv": 60.0, "underlying_price": 60000.0},
        {"instrument_name": "BTC-27DEC24-61000-P", "mark_price": 0.05,
         "mark_iv": 52.0, "underlying_price": 60000.0},
        {"instrument_name": "BTC-PERPETUAL", "mark_price": 60000.0,
         "underlying_price": 60000.0},
    ]
    path = tmp_path / "book.json"
    path.write_text(json.dumps({"result": records}))
    return str(path)


class TestOptimizeCommand:
    """Tests for 'ladder-optimizer optimize' command."""

    def test_fixed_leg_count(self, runner: CliRunner, legs_file: str) -> None:
        """optimize --legs 2 should print the best pair."""
        result = runner.invoke(cli, ["optimize", legs_file, "--legs", "2"])

        assert result.exit_code == 0
        assert "Optimal 2-Leg Ladder" in result.output
        assert "Top factor:     Expected Value" in result.output
        assert "54000P" in result.output
        assert "52000P" in result.output
        assert "56000P" not in result.output

    def test_json_output(self, runner: CliRunner, legs_file: str) -> None:
        """--json should emit the ladder and highlight keys."""
        result = runner.invoke(cli, ["--json", "optimize", legs_file, "--legs", "2"])

        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert payload["ladder"]["num_legs"] == 2
        assert payload["ladder"]["top_factor"] == "Expected Value"
        assert payload["highlight_keys"] == ["HP-52000-27DEC24", "HP-54000-27DEC24"]

    def test_auto_mode(self, runner: CliRunner, legs_file: str) -> None:
        """Without --legs the configured Auto mode is used."""
        result = runner.invoke(cli, ["--json", "optimize", legs_file])

        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert 1 <= payload["ladder"]["num_legs"] <= 3

    def test_verbose_shows_factors(self, runner: CliRunner, legs_file: str) -> None:
        """--verbose should include factor details."""
        result = runner.invoke(cli, ["-v", "optimize", legs_file, "--legs", "2"])

        assert result.exit_code == 0
        assert "Kelly:" in result.output
        assert "Diversification:" in result.output

    def test_object_input_with_dvol(
        self, runner: CliRunner, tmp_path: Path, scenario_legs
    ) -> None:
        """Input may carry a volatility index, overridden by --dvol."""
        path = tmp_path / "input.json"
        path.write_text(
            json.dumps(
                {"volatility_index": 80, "legs": [leg.to_dict() for leg in scenario_legs]}
            )
        )

        result = runner.invoke(
            cli, ["--json", "optimize", str(path), "--legs", "1", "--dvol", "50"]
        )

        assert result.exit_code == 0
        assert json.loads(result.output)["ladder"]["num_legs"] == 1

    def test_repetition(self, runner: CliRunner, legs_file: str) -> None:
        """--allow-repetition permits ladders larger than the leg list."""
        result = runner.invoke(
            cli, ["--json", "optimize", legs_file, "--legs", "4", "--allow-repetition"]
        )

        assert result.exit_code == 0
        assert json.loads(result.output)["ladder"]["num_legs"] == 4

    def test_no_ladder(self, runner: CliRunner, legs_file: str) -> None:
        """Too few legs should report no ladder and still succeed."""
        result = runner.invoke(cli, ["optimize", legs_file, "--legs", "4"])

        assert result.exit_code == 0
        assert "No ladder available" in result.output

    def test_no_ladder_json(self, runner: CliRunner, legs_file: str) -> None:
        """JSON output reports a null ladder."""
        result = runner.invoke(cli, ["--json", "optimize", legs_file, "--legs", "4"])

        assert result.exit_code == 0
        assert json.loads(result.output) == {"ladder": None, "highlight_keys": []}

    def test_invalid_leg_count(self, runner: CliRunner, legs_file: str) -> None:
        """--legs outside 0..5 is a usage error."""
        result = runner.invoke(cli, ["optimize", legs_file, "--legs", "6"])
        assert result.exit_code == 2

    def test_invalid_json(self, runner: CliRunner, tmp_path: Path) -> None:
        """Unparsable input should fail."""
        path = tmp_path / "bad.json"
        path.write_text("{not json")

        result = runner.invoke(cli, ["optimize", str(path)])

        assert result.exit_code == 1
        assert "Invalid JSON" in result.output

    def test_invalid_leg(self, runner: CliRunner, tmp_path: Path) -> None:
        """Legs missing fields should fail with an error."""
        path = tmp_path / "legs.json"
        path.write_text(json.dumps([{"strike": 54000}]))

        result = runner.invoke(cli, ["optimize", str(path)])

        assert result.exit_code == 1
        assert "missing field" in result.output

    def test_config_file(self, runner: CliRunner, legs_file: str, tmp_path: Path) -> None:
        """Leg count falls back to the config file."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("optimizer:\n  num_legs: 3\n")

        result = runner.invoke(
            cli, ["--config-file", str(config_file), "--json", "optimize", legs_file]
        )

        assert result.exit_code == 0
        assert json.loads(result.output)["ladder"]["num_legs"] == 3

    def test_invalid_config_file(self, runner: CliRunner, legs_file: str, tmp_path: Path) -> None:
        """An invalid config file should fail before running."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("optimizer:\n  num_legs: 9\n")

        result = runner.invoke(cli, ["--config-file", str(config_file), "optimize", legs_file])

        assert result.exit_code == 1
        assert "Error" in result.output


    def test_invalid_volatility_index(
        self, runner: CliRunner, tmp_path: Path, scenario_legs
    ) -> None:
        """A non-numeric volatility index should fail with an error."""
        path = tmp_path / "input.json"
        path.write_text(
            json.dumps(
                {"volatility_index": "high", "legs": [leg.to_dict() for leg in scenario_legs]}
            )
        )

        result = runner.invoke(cli, ["optimize", str(path), "--legs", "2"])

        assert result.exit_code == 1
        assert "Error" in result.output

    def test_mixed_expiry_ladder(self, runner: CliRunner, tmp_path: Path, make_leg) -> None:
        """Ladders spanning expiries list them."""
        legs = [
            make_leg(54000, expiry="27DEC24", dte=30),
            make_leg(54000, expiry="31JAN25", dte=60, premium=0.02),
        ]
        path = tmp_path / "legs.json"
        path.write_text(json.dumps([leg.to_dict() for leg in legs]))

        result = runner.invoke(cli, ["optimize", str(path), "--legs", "2"])

        assert result.exit_code == 0
        expiry_line = next(line for line in result.output.splitlines() if line.startswith("Expiries:"))
        assert "27DEC24" in expiry_line and "31JAN25" in expiry_line
        assert expiry_line.endswith("(mixed)")


class TestCandidatesCommand:
    """Tests for 'ladder-optimizer candidates' command."""

    def test_lists_admitted_legs(self, runner: CliRunner, book_file: str) -> None:
        """Only records passing the filters are listed, best yield first."""
        result = runner.invoke(cli, ["candidates", book_file, "--as-of", AS_OF])

        assert result.exit_code == 0
        assert "3 Candidate Legs" in result.output
        lines = [line for line in result.output.splitlines() if line.startswith("BTC-")]
        assert [line.split()[0] for line in lines] == [
            "BTC-27DEC24-56000-P",
            "BTC-27DEC24-54000-P",
            "BTC-27DEC24-53000-P",
        ]

    def test_output_feeds_optimize(
        self, runner: CliRunner, book_file: str, tmp_path: Path
    ) -> None:
        """--output writes legs that optimize accepts."""
        output = tmp_path / "legs.json"

        result = runner.invoke(
            cli, ["candidates", book_file, "--as-of", AS_OF, "--output", str(output)]
        )
        assert result.exit_code == 0
        assert "Wrote 3 candidate legs" in result.output

        legs = json.loads(output.read_text())
        assert len(legs) == 3
        assert all(leg["days_to_expiry"] == 30 for leg in legs)

        result = runner.invoke(cli, ["--json", "optimize", str(output), "--legs", "2"])
        assert result.exit_code == 0
        assert json.loads(result.output)["ladder"]["num_legs"] == 2

    def test_nothing_admitted(self, runner: CliRunner, book_file: str) -> None:
        """Expired records give a warning."""
        result = runner.invoke(cli, ["candidates", book_file, "--as-of", "2025-01-01T00:00:00"])

        assert result.exit_code == 0
        assert "No candidates admitted" in result.output


    def test_malformed_records_skipped(self, runner: CliRunner, tmp_path: Path) -> None:
        """Records with bad prices or the wrong shape are skipped."""
        records = [
            {"instrument_name": "BTC-27DEC24-54000-P", "mark_price": 0.01,
             "mark_iv": 55.0, "underlying_price": 60000.0},
            {"instrument_name": "BTC-27DEC24-56000-P", "mark_price": "n/a",
             "mark_iv": 50.0, "underlying_price": 60000.0},
            "BTC-27DEC24-53000-P",
        ]
        path = tmp_path / "book.json"
        path.write_text(json.dumps(records))

        result = runner.invoke(cli, ["candidates", str(path), "--as-of", AS_OF])

        assert result.exit_code == 0
        assert "1 Candidate Legs" in result.output
        assert "BTC-27DEC24-54000-P" in result.output

    def test_not_a_list(self, runner: CliRunner, tmp_path: Path) -> None:
        """A JSON scalar is not a record list."""
        path = tmp_path / "book.json"
        path.write_text("42")

        result = runner.invoke(cli, ["candidates", str(path)])

        assert result.exit_code == 1
        assert "Expected a list" in result.output


class TestPriceCommand:
    """Tests for 'ladder-optimizer price' command."""

    def test_put(self, runner: CliRunner) -> None:
        """Put analytics include hedged yield when a premium is given."""
        result = runner.invoke(
            cli,
            ["price", "--spot", "60000", "--strike", "54000", "--dte", "30",
             "--iv", "55", "--premium", "0.01"],
        )

        assert result.exit_code == 0
        assert "54000 PUT" in result.output
        assert "P(exercise): 27." in result.output
        assert "Hedged APY:  13.52%" in result.output

    def test_json(self, runner: CliRunner) -> None:
        """JSON output has probability, tail loss and Greeks."""
        result = runner.invoke(
            cli,
            ["--json", "price", "--spot", "60000", "--strike", "66000", "--dte", "30",
             "--iv", "55", "--type", "call"],
        )

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert set(data) == {"probability_of_exercise", "conditional_tail_loss", "greeks"}
        assert 0 <= data["greeks"]["delta"] <= 1

    def test_missing_option(self, runner: CliRunner) -> None:
        """Required options must be supplied."""
        result = runner.invoke(cli, ["price", "--spot", "60000"])
        assert result.exit_code == 2
