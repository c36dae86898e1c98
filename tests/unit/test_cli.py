"""Test the click CLI over a readings export."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from glyloop.cli import main, parse_readings


def _export(tmp_path, records, wrap=True):
    path = tmp_path / "egvs.json"
    path.write_text(json.dumps({"records": records} if wrap else records))
    return str(path)


RECORDS = [
    {"systemTime": "2024-06-01T09:50:00+00:00", "value": 65, "trend": "flat"},
    {"systemTime": "2024-06-01T09:55:00+00:00", "value": 140},
    {"systemTime": "2024-06-01T10:05:00+00:00", "value": 150},
    {"systemTime": "2024-06-01T10:20:00+00:00", "value": 210},
]


class TestParseReadings:
    def test_records_wrapper(self):
        readings = parse_readings({"records": RECORDS})
        assert [r.value_mg_dl for r in readings] == [65, 140, 150, 210]
        assert readings[0].trend == "flat"

    def test_bare_list(self):
        assert len(parse_readings(RECORDS)) == 4


class TestTirCommand:
    def test_default_range(self, tmp_path):
        result = CliRunner().invoke(main, ["tir", _export(tmp_path, RECORDS)])
        assert result.exit_code == 0, result.output
        assert "50.0% in 70-180 mg/dL" in result.output
        assert "(2/4; below 1, above 1)" in result.output

    def test_custom_range(self, tmp_path):
        result = CliRunner().invoke(
            main, ["tir", _export(tmp_path, RECORDS, wrap=False), "--lower", "60", "--upper", "250"],
        )
        assert result.exit_code == 0, result.output
        assert "100.0% in 60-250 mg/dL" in result.output

    def test_invalid_range(self, tmp_path):
        result = CliRunner().invoke(
            main, ["tir", _export(tmp_path, RECORDS), "--lower", "200", "--upper", "100"],
        )
        assert result.exit_code != 0

    def test_missing_file(self, tmp_path):
        result = CliRunner().invoke(main, ["tir", str(tmp_path / "nope.json")])
        assert result.exit_code != 0

    @pytest.mark.parametrize(
        "records",
        [
            [{"value": 110}],
            [{"systemTime": "yesterday", "value": 110}],
            [{"systemTime": "2024-06-01T10:00:00", "value": 110}],
            [{"systemTime": "2024-06-01T10:00:00+00:00", "value": "high"}],
        ],
    )
    def test_bad_records_are_usage_errors(self, tmp_path, records):
        result = CliRunner().invoke(main, ["tir", _export(tmp_path, records)])
        assert result.exit_code == 2
        assert isinstance(result.exception, SystemExit)

    def test_bad_json_is_usage_error(self, tmp_path):
        path = tmp_path / "egvs.json"
        path.write_text("{not json")
        result = CliRunner().invoke(main, ["tir", str(path)])
        assert result.exit_code == 2


class TestOutcomeCommand:
    def test_nearest_reading(self, tmp_path):
        result = CliRunner().invoke(
            main,
            ["outcome", _export(tmp_path, RECORDS), "--meal-time", "2024-06-01T08:00:00+00:00"],
        )
        assert result.exit_code == 0, result.output
        assert "140 mg/dL at 2024-06-01T09:55:00+00:00" in result.output

    def test_no_reading(self, tmp_path):
        result = CliRunner().invoke(
            main,
            ["outcome", _export(tmp_path, RECORDS), "--meal-time", "2024-06-01T05:00:00+00:00"],
        )
        assert result.exit_code == 0, result.output
        assert "No reading available" in result.output

    def test_naive_meal_time(self, tmp_path):
        result = CliRunner().invoke(
            main, ["outcome", _export(tmp_path, RECORDS), "--meal-time", "2024-06-01T08:00:00"],
        )
        assert result.exit_code != 0


class TestConfigOption:
    def test_offset_from_toml(self, tmp_path):
        config = tmp_path / "glyloop.toml"
        config.write_text("[outcome]\noffset_minutes = 140\ntolerance_minutes = 5\n")
        result = CliRunner().invoke(
            main,
            ["--config", str(config), "outcome", _export(tmp_path, RECORDS),
             "--meal-time", "2024-06-01T08:00:00+00:00"],
        )
        assert result.exit_code == 0, result.output
        assert "210 mg/dL" in result.output

    @pytest.mark.parametrize("args", [["--config", "/nonexistent/glyloop.toml", "tir", "x"]])
    def test_bad_config(self, args):
        result = CliRunner().invoke(main, args)
        assert result.exit_code != 0
