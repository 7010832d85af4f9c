import json

import pytest

from click.testing import CliRunner

from HMPI.__main__ import main

REFERENCE_ARGS = ["-m", "Pb=85", "-m", "Cd=12", "-m", "Cr=28", "-m", "Hg=3.2", "-m", "As=15"]


def test_calculate_reference_sample_table():
    runner = CliRunner()
    result = runner.invoke(main, ["calculate", *REFERENCE_ARGS])
    assert result.exit_code == 0, result.output

    lines = result.output.splitlines()
    assert lines[0].split()[:3] == ["HPI", "245.73", "Critical"]
    assert lines[1].split()[:3] == ["HEI", "12.29", "Moderate"]
    assert lines[2].split()[:3] == ["Cd", "12.29", "High"]
    assert lines[3].split()[:3] == ["mCd", "2.46", "Moderate"]
    assert "Elevated Levels Detected" in result.output
    assert "Lead, Cadmium, Chromium, Mercury, Arsenic exceed standard values" in result.output


def test_calculate_defaults_to_clean_panel():
    runner = CliRunner()
    result = runner.invoke(main, ["calculate"])
    assert result.exit_code == 0, result.output
    assert "Excellent" in result.output
    assert "Within Standards" in result.output


def test_calculate_json_with_units_and_weights():
    runner = CliRunner()
    result = runner.invoke(
        main, ["calculate", "--no-panel", "-m", "Hg=0.004mg/L", "-m", "As=5", "-w", "Hg=3", "-r"]
    )
    assert result.exit_code == 0, result.output

    payload = json.loads(result.stdout)
    # Hg: 4/2 → Qi 200, weight 3; As: 5/10 → Qi 50, weight 1
    assert payload["indices"]["HPI"]["value"] == pytest.approx(162.5)
    assert payload["indices"]["Cd"]["value"] == pytest.approx(2.5)
    assert payload["exceeding_standard"] == ["Hg"]


def test_calculate_formulas_flag():
    runner = CliRunner()
    result = runner.invoke(main, ["calculate", "-f"])
    assert result.exit_code == 0, result.output
    assert "HPI = Σ(Wi × Qi) / ΣWi" in result.output
    assert "mCd = Cd / n" in result.output


def test_calculate_empty_panel_fails():
    runner = CliRunner()
    result = runner.invoke(main, ["calculate", "--no-panel"])
    assert result.exit_code == 1
    assert "empty measurement set" in result.output


def test_calculate_unknown_metal_is_usage_error():
    runner = CliRunner()
    result = runner.invoke(main, ["calculate", "-m", "Fe=300"])
    assert result.exit_code == 2
    assert "Unknown metal" in result.output


def test_calculate_weight_for_missing_metal_is_usage_error():
    runner = CliRunner()
    result = runner.invoke(main, ["calculate", "-w", "Zn=2"])
    assert result.exit_code == 2


def test_standards_lists_reference_table():
    runner = CliRunner()
    result = runner.invoke(main, ["standards"])
    assert result.exit_code == 0, result.output
    assert result.output.splitlines()[0].startswith("SYMBOL")
    assert "Mercury" in result.output
    assert "Nickel" in result.output


def test_calculate_table_shows_each_metal():
    runner = CliRunner()
    result = runner.invoke(main, ["calculate", *REFERENCE_ARGS])
    assert result.exit_code == 0, result.output

    lines = result.output.splitlines()
    header = lines.index(next(line for line in lines if line.startswith("METAL")))
    rows = {line.split()[0]: line.split() for line in lines[header + 1:header + 6]}
    # Lead: 85/15 × 100
    assert rows["Lead"][1:] == ["85", "15", "566.67", "Exceeds"]
    assert rows["Mercury"][1:] == ["3.2", "2", "160.00", "Exceeds"]


def test_calculate_json_lists_each_metal():
    runner = CliRunner()
    result = runner.invoke(main, ["calculate", "--no-panel", "-m", "Pb=7.5", "-m", "Cd=6", "-w", "Cd=2", "-r"])
    assert result.exit_code == 0, result.output

    metals = {row["symbol"]: row for row in json.loads(result.stdout)["metals"]}
    assert list(metals) == ["Pb", "Cd"]
    assert metals["Pb"]["sub_index"] == pytest.approx(50.0)
    assert metals["Pb"]["exceeds_standard"] is False
    assert metals["Cd"]["sub_index"] == pytest.approx(120.0)
    assert metals["Cd"]["weight"] == 2.0
    assert metals["Cd"]["exceeds_standard"] is True


def test_calculate_weight_with_unit_is_usage_error():
    runner = CliRunner()
    result = runner.invoke(main, ["calculate", "-m", "Pb=85", "-w", "Pb=2mg/L"])
    assert result.exit_code == 2
    assert "plain number" in result.output


def test_calculate_out_of_range_concentration_fails():
    runner = CliRunner()
    result = runner.invoke(main, ["calculate", "-m", "Pb=1e308"])
    assert result.exit_code == 1
    assert "not a finite number" in result.output
