"""
Command-line interface for the HMPI toolkit.
Computes heavy-metal pollution indices (HPI, HEI, Cd, mCd) for a single
measurement panel given on the command line, or for every sample found in
a workbook or CSV file.
"""

import click
import json
import logging
import re
import sys
import typing

from stairval.notepad import create_notepad

from .errors import EmptySetError, IndexOverflowError
from .indices import (
    INDEX_FORMULAS,
    CalculationBundle,
    IndexType,
    compute_all,
    exceeds_standard,
    metals_exceeding_standard,
    sub_index,
)
from .loader import load_sheets_as_tables
from .mapper import DEFAULT_UNIT, SampleMapper
from .metal import (
    DEFAULT_PANEL,
    REFERENCE_METALS,
    MetalMeasurement,
    parse_metal_label,
    reference_measurement,
    to_micrograms_per_litre,
)
from .validator import ValidatedMeasurements, validate

# SYMBOL=VALUE with an optional unit glued on or after a space, e.g. "Pb=0.085mg/L"
_ASSIGNMENT = re.compile(
    r"^\s*(?P<metal>[^=]+?)\s*=\s*(?P<value>[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)\s*(?P<unit>\S*)\s*$"
)

_LEVEL_COLOURS = {
    "Excellent": "green",
    "Low": "green",
    "Good": "cyan",
    "Moderate": "yellow",
    "Poor": "yellow",
    "Very Poor": "red",
    "High": "red",
    "Critical": "red",
}


@click.group()
def main():
    """HMPI: heavy-metal pollution indices for water samples."""
    pass


def _parse_assignments(ctx, param, values: tuple[str, ...]) -> dict[str, tuple[float, str]]:
    # click callback: turn repeated SYMBOL=VALUE[UNIT] options into {symbol: (value, unit)}
    parsed: dict[str, tuple[float, str]] = {}
    for raw in values:
        m = _ASSIGNMENT.match(raw)
        if not m:
            raise click.BadParameter(f"expected SYMBOL=VALUE, got {raw!r}")
        try:
            symbol = parse_metal_label(m.group("metal"))
        except ValueError as e:
            raise click.BadParameter(str(e))
        parsed[symbol] = (float(m.group("value")), m.group("unit") or DEFAULT_UNIT)
    return parsed


def _parse_weights(ctx, param, values: tuple[str, ...]) -> dict[str, float]:
    # click callback: repeated SYMBOL=W options into {symbol: weight}; weights carry no unit
    weights: dict[str, float] = {}
    for raw in values:
        m = _ASSIGNMENT.match(raw)
        if not m:
            raise click.BadParameter(f"expected SYMBOL=W, got {raw!r}")
        if m.group("unit"):
            raise click.BadParameter(f"a weight is a plain number, got unit {m.group('unit')!r} in {raw!r}")
        try:
            symbol = parse_metal_label(m.group("metal"))
        except ValueError as e:
            raise click.BadParameter(str(e))
        weights[symbol] = float(m.group("value"))
    return weights


def _configure_logging(verbose_logging: bool, log_file_path: typing.Optional[str]) -> None:
    handlers: list[logging.Handler] = []
    if log_file_path:
        handlers.append(logging.FileHandler(log_file_path, mode="a", encoding="utf-8"))
    if verbose_logging:
        handlers.append(logging.StreamHandler(sys.stderr))
    if handlers:
        logging.basicConfig(
            level=logging.DEBUG if verbose_logging else logging.INFO,
            format="%(asctime)s %(levelname)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            handlers=handlers,
            force=True,
        )


def _build_panel(
    concentrations: dict[str, tuple[float, str]],
    weights: dict[str, float],
    use_default_panel: bool,
) -> list[MetalMeasurement]:
    symbols = list(DEFAULT_PANEL) if use_default_panel else []
    symbols += [s for s in concentrations if s not in symbols]

    unknown = sorted(set(weights) - set(symbols))
    if unknown:
        raise click.BadParameter(f"weight given for metals not in the panel: {unknown}", param_hint="--weight")

    panel: list[MetalMeasurement] = []
    for symbol in symbols:
        value, unit = concentrations.get(symbol, (0.0, DEFAULT_UNIT))
        try:
            concentration = to_micrograms_per_litre(value, unit)
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint="--metal")
        weight = weights.get(symbol, 1.0)
        panel.append(reference_measurement(symbol, concentration=concentration, weight=weight))
    return panel


def _style_level(level: str) -> str:
    return click.style(f"{level:10}", fg=_LEVEL_COLOURS.get(level))


def _echo_bundle(bundle: CalculationBundle) -> None:
    for index_type in IndexType:
        result = bundle[index_type]
        click.echo(f"{index_type.value:5} {result.formatted:>10}  {_style_level(result.level)}  {result.description}")


def _metal_rows(measurements: ValidatedMeasurements) -> list[dict]:
    return [
        {
            "symbol": m.symbol,
            "name": m.name,
            "concentration": m.concentration,
            "standard_value": m.standard_value,
            "weight": m.weight,
            "sub_index": sub_index(m),
            "exceeds_standard": exceeds_standard(m),
        }
        for m in measurements
    ]


def _echo_metal_breakdown(measurements: ValidatedMeasurements) -> None:
    # concentrations and standards in µg/L; Qi = (Ci/Si) × 100
    click.echo(f"{'METAL':12}{'CONC':>12}{'STANDARD':>10}{'Qi':>10}  STATUS")
    for row in _metal_rows(measurements):
        status = click.style("Exceeds", fg="red") if row["exceeds_standard"] else click.style("Within", fg="green")
        click.echo(
            f"{row['name']:12}{row['concentration']:>12g}{row['standard_value']:>10g}{row['sub_index']:>10.2f}  {status}"
        )


def _echo_risk_assessment(measurements: ValidatedMeasurements) -> None:
    exceeding = metals_exceeding_standard(measurements)
    if exceeding:
        names = ", ".join(m.name for m in exceeding)
        click.echo(click.style("Elevated Levels Detected: ", fg="red") + f"{names} exceed standard values")
    else:
        click.echo(click.style("Within Standards: ", fg="green") + "All metal concentrations are within acceptable limits")


def _report_issues(notepad):
    # if there were errors, show them
    if notepad.has_errors(include_subsections=True):
        click.echo("Errors found in samples:")
        for err in notepad.errors():
            click.echo(f"- {err}")
    # show any warnings but keep going
    if notepad.has_warnings(include_subsections=True):
        click.echo("Warnings found in samples:")
        for w in notepad.warnings():
            click.echo(f"- {w}")


@main.command(name="standards")
def standards():
    """
    List the reference metals and their guideline standards (µg/L).
    """
    click.echo(f"{'SYMBOL':8}{'METAL':12}{'STANDARD':>10}")
    for symbol, (name, standard_value) in REFERENCE_METALS.items():
        marker = "*" if symbol in DEFAULT_PANEL else ""
        click.echo(f"{symbol:8}{name:12}{standard_value:>10g} {marker}".rstrip())
    click.echo("* default calculator panel")


@main.command(name="calculate")
@click.option(
    "-m",
    "--metal",
    "concentrations",
    multiple=True,
    callback=_parse_assignments,
    help="concentration as SYMBOL=VALUE[UNIT], e.g. Pb=85 or Hg=0.0032mg/L (repeatable)",
)
@click.option(
    "-w",
    "--weight",
    "weights",
    multiple=True,
    callback=_parse_weights,
    help="HPI weight as SYMBOL=W (repeatable, default 1.0)",
)
@click.option("--panel/--no-panel", "use_default_panel", default=True, help="Start from the Pb, Cd, Cr, Hg, As panel (default: yes)")
@click.option("-f", "--formulas", "show_formulas", is_flag=True, help="Also print the index formulas")
@click.option("-r", "--raw", "raw", is_flag=True, help="Emit JSON instead of a table")
@click.option("--verbose-logging", is_flag=True, help="Also emit debug logs to stderr")
def calculate(
    concentrations: dict[str, tuple[float, str]],
    weights: dict[str, float],
    use_default_panel: bool,
    show_formulas: bool,
    raw: bool,
    verbose_logging: bool,
):
    """
    Compute HPI, HEI, Cd and mCd for one sample.
    Metals not given with --metal stay at zero concentration.
    """
    _configure_logging(verbose_logging, None)

    panel = _build_panel(concentrations, weights, use_default_panel)
    try:
        measurements = validate(panel)
        bundle = compute_all(measurements)
    except EmptySetError as e:
        click.echo(f"Error: {e}; pass --metal or drop --no-panel", err=True)
        sys.exit(1)
    except IndexOverflowError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    logging.info(f"Calculated indices for {len(measurements)} metals")

    if raw:
        payload = {
            "indices": bundle.to_dict(),
            "metals": _metal_rows(measurements),
            "exceeding_standard": [m.symbol for m in metals_exceeding_standard(measurements)],
        }
        click.echo(json.dumps(payload, indent=2))
        return

    _echo_bundle(bundle)
    click.echo("")
    _echo_metal_breakdown(measurements)
    click.echo("")
    _echo_risk_assessment(measurements)

    if show_formulas:
        click.echo("")
        for index_type in IndexType:
            name, formula, explanation = INDEX_FORMULAS[index_type]
            click.echo(name)
            click.echo(f"    {formula}")
            click.echo(f"    {explanation}")


@main.command(name="parse-excel")
@click.option(
    "-e",
    "--excel-path",
    "excel_file",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="path to the Excel workbook or CSV file with sample data",
)
@click.option("-u", "--unit", "default_unit", default=DEFAULT_UNIT, show_default=True, help="unit for rows without one and for wide sheets")
@click.option("-r", "--raw", "raw", is_flag=True, help="Emit JSON instead of a table")
@click.option("--verbose-logging", is_flag=True, help="Also emit debug logs to stderr")
@click.option(
    "--log-file-path",
    type=click.Path(dir_okay=False, writable=True),
    help="Append timestamped logs to this file",
)
def parse_excel(
    excel_file: str,
    default_unit: str,
    raw: bool,
    verbose_logging: bool,
    log_file_path: typing.Optional[str],
):
    """
    Read each sheet, group metal measurements by sample, and compute the four
    indices for every sample. Sheets may be long (sample_id, metal,
    concentration[, unit, weight, standard_value]) or wide (sample_id plus one
    column per metal).
    """
    _configure_logging(verbose_logging, log_file_path)

    try:
        mapper = SampleMapper(default_unit=default_unit)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    logging.info(f"Beginning parse of '{excel_file}'")
    try:
        tables = load_sheets_as_tables(excel_file)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    logging.debug(f"Loaded sheets: {list(tables.keys())}")

    notepad = create_notepad("samples")
    samples = mapper.apply_mapping(tables, notepad)
    bundles = mapper.calculate_samples(samples, notepad)

    if raw:
        payload = [
            {
                "sample_id": sample_id,
                "metals": [m.symbol for m in samples[sample_id]],
                "indices": bundle.to_dict(),
                "exceeding_standard": [m.symbol for m in metals_exceeding_standard(samples[sample_id])],
            }
            for sample_id, bundle in bundles.items()
        ]
        click.echo(json.dumps(payload, indent=2))
        # keep stdout parseable; issues go to the log instead
        for err in notepad.errors():
            logging.error(f"{err}")
        for w in notepad.warnings():
            logging.warning(f"{w}")
    else:
        header = "  ".join(f"{index_type.value:>8}  {'LEVEL':10}" for index_type in IndexType)
        click.echo(f"{'SAMPLE':12}  {header}")
        for sample_id, bundle in bundles.items():
            cells = "  ".join(
                f"{bundle[index_type].formatted:>8}  {_style_level(bundle[index_type].level)}"
                for index_type in IndexType
            )
            click.echo(f"{sample_id:12}  {cells}")
        click.echo("")
        _report_issues(notepad)
        click.echo(f"Calculated indices for {len(bundles)} samples")

    logging.info(f"Calculated indices for {len(bundles)} samples from '{excel_file}'")
    if not bundles:
        click.echo("Error: no sample could be calculated", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
