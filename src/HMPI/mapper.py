import abc
import logging
import typing

import pandas as pd

from collections import defaultdict
from stairval.notepad import Notepad

from .indices import CalculationBundle, compute_all
from .metal import (
    REFERENCE_METALS,
    MetalMeasurement,
    parse_metal_label,
    to_micrograms_per_litre,
)
from .validator import ValidatedMeasurements, parse_number, validate

# Minimal required columns (after renaming) to identify each sheet layout
LONG_KEY_COLUMNS = {"sample_id", "symbol", "concentration"}
WIDE_KEY_COLUMNS = {"sample_id"}

DEFAULT_UNIT = "µg/L"


class TableMapper(metaclass=abc.ABCMeta):
    @abc.abstractmethod
    def apply_mapping(
            self, tables: dict[str, pd.DataFrame], notepad: Notepad
    ) -> dict[str, ValidatedMeasurements]:
        # return one validated measurement set per sample
        raise NotImplementedError


class SampleMapper(TableMapper):
    def __init__(self, default_unit: str = DEFAULT_UNIT):
        """
        `default_unit` applies to rows without a unit and to every cell of a
        wide sheet. Raises ValueError for a unit that cannot be converted to µg/L.
        """
        to_micrograms_per_litre(1.0, default_unit)
        self.default_unit = default_unit

    def apply_mapping(
            self, tables: dict[str, pd.DataFrame], notepad: Notepad
    ) -> dict[str, ValidatedMeasurements]:
        """
        Process:
        1) classify each sheet as long (one row per metal) or wide (one row per sample)
        2) map rows to MetalMeasurement records, grouped by sample
        3) validate each sample's set; a sample that fails is reported and dropped
        """
        measurements_by_sample: dict[str, list[MetalMeasurement]] = defaultdict(list)

        for sheet_name, df in tables.items():
            cols = set(df.columns)
            if LONG_KEY_COLUMNS.issubset(cols):
                logging.debug(f"Sheet {sheet_name!r} → LONG")
                self._map_long_sheet(sheet_name, df, measurements_by_sample, notepad)
            elif WIDE_KEY_COLUMNS.issubset(cols) and self._metal_columns(df):
                logging.debug(f"Sheet {sheet_name!r} → WIDE")
                self._map_wide_sheet(sheet_name, df, measurements_by_sample, notepad)
            else:
                notepad.add_warning(
                    f"Skipping sheet {sheet_name!r}: no 'sample_id' with either "
                    f"{sorted(LONG_KEY_COLUMNS)} or metal columns"
                )

        samples: dict[str, ValidatedMeasurements] = {}
        for sample_id, measurements in measurements_by_sample.items():
            try:
                samples[sample_id] = validate(measurements)
            except ValueError as e:
                notepad.add_error(f"Sample {sample_id!r}: {e}")
        return samples

    def calculate_samples(
            self, samples: dict[str, ValidatedMeasurements], notepad: Notepad
    ) -> dict[str, CalculationBundle]:
        """Run the index engine once per sample; samples are never pooled."""
        bundles: dict[str, CalculationBundle] = {}
        for sample_id, measurements in samples.items():
            try:
                bundles[sample_id] = compute_all(measurements)
            except ValueError as e:
                notepad.add_error(f"Sample {sample_id!r}: {e}")
        return bundles

    @staticmethod
    def _normalize_sample_id(value: typing.Any) -> str:
        """
        Sample identifiers:
        - whole-number floats (Excel's habit) lose their '.0'
        - strings are trimmed
        - empty/NaN -> empty string
        """
        if value is None or pd.isna(value):
            return ""
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return str(value).strip()

    @staticmethod
    def _metal_columns(df: pd.DataFrame) -> dict[str, str]:
        """Map column name → metal symbol for every column that names a known metal."""
        found: dict[str, str] = {}
        for column in df.columns:
            if column in WIDE_KEY_COLUMNS:
                continue
            try:
                found[column] = parse_metal_label(str(column))
            except ValueError:
                continue
        return found

    def parse_measurement_row(
            self,
            row: pd.Series,
            sheet_name: str,
            notepad: Notepad,
            column_units: typing.Optional[dict[str, str]] = None,
    ) -> typing.Optional[MetalMeasurement]:
        """
        Build a MetalMeasurement from a long-layout row.
        Required: symbol, concentration. Optional: unit, weight, standard_value.

        Units are resolved per value: the row's `unit` cell, else the unit in
        the column header (`column_units`, see loader.normalize_headers), else
        the mapper's default unit. Without a standard_value the reference
        standard applies. Returns None (and records an error) for an unknown
        metal or unit.
        """
        try:
            symbol = parse_metal_label(row["symbol"])
        except ValueError as e:
            notepad.add_error(f"Sheet {sheet_name!r}, row {row.name}: {e}")
            return None

        column_units = column_units or {}
        row_unit = row.get("unit")
        if row_unit is None or pd.isna(row_unit) or not str(row_unit).strip():
            row_unit = None
        unit = row_unit or column_units.get("concentration") or self.default_unit

        name, reference_standard = REFERENCE_METALS[symbol]
        concentration = row.get("concentration")
        standard_value = row.get("standard_value")
        if standard_value is None or pd.isna(standard_value):
            standard_value = reference_standard
            standard_unit = DEFAULT_UNIT
        else:
            standard_unit = row_unit or column_units.get("standard_value") or self.default_unit

        try:
            # unparseable numbers pass through untouched for the validator to judge
            if parse_number(concentration) is not None:
                concentration = to_micrograms_per_litre(parse_number(concentration), unit)
            if parse_number(standard_value) is not None:
                standard_value = to_micrograms_per_litre(parse_number(standard_value), standard_unit)
        except ValueError as e:
            notepad.add_error(f"Sheet {sheet_name!r}, row {row.name}: {e}")
            return None

        return MetalMeasurement(
            name=name,
            symbol=symbol,
            concentration=concentration,
            standard_value=standard_value,
            weight=row.get("weight"),
        )

    def _map_long_sheet(
            self,
            sheet_name: str,
            df: pd.DataFrame,
            measurements_by_sample: dict[str, list[MetalMeasurement]],
            notepad: Notepad,
    ) -> None:
        column_units = df.attrs.get("column_units", {})
        for index, row in df.iterrows():
            sample_id = self._normalize_sample_id(row["sample_id"])
            if not sample_id:
                notepad.add_error(f"Sheet {sheet_name!r}, row {index}: missing sample_id")
                continue
            measurement = self.parse_measurement_row(row, sheet_name, notepad, column_units)
            if measurement is not None:
                measurements_by_sample[sample_id].append(measurement)

    def _map_wide_sheet(
            self,
            sheet_name: str,
            df: pd.DataFrame,
            measurements_by_sample: dict[str, list[MetalMeasurement]],
            notepad: Notepad,
    ) -> None:
        metal_columns = self._metal_columns(df)
        column_units = df.attrs.get("column_units", {})
        for index, row in df.iterrows():
            sample_id = self._normalize_sample_id(row["sample_id"])
            if not sample_id:
                notepad.add_error(f"Sheet {sheet_name!r}, row {index}: missing sample_id")
                continue
            for column, symbol in metal_columns.items():
                value = row[column]
                # a blank cell means the metal was not analyzed for this sample
                if pd.isna(value):
                    continue
                name, standard_value = REFERENCE_METALS[symbol]
                concentration = parse_number(value)
                if concentration is not None:
                    concentration = to_micrograms_per_litre(concentration, column_units.get(column, self.default_unit))
                else:
                    notepad.add_warning(
                        f"Sheet {sheet_name!r}, row {index}: {symbol} value {value!r} is not a number, using 0"
                    )
                measurements_by_sample[sample_id].append(
                    MetalMeasurement(
                        name=name,
                        symbol=symbol,
                        concentration=concentration,
                        standard_value=standard_value,
                    )
                )
