import pathlib
import re

import pandas as pd

from .metal import is_known_unit

# Header aliases → column names the sample mapper expects
RENAME_MAP = {
    # sample columns
    "sample": "sample_id",
    "sampleid": "sample_id",
    "site": "sample_id",
    # long-layout measurement columns
    "metal": "symbol",
    "element": "symbol",
    "conc": "concentration",
    "value": "concentration",
    "standard": "standard_value",
    "standardvalue": "standard_value",
    "limit": "standard_value",
    "units": "unit",
}

# Columns whose "(…)" header suffix is always read as a unit, known or not
UNIT_BEARING_COLUMNS = {"concentration", "standard_value"}

EXCEL_SUFFIXES = {".xlsx", ".xlsm"}

_PARENTHESISED = re.compile(r"\((.*?)\)")


def normalize_headers(df: pd.DataFrame) -> pd.DataFrame:
    """
    Normalize headers to snake_case lowercase and apply RENAME_MAP.

    A unit written in a header, e.g. "Concentration (mg/L)" or "Pb (ppm)", is
    kept in df.attrs["column_units"] under the normalized column name.
    """
    raw = df.columns.astype(str).str.strip()
    df = df.copy()
    df.columns = (
        raw.str.replace(r"\s*\(.*?\)", "", regex=True)  # drop any "(…)"
        .str.replace(r"\s+", "_", regex=True)  # spaces → underscore
        .str.replace(":", "", regex=False)  # drop colons
        .str.lower()
    )
    # apply specific renames (e.g. "metal" → "symbol") unless the target already exists
    df = df.rename(
        columns={
            orig: target
            for orig, target in RENAME_MAP.items()
            if orig in df.columns and target not in df.columns
        }
    )

    column_units: dict[str, str] = {}
    for header, column in zip(raw, df.columns):
        match = _PARENTHESISED.search(header)
        if not match:
            continue
        unit = match.group(1).strip()
        # "Lead (Pb)" carries a symbol, not a unit
        if is_known_unit(unit) or column in UNIT_BEARING_COLUMNS:
            column_units[column] = unit
    df.attrs["column_units"] = column_units
    return df


def load_sheets_as_tables(path: str) -> dict[str, pd.DataFrame]:
    """
    Read sample data into DataFrames keyed by sheet name:
      - Excel workbooks (.xlsx, .xlsm): one table per worksheet, first row = header
      - CSV files: a single table named after the file stem
      - headers normalized with normalize_headers
    """
    source = pathlib.Path(path)
    suffix = source.suffix.lower()
    tables: dict[str, pd.DataFrame] = {}

    if suffix in EXCEL_SUFFIXES:
        excel = pd.ExcelFile(source, engine="openpyxl")
        for sheet_name in excel.sheet_names:
            df = pd.read_excel(excel, sheet_name=sheet_name, header=0, engine="openpyxl")
            tables[sheet_name] = normalize_headers(df)
    elif suffix == ".csv":
        df = pd.read_csv(source, skipinitialspace=True)
        tables[source.stem] = normalize_headers(df)
    else:
        raise ValueError(f"Unsupported sample file type: {source.suffix!r}")

    return tables
