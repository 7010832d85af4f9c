import pandas as pd
import pytest

from HMPI.metal import MetalMeasurement


@pytest.fixture
def example_measurements() -> list[MetalMeasurement]:
    """
    The five-metal reference sample: Pb, Cd, Cr, Hg and As, all weight 1.
    Contamination factors 85/15, 12/5, 28/25, 3.2/2 and 15/10 sum to 12.28666…
    """
    return [
        MetalMeasurement(name="Lead", symbol="Pb", concentration=85, standard_value=15, weight=1),
        MetalMeasurement(name="Cadmium", symbol="Cd", concentration=12, standard_value=5, weight=1),
        MetalMeasurement(name="Chromium", symbol="Cr", concentration=28, standard_value=25, weight=1),
        MetalMeasurement(name="Mercury", symbol="Hg", concentration=3.2, standard_value=2, weight=1),
        MetalMeasurement(name="Arsenic", symbol="As", concentration=15, standard_value=10, weight=1),
    ]


@pytest.fixture
def long_workbook(tmp_path) -> str:
    """
    A workbook with one long-layout sheet (two samples) and one sheet that
    matches no layout.
    """
    samples = pd.DataFrame({
        "Sample ID": ["S1", "S1", "S1", "S2", "S2"],
        "Metal": ["Lead (Pb)", "Cadmium (Cd)", "Hg", "Arsenic", "Cu"],
        "Concentration (µg/L)": [85, 0.012, 3.2, 5, 1],
        "Unit": ["µg/L", "mg/L", "ppb", None, "ppm"],
    })
    notes = pd.DataFrame({"remark": ["collected after rainfall"]})
    path = tmp_path / "samples.xlsx"
    with pd.ExcelWriter(path, engine="openpyxl") as w:
        samples.to_excel(w, sheet_name="samples", index=False)
        notes.to_excel(w, sheet_name="notes", index=False)
    return str(path)


@pytest.fixture
def wide_csv(tmp_path) -> str:
    """One row per site with a column per metal, as exported by field survey sheets."""
    path = tmp_path / "survey.csv"
    path.write_text(
        "Site, Latitude, Longitude, Pb, Cd, Cr\n"
        "Site A, 21.1458, 79.0882, 15, 2.5, 30\n"
        "Site B, 19.0760, 72.8777, 3, , 10\n",
        encoding="utf-8",
    )
    return str(path)
