import pytest

from HMPI.indices import INDEX_FORMULAS, IndexResult, IndexType, classify


@pytest.mark.parametrize(
    "value, level",
    [
        (0.0, "Excellent"),
        (24.999999, "Excellent"),
        (25.0, "Good"),
        (49.999999, "Good"),
        (50.0, "Poor"),
        (74.99, "Poor"),
        (75.0, "Very Poor"),
        (99.999, "Very Poor"),
        (100.0, "Critical"),
        (1e6, "Critical"),
    ],
)
def test_hpi_bands(value, level):
    assert classify(value, IndexType.HPI).level == level


@pytest.mark.parametrize(
    "value, level",
    [(0.0, "Low"), (9.99, "Low"), (10.0, "Moderate"), (19.99, "Moderate"), (20.0, "High")],
)
def test_hei_bands(value, level):
    assert classify(value, IndexType.HEI).level == level


@pytest.mark.parametrize("index_type", [IndexType.CD, IndexType.MCD])
@pytest.mark.parametrize(
    "value, level",
    [(0.0, "Low"), (0.999, "Low"), (1.0, "Moderate"), (2.999, "Moderate"), (3.0, "High")],
)
def test_contamination_bands(index_type, value, level):
    assert classify(value, index_type).level == level


def test_classify_keeps_value_unrounded_and_fixed_description():
    result = classify(24.98765, IndexType.HPI)
    assert result == IndexResult(
        value=24.98765,
        level="Excellent",
        description="Water quality is excellent for consumption",
    )
    assert result.formatted == "24.99"


@pytest.mark.parametrize("label, expected", [("hpi", IndexType.HPI), (" HEI ", IndexType.HEI), ("cd", IndexType.CD), ("mCd", IndexType.MCD)])
def test_index_type_from_label(label, expected):
    assert IndexType.from_label(label) == expected


def test_classify_accepts_label():
    assert classify(5, "hei").description == "Low ecological impact"


def test_index_type_invalid_label_raises():
    with pytest.raises(ValueError):
        IndexType.from_label("wqi")


def test_formulas_cover_every_index():
    assert set(INDEX_FORMULAS) == set(IndexType)
    name, formula, _ = INDEX_FORMULAS[IndexType.MCD]
    assert formula == "mCd = Cd / n"
    assert "Modified" in name


def test_nan_has_no_band():
    with pytest.raises(ValueError):
        classify(float("nan"), IndexType.HPI)
