"""
Heavy-metal pollution indices.

Computes the four standard indices from a validated measurement set and
classifies each against fixed severity bands:

  HPI = Σ(Wi × Qi) / ΣWi        Qi = (Ci / Si) × 100
  HEI = Σ(Ci / Si)
  Cd  = Σ(Ci / Si)              (same sum as HEI by definition)
  mCd = Cd / n

Every function here is pure; the only entry point the dashboard needs is
`compute_all`.
"""

import math

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Sequence

from .errors import EmptySetError, IndexOverflowError
from .metal import MetalMeasurement


class IndexType(Enum):
    """The four pollution indices, valued by their display abbreviation."""

    HPI = "HPI"
    HEI = "HEI"
    CD = "Cd"
    MCD = "mCd"

    @classmethod
    def from_label(cls, label: str) -> "IndexType":
        """
        Convert a label such as 'hpi', 'Cd' or ' mCd ' into the enum.
        Matching is case-insensitive.
        """
        key = label.strip().lower()
        for index_type in cls:
            if index_type.value.lower() == key:
                return index_type
        raise ValueError(f"Unknown index type: {label!r}")


@dataclass(frozen=True)
class IndexResult:
    """
    One classified index value.

    Attributes:
        value: The computed, unrounded index value.
        level: Severity label from the index's band table.
        description: Fixed guidance text tied to the level.
    """

    value: float
    level: str
    description: str

    @property
    def formatted(self) -> str:
        return f"{self.value:.2f}"


@dataclass(frozen=True)
class CalculationBundle:
    """The four indices computed from one measurement set."""

    hpi: IndexResult
    hei: IndexResult
    cd: IndexResult
    mcd: IndexResult

    def __getitem__(self, index_type: IndexType) -> IndexResult:
        return getattr(self, index_type.name.lower())

    def to_dict(self) -> dict[str, dict]:
        return {
            index_type.value: {
                "value": self[index_type].value,
                "level": self[index_type].level,
                "description": self[index_type].description,
            }
            for index_type in IndexType
        }


# (exclusive upper bound, level, description); None closes the last band
_HPI_BANDS = (
    (25.0, "Excellent", "Water quality is excellent for consumption"),
    (50.0, "Good", "Water quality is good with minor concerns"),
    (75.0, "Poor", "Water quality is poor, treatment recommended"),
    (100.0, "Very Poor", "Water quality is very poor, immediate action required"),
    (None, "Critical", "Critical contamination level, unsafe for any use"),
)
_HEI_BANDS = (
    (10.0, "Low", "Low ecological impact"),
    (20.0, "Moderate", "Moderate ecological impact"),
    (None, "High", "High ecological impact"),
)
_CONTAMINATION_BANDS = (
    (1.0, "Low", "Low contamination level"),
    (3.0, "Moderate", "Moderate contamination level"),
    (None, "High", "High contamination level"),
)

SEVERITY_BANDS = MappingProxyType({
    IndexType.HPI: _HPI_BANDS,
    IndexType.HEI: _HEI_BANDS,
    IndexType.CD: _CONTAMINATION_BANDS,
    IndexType.MCD: _CONTAMINATION_BANDS,
})

# name, formula and explanation shown next to each index
INDEX_FORMULAS = MappingProxyType({
    IndexType.HPI: (
        "Heavy Metal Pollution Index (HPI)",
        "HPI = Σ(Wi × Qi) / ΣWi",
        "Where Wi is the unit weight of metal i, and Qi is the sub-index of metal i "
        "calculated as (Ci/Si) × 100",
    ),
    IndexType.HEI: (
        "Heavy Metal Evaluation Index (HEI)",
        "HEI = Σ(Ci/Si)",
        "Where Ci is the concentration of metal i and Si is the standard value for metal i",
    ),
    IndexType.CD: (
        "Contamination Degree (Cd)",
        "Cd = Σ(Ci/Si)",
        "Sum of contamination factors for all metals",
    ),
    IndexType.MCD: (
        "Modified Contamination Degree (mCd)",
        "mCd = Cd / n",
        "Where Cd is the contamination degree and n is the number of metals analyzed",
    ),
})


def contamination_factor(measurement: MetalMeasurement) -> float:
    """Cf = concentration / standard value."""
    return measurement.concentration / measurement.standard_value


def sub_index(measurement: MetalMeasurement) -> float:
    """Qi, the per-metal quality rating used by HPI."""
    return contamination_factor(measurement) * 100


def _finite(value: float, index_type: IndexType) -> float:
    if not math.isfinite(value):
        raise IndexOverflowError(index_type.value, value)
    return value


def calculate_hpi(measurements: Sequence[MetalMeasurement]) -> float:
    """
    Weighted mean of the sub-indices. Weights are scaled by the largest one
    first, so the weight sum stays within n however large the weights are.
    """
    if not measurements:
        raise EmptySetError(IndexType.HPI.value)
    max_weight = max(m.weight for m in measurements)
    numerator = sum((m.weight / max_weight) * sub_index(m) for m in measurements)
    denominator = sum(m.weight / max_weight for m in measurements)
    return _finite(numerator / denominator, IndexType.HPI)


def calculate_hei(measurements: Sequence[MetalMeasurement]) -> float:
    return _finite(sum(contamination_factor(m) for m in measurements), IndexType.HEI)


def calculate_cd(measurements: Sequence[MetalMeasurement]) -> float:
    # Identical to HEI: both are the plain sum of contamination factors
    return _finite(sum(contamination_factor(m) for m in measurements), IndexType.CD)


def calculate_mcd(measurements: Sequence[MetalMeasurement]) -> float:
    if not measurements:
        raise EmptySetError(IndexType.MCD.value)
    return calculate_cd(measurements) / len(measurements)


def classify(value: float, index_type) -> IndexResult:
    """
    Place `value` in the severity band of `index_type` (an IndexType or a
    label accepted by IndexType.from_label). Each band includes its lower
    bound: an HPI of exactly 25 is 'Good'.
    NaN has no band and raises ValueError.
    """
    if not isinstance(index_type, IndexType):
        index_type = IndexType.from_label(index_type)
    if math.isnan(value):
        raise ValueError(f"Cannot classify NaN as {index_type.value}")
    for upper_bound, level, description in SEVERITY_BANDS[index_type]:
        if upper_bound is None or value < upper_bound:
            return IndexResult(value=value, level=level, description=description)
    raise AssertionError(f"No open-ended band for {index_type}")


def compute_all(measurements: Sequence[MetalMeasurement]) -> CalculationBundle:
    """
    Compute and classify HPI, HEI, Cd and mCd for one validated measurement set.
    Raises EmptySetError when the set is empty and IndexOverflowError when
    an index is too large to be represented.
    """
    measurements = tuple(measurements)
    return CalculationBundle(
        hpi=classify(calculate_hpi(measurements), IndexType.HPI),
        hei=classify(calculate_hei(measurements), IndexType.HEI),
        cd=classify(calculate_cd(measurements), IndexType.CD),
        mcd=classify(calculate_mcd(measurements), IndexType.MCD),
    )


def exceeds_standard(measurement: MetalMeasurement) -> bool:
    return measurement.concentration > measurement.standard_value


def metals_exceeding_standard(measurements: Sequence[MetalMeasurement]) -> tuple[MetalMeasurement, ...]:
    """Measurements above their guideline standard, in input order."""
    return tuple(m for m in measurements if exceeds_standard(m))
