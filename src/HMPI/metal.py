"""
Metal measurement domain model.

Defines the MetalMeasurement dataclass, the reference table of guideline
standards for the metals the dashboard knows about, and unit conversion
to µg/L.
"""

import re
from dataclasses import dataclass
from types import MappingProxyType


@dataclass(frozen=True)
class MetalMeasurement:
    """
    Represents one heavy metal's data for a single water sample.

    Attributes:
        name: Human-readable metal name (e.g. 'Lead').
        symbol: Element symbol, unique within a measurement set (e.g. 'Pb').
        concentration: Measured concentration in µg/L.
        standard_value: Guideline limit in µg/L; divisor of every index.
        weight: Relative importance of the metal, used only by HPI.
    """

    name: str
    symbol: str
    concentration: float = 0.0
    standard_value: float = 1.0
    weight: float = 1.0


# symbol → (name, standard in µg/L)
REFERENCE_METALS = MappingProxyType({
    "Pb": ("Lead", 15.0),
    "Cd": ("Cadmium", 5.0),
    "Cr": ("Chromium", 25.0),
    "Hg": ("Mercury", 2.0),
    "As": ("Arsenic", 10.0),
    "Cu": ("Copper", 2000.0),
    "Zn": ("Zinc", 5000.0),
    "Ni": ("Nickel", 70.0),
})

# The panel the calculator starts with
DEFAULT_PANEL = ("Pb", "Cd", "Cr", "Hg", "As")

# Multipliers to µg/L; keys are lower-cased with 'µ'/'μ' folded to 'u'
UNIT_FACTORS = MappingProxyType({
    "ug/l": 1.0,
    "ppb": 1.0,
    "mg/l": 1000.0,
    "ppm": 1000.0,
})

# "Lead (Pb)" as offered by the data-entry form
_LABEL_WITH_SYMBOL = re.compile(r"^\s*(?P<name>[^()]*?)\s*\(\s*(?P<symbol>[A-Za-z]{1,2})\s*\)\s*$")


def reference_measurement(symbol: str, concentration: float = 0.0, weight: float = 1.0) -> MetalMeasurement:
    """
    Build a MetalMeasurement for a known metal, taking name and standard
    from REFERENCE_METALS. Raises KeyError for an unknown symbol.
    """
    name, standard_value = REFERENCE_METALS[symbol]
    return MetalMeasurement(
        name=name,
        symbol=symbol,
        concentration=concentration,
        standard_value=standard_value,
        weight=weight,
    )


def default_measurements() -> tuple[MetalMeasurement, ...]:
    """The five-metal panel at zero concentration."""
    return tuple(reference_measurement(symbol) for symbol in DEFAULT_PANEL)


def parse_metal_label(label: str) -> str:
    """
    Resolve a metal label to its reference symbol.

    Accepts 'Lead (Pb)', 'Pb', 'PB' or 'lead'. Raises ValueError when the
    label names no known metal.
    """
    if not isinstance(label, str) or not label.strip():
        raise ValueError(f"Unknown metal: {label!r}")

    match = _LABEL_WITH_SYMBOL.match(label)
    candidates = [match.group("symbol"), match.group("name")] if match else [label]

    for candidate in candidates:
        key = candidate.strip().casefold()
        if not key:
            continue
        for symbol, (name, _) in REFERENCE_METALS.items():
            if key in (symbol.casefold(), name.casefold()):
                return symbol
    raise ValueError(f"Unknown metal: {label!r}")


def _unit_key(unit: str) -> str:
    return str(unit).strip().lower().replace("µ", "u").replace("μ", "u").replace(" ", "")


def is_known_unit(unit: str) -> bool:
    return _unit_key(unit) in UNIT_FACTORS


def to_micrograms_per_litre(value: float, unit: str) -> float:
    """
    Convert a concentration to µg/L.
    µg/L and ppb are taken as-is, mg/L and ppm are multiplied by 1000.
    """
    try:
        factor = UNIT_FACTORS[_unit_key(unit)]
    except KeyError:
        raise ValueError(f"Unknown concentration unit: {unit!r}")
    return value * factor
