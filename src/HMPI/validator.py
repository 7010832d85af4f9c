"""
Measurement validation.

Normalizes a set of MetalMeasurement objects before any index is computed:
  - missing, non-numeric or non-finite concentrations become 0
  - negative concentrations are clamped to 0
  - missing, non-numeric, non-finite or non-positive weights become 1.0
  - a non-positive (or unreadable) standard value is fatal
  - symbols must be unique within the set
"""

import logging
import math
import typing

from dataclasses import replace
from typing import Iterable, Tuple

from .errors import DuplicateSymbolError, InvalidStandardError
from .metal import MetalMeasurement

ValidatedMeasurements = Tuple[MetalMeasurement, ...]

DEFAULT_CONCENTRATION = 0.0
DEFAULT_WEIGHT = 1.0


def parse_number(value: typing.Any) -> typing.Optional[float]:
    """
    Parse a number the way a form field would hand it over.
    Returns None for None, bools, blanks, non-numeric text, NaN and infinities.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def validate(measurements: Iterable[MetalMeasurement]) -> ValidatedMeasurements:
    """
    Return a cleaned copy of `measurements`, ready for the index calculators.

    Raises InvalidStandardError if any standard value is not a positive number,
    and DuplicateSymbolError if a symbol appears twice. Coercions never raise.
    """
    validated: list[MetalMeasurement] = []
    seen_symbols: set[str] = set()

    for measurement in measurements:
        symbol = str(measurement.symbol).strip()
        if symbol in seen_symbols:
            raise DuplicateSymbolError(symbol)
        seen_symbols.add(symbol)

        standard_value = parse_number(measurement.standard_value)
        if standard_value is None or standard_value <= 0:
            raise InvalidStandardError(symbol, measurement.standard_value)

        concentration = parse_number(measurement.concentration)
        if concentration is None:
            logging.debug(f"{symbol}: concentration {measurement.concentration!r} defaulted to 0")
            concentration = DEFAULT_CONCENTRATION
        elif concentration < 0:
            logging.debug(f"{symbol}: negative concentration {concentration} clamped to 0")
            concentration = DEFAULT_CONCENTRATION

        weight = parse_number(measurement.weight)
        if weight is None or weight <= 0:
            logging.debug(f"{symbol}: weight {measurement.weight!r} defaulted to {DEFAULT_WEIGHT}")
            weight = DEFAULT_WEIGHT

        validated.append(
            replace(
                measurement,
                symbol=symbol,
                concentration=concentration,
                standard_value=standard_value,
                weight=weight,
            )
        )

    return tuple(validated)
