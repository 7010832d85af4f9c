"""
Error taxonomy for the pollution index engine.

All errors derive from ValueError so callers that already guard against bad
domain values keep working.
"""


class InvalidStandardError(ValueError):
    """A reference standard value is missing, non-numeric or not positive."""

    def __init__(self, symbol: str, standard_value):
        self.symbol = symbol
        self.standard_value = standard_value
        super().__init__(
            f"Invalid standard value for {symbol!r}: {standard_value!r} (must be > 0)"
        )


class EmptySetError(ValueError):
    """An index whose denominator depends on the set size was asked for an empty set."""

    def __init__(self, index_name: str):
        self.index_name = index_name
        super().__init__(f"Cannot compute {index_name} for an empty measurement set")


class DuplicateSymbolError(ValueError):
    """Two measurements in one set share the same metal symbol."""

    def __init__(self, symbol: str):
        self.symbol = symbol
        super().__init__(f"Duplicate metal symbol in measurement set: {symbol!r}")


class IndexOverflowError(ValueError):
    """An index value left the range of finite floats (inputs too large to compare)."""

    def __init__(self, index_name: str, value: float):
        self.index_name = index_name
        self.value = value
        super().__init__(
            f"{index_name} is not a finite number ({value!r}); concentrations or weights are out of range"
        )
