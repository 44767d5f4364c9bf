"""Half-up rounding for displayed figures.

Python's round() uses banker's rounding, so round(7.25, 1) == 7.2 and
round(18.5) == 18. Dashboard figures round halves up instead.
"""

import math


def round_half_up(value: float, digits: int = 0) -> float | int:
    """Round to `digits` decimals with ties going up; an int when digits is 0."""
    if digits == 0:
        return math.floor(value + 0.5)
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor
