import math


def round_half_away(value: float, places: int) -> float:
    """Round to a number of decimal places, with halves rounded away from zero."""
    multiplier = math.pow(10, places)
    return math.copysign(math.floor(abs(value) * multiplier + 0.5), value) / multiplier
