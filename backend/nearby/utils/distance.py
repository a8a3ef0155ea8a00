"""Human-readable distance formatting."""

FEET_PER_METER = 3.28084
FEET_PER_MILE = 5280


def format_distance(meters: float, imperial: bool = False) -> str:
    """Format a distance in meters for display.

    Metric: ``"850 m"`` below one kilometer, ``"1.2 km"`` above.
    Imperial: ``"420 ft"`` below one mile, ``"3.4 mi"`` above.
    Whole-unit values are truncated, not rounded.

    Example:
        >>> format_distance(1234.0)
        '1.2 km'
        >>> format_distance(100.0, imperial=True)
        '328 ft'
    """
    if imperial:
        feet = meters * FEET_PER_METER
        if feet >= FEET_PER_MILE:
            return f"{feet / FEET_PER_MILE:.1f} mi"
        return f"{int(feet)} ft"

    if meters >= 1000:
        return f"{meters / 1000:.1f} km"
    return f"{int(meters)} m"
