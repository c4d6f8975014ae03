"""Integer arithmetic utilities for cents-based prices.

All prices, bids and sale amounts use int (cents). No float, no Decimal.
"""


def is_positive_cents(value: object) -> bool:
    """True for a strictly positive int. bool is rejected even though it subclasses int."""
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def cents_to_display(cents: int) -> str:
    """Convert cents to display string: 6500 -> '£65.00', -1200 -> '-£12.00'."""
    if cents < 0:
        abs_cents = -cents
        return f"-£{abs_cents // 100:,}.{abs_cents % 100:02d}"
    return f"£{cents // 100:,}.{cents % 100:02d}"


def mean_cents(values: list[int]) -> int | None:
    """Arithmetic mean rounded half-up to a whole cent, None for an empty list."""
    if not values:
        return None
    n = len(values)
    return (2 * sum(values) + n) // (2 * n)
