"""UTC datetime utilities."""

import math
from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def seconds_until(deadline: datetime, now: datetime) -> int:
    """Whole seconds from `now` to `deadline`, rounded up, never below 1.

    Used for countdowns: a caller told to wait 0s would retry into the same wall.
    """
    return max(1, math.ceil((deadline - now).total_seconds()))
