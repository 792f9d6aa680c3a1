"""Expiry policy for messages.

Maps each ``Expiration`` class to a fixed number of seconds and decides
whether a message created at a given instant has outlived it.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Final

from koradi_board.models.enums import Expiration

_WEEK_SECONDS: Final[int] = 604_800

EXPIRATION_SECONDS: Final[dict[Expiration, int]] = {
    Expiration.HOUR: 3_600,
    Expiration.DAY: 86_400,
    Expiration.WEEK: _WEEK_SECONDS,
    # Twelve weeks, not a calendar quarter
    Expiration.QUARTER: 12 * _WEEK_SECONDS,
    Expiration.YEAR: 31_536_000,
}


def expiration_seconds(expires: Expiration) -> int:
    """Return the time-to-live in seconds for an expiration class.

    Raises:
        ValueError: If ``expires`` is not an ``Expiration`` member.
    """
    if not isinstance(expires, Expiration):
        raise ValueError(f"Unknown expiration: {expires!r}")
    return EXPIRATION_SECONDS[expires]


def is_expired(created: datetime, expires: Expiration, now: datetime) -> bool:
    """Return True once ``now - created`` reaches the expiration window.

    An age exactly equal to the window counts as expired.
    """
    return now - created >= timedelta(seconds=expiration_seconds(expires))
