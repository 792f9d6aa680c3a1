# tests/test_expiry.py
"""Tests for the message expiry policy."""

from datetime import UTC, datetime, timedelta

import pytest

from koradi_board.core.expiry import EXPIRATION_SECONDS, expiration_seconds, is_expired
from koradi_board.models import Expiration

CREATED = datetime(2024, 3, 1, 8, 30, tzinfo=UTC)


@pytest.mark.parametrize(
    ("expires", "seconds"),
    [
        (Expiration.HOUR, 3600),
        (Expiration.DAY, 86400),
        (Expiration.WEEK, 604800),
        (Expiration.QUARTER, 7257600),
        (Expiration.YEAR, 31536000),
    ],
)
def test_expiration_seconds_table(expires: Expiration, seconds: int) -> None:
    assert expiration_seconds(expires) == seconds


def test_every_expiration_has_a_duration() -> None:
    assert set(EXPIRATION_SECONDS) == set(Expiration)


def test_quarter_is_twelve_weeks() -> None:
    assert expiration_seconds(Expiration.QUARTER) == 12 * expiration_seconds(Expiration.WEEK)


def test_expiration_seconds_rejects_unknown_values() -> None:
    with pytest.raises(ValueError):
        expiration_seconds("Fortnight")  # type: ignore[arg-type]


def test_message_is_live_just_before_window_closes() -> None:
    now = CREATED + timedelta(seconds=3599)
    assert is_expired(CREATED, Expiration.HOUR, now) is False


def test_exact_window_age_counts_as_expired() -> None:
    now = CREATED + timedelta(seconds=3600)
    assert is_expired(CREATED, Expiration.HOUR, now) is True


def test_message_past_window_is_expired() -> None:
    now = CREATED + timedelta(days=2)
    assert is_expired(CREATED, Expiration.DAY, now) is True
    assert is_expired(CREATED, Expiration.WEEK, now) is False
