"""Enumerations shared by messages and token registrations."""

from enum import Enum


class Lang(str, Enum):
    """Languages a message can be published in."""

    ENGLISH = "English"
    SPANISH = "Spanish"
    FRENCH = "French"
    ITALIAN = "Italian"
    PORTUGUESE = "Portuguese"
    GERMAN = "German"


class Expiration(str, Enum):
    """Named time-to-live classes for a message.

    The duration each class denotes lives in ``koradi_board.core.expiry``.
    """

    HOUR = "Hour"
    DAY = "Day"
    WEEK = "Week"
    QUARTER = "Quarter"
    YEAR = "Year"
