"""Domain models for the Koradi Board application."""

from .enums import Expiration, Lang
from .message import Message

__all__ = [
    "Expiration",
    "Lang",
    "Message",
]
