"""Pydantic schemas for request/response validation."""

from .message import MessageCreate, MessageCreated, MessageEdit, MessageResponse
from .token import RegistrationPayload, TokenInfo

__all__ = [
    "MessageCreate",
    "MessageCreated",
    "MessageEdit",
    "MessageResponse",
    "RegistrationPayload",
    "TokenInfo",
]
