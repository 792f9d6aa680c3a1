# src/koradi_board/schemas/token.py
"""Token registration schemas."""

from pydantic import BaseModel, Field

from koradi_board.models import Lang


class RegistrationPayload(BaseModel):
    """Language to add to or remove from a token."""

    lang: Lang = Field(..., description="Language subscription to change")


class TokenInfo(BaseModel):
    """A registered token and its language subscriptions."""

    token: str
    langs: list[Lang]
