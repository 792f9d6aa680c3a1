"""Message entity held by the in-memory message store."""

from __future__ import annotations

from uuid import UUID

from pydantic import AwareDatetime, BaseModel, Field

from koradi_board.models.enums import Expiration, Lang


class Message(BaseModel):
    """A language-scoped board message.

    ``id``, ``created``, ``lang`` and ``expires`` are fixed at creation; only
    ``content``, ``title`` and ``image_url`` change afterwards.
    """

    id: UUID
    created: AwareDatetime
    content: str
    title: str
    lang: Lang
    expires: Expiration
    image_url: str | None = None
    image_data: str | None = Field(default=None, description="Base64-encoded image bytes")
    image_mime_type: str | None = None
