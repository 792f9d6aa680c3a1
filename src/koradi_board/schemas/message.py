# src/koradi_board/schemas/message.py
"""Message-related Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from koradi_board.models import Expiration, Lang


class MessageCreate(BaseModel):
    """Schema for publishing a new message."""

    content: str = Field(..., min_length=1, description="Message body")
    title: str = Field(..., min_length=1, description="Short label shown above the body")
    lang: Lang = Field(..., description="Language the message is published in")
    expires: Expiration = Field(..., description="Time-to-live class")
    image_url: str | None = Field(None, description="Optional image link")
    image_data: str | None = Field(None, description="Optional base64-encoded image")
    image_mime_type: str | None = Field(None, description="MIME type of image_data")

    model_config = ConfigDict(extra="forbid")


class MessageEdit(BaseModel):
    """Schema for editing an existing message.

    Only the body, title and image link can change after creation.
    """

    id: UUID
    content: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    image_url: str | None = None

    model_config = ConfigDict(extra="forbid")


class MessageResponse(BaseModel):
    """Schema for message information returned by the API."""

    id: UUID
    created: datetime
    content: str
    title: str
    lang: Lang
    expires: Expiration
    image_url: str | None
    image_data: str | None
    image_mime_type: str | None

    model_config = ConfigDict(from_attributes=True)


class MessageCreated(BaseModel):
    """Acknowledgement returned after a message is published."""

    status: str = "created"
    id: UUID
