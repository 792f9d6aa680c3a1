# src/koradi_board/api/v1/endpoints/messages.py
"""Message board endpoints for the Koradi API.

Reading is public; publishing, editing and deleting live on ``admin_router``
which the application mounts behind the API-key check.
"""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, HTTPException, status

from koradi_board.api.v1.dependencies import MessageStoreDep
from koradi_board.models import Lang
from koradi_board.schemas.message import (
    MessageCreate,
    MessageCreated,
    MessageEdit,
    MessageResponse,
)
from koradi_board.services.message_store import StorePoisonedError, StoreResult

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/messages", tags=["messages"])
admin_router = APIRouter(prefix="/api/messages", tags=["messages", "admin"])


def _store_unavailable(exc: StorePoisonedError) -> HTTPException:
    logger.error("Message store unavailable: %s", exc)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Failed to acquire lock on message repo",
    )


def _message_not_found(message_id: UUID) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Message {message_id} not found",
    )


@router.get("/{lang}", response_model=list[MessageResponse])
async def get_messages_by_lang(lang: Lang, store: MessageStoreDep) -> list[MessageResponse]:
    """List the live messages published in ``lang``, oldest first."""
    try:
        messages = store.list_by_lang(lang)
    except StorePoisonedError as exc:
        raise _store_unavailable(exc) from exc
    return [MessageResponse.model_validate(message) for message in messages]


@admin_router.post("", response_model=MessageCreated)
async def add_message(payload: MessageCreate, store: MessageStoreDep) -> MessageCreated:
    """Publish a new message."""
    try:
        message = store.create(**payload.model_dump())
    except StorePoisonedError as exc:
        raise _store_unavailable(exc) from exc
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc

    logger.info("Published message %s in %s", message.id, message.lang.value)
    return MessageCreated(id=message.id)


@admin_router.patch("")
async def edit_message(payload: MessageEdit, store: MessageStoreDep) -> dict[str, str]:
    """Replace the body, title and image link of an existing message."""
    try:
        result = store.edit(
            payload.id,
            content=payload.content,
            title=payload.title,
            image_url=payload.image_url,
        )
    except StorePoisonedError as exc:
        raise _store_unavailable(exc) from exc
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc

    if result is StoreResult.NOT_FOUND:
        raise _message_not_found(payload.id)
    return {"status": "updated"}


@admin_router.delete("/{message_id}")
async def delete_message(message_id: UUID, store: MessageStoreDep) -> dict[str, str]:
    """Delete a message by id."""
    try:
        result = store.delete(message_id)
    except StorePoisonedError as exc:
        raise _store_unavailable(exc) from exc

    if result is StoreResult.NOT_FOUND:
        raise _message_not_found(message_id)
    logger.info("Deleted message %s", message_id)
    return {"status": "deleted"}
