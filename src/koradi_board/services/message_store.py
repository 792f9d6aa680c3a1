"""In-memory message store.

The store owns the canonical collection of messages. Every public method
takes the store lock for its whole critical section, copies out whatever it
returns, and releases the lock before the caller serializes anything.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from datetime import datetime
from enum import Enum
from threading import Lock
from uuid import UUID, uuid4

from koradi_board.core.expiry import is_expired
from koradi_board.core.time import Clock, utcnow
from koradi_board.models import Expiration, Lang, Message

logger = logging.getLogger(__name__)


class StoreResult(Enum):
    """Outcome of a mutation addressed by message id."""

    SUCCESS = "success"
    NOT_FOUND = "not_found"


class StoreError(RuntimeError):
    """Base exception raised for message store failures."""


class StorePoisonedError(StoreError):
    """Raised when the store is used after an operation failed mid-update.

    Once an operation raises while holding the lock the collection may be
    inconsistent, so every later operation is refused.
    """


def _require_text(name: str, value: object) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{name} must be a non-empty string")
    return value


class MessageStore:
    """Thread-safe, insertion-ordered collection of messages."""

    def __init__(
        self,
        clock: Clock = utcnow,
        id_factory: Callable[[], UUID] = uuid4,
    ) -> None:
        """Initialize an empty store.

        Args:
            clock: Source of "now" for ``created`` timestamps.
            id_factory: Generator for fresh message ids.
        """
        self._clock = clock
        self._id_factory = id_factory
        self._messages: dict[UUID, Message] = {}
        self._lock = Lock()
        self._poisoned = False

    @contextmanager
    def _locked(self) -> Iterator[dict[UUID, Message]]:
        with self._lock:
            if self._poisoned:
                raise StorePoisonedError("Message store is unusable after a failed operation")
            try:
                yield self._messages
            except Exception:
                self._poisoned = True
                raise

    @property
    def poisoned(self) -> bool:
        """Return True once the store has been marked unusable."""
        return self._poisoned

    def create(
        self,
        *,
        content: str,
        title: str,
        lang: Lang | str,
        expires: Expiration | str,
        image_url: str | None = None,
        image_data: str | None = None,
        image_mime_type: str | None = None,
    ) -> Message:
        """Append a new message and return a copy of it.

        Raises:
            ValueError: If ``lang`` or ``expires`` is not a known member, if
                ``content``/``title`` is empty, or if any field fails model
                validation.
        """
        lang = Lang(lang)
        expires = Expiration(expires)
        content = _require_text("content", content)
        title = _require_text("title", title)
        message = Message(
            id=self._id_factory(),
            created=self._clock(),
            content=content,
            title=title,
            lang=lang,
            expires=expires,
            image_url=image_url,
            image_data=image_data,
            image_mime_type=image_mime_type,
        )

        with self._locked() as messages:
            while message.id in messages:
                message = message.model_copy(update={"id": self._id_factory()})
            messages[message.id] = message
            created = message.model_copy()

        logger.debug("Created message %s (%s, expires %s)", created.id, lang.value, expires.value)
        return created

    def get(self, message_id: UUID) -> Message | None:
        """Return a copy of the message with ``message_id`` if it exists."""
        with self._locked() as messages:
            message = messages.get(message_id)
            return message.model_copy() if message is not None else None

    def list_by_lang(self, lang: Lang | str) -> list[Message]:
        """Return copies of every live message in ``lang``, oldest first."""
        lang = Lang(lang)
        with self._locked() as messages:
            return [m.model_copy() for m in messages.values() if m.lang is lang]

    def edit(
        self,
        message_id: UUID,
        content: str,
        title: str,
        image_url: str | None = None,
    ) -> StoreResult:
        """Replace the mutable fields of a message.

        ``id``, ``created``, ``lang`` and ``expires`` are left untouched.

        Raises:
            ValueError: If the new fields fail validation.
        """
        content = _require_text("content", content)
        title = _require_text("title", title)

        current = self.get(message_id)
        if current is None:
            return StoreResult.NOT_FOUND
        updated = Message.model_validate(
            {**current.model_dump(), "content": content, "title": title, "image_url": image_url}
        )

        with self._locked() as messages:
            # Deleted while the update was being validated
            if message_id not in messages:
                return StoreResult.NOT_FOUND
            messages[message_id] = updated
        return StoreResult.SUCCESS

    def delete(self, message_id: UUID) -> StoreResult:
        """Remove a message by id."""
        with self._locked() as messages:
            if messages.pop(message_id, None) is None:
                return StoreResult.NOT_FOUND
        return StoreResult.SUCCESS

    def sweep_expired(self, now: datetime | None = None) -> int:
        """Remove every message whose age has reached its expiration window.

        Args:
            now: Reference instant; defaults to the store clock.

        Returns:
            Number of messages removed.

        Raises:
            ValueError: If ``now`` is a naive datetime.
        """
        reference = now if now is not None else self._clock()
        if reference.tzinfo is None:
            raise ValueError("now must be timezone-aware")

        with self._locked() as messages:
            expired = [
                message_id
                for message_id, message in messages.items()
                if is_expired(message.created, message.expires, reference)
            ]
            for message_id in expired:
                del messages[message_id]
        return len(expired)

    def export_all(self) -> list[Message]:
        """Return a consistent copy of every message in insertion order."""
        with self._locked() as messages:
            return [m.model_copy() for m in messages.values()]

    def replace_all(self, replacement: Iterable[Message]) -> int:
        """Atomically swap the whole collection for ``replacement``.

        Messages are re-validated before the lock is taken.

        Raises:
            ValueError: If ``replacement`` contains duplicate ids or a message
                fails validation.

        Returns:
            Number of messages now held.
        """
        staged: dict[UUID, Message] = {}
        for message in replacement:
            if message.id in staged:
                raise ValueError(f"Duplicate message id in replacement: {message.id}")
            staged[message.id] = Message.model_validate(message.model_dump())

        with self._locked() as messages:
            messages.clear()
            messages.update(staged)
        logger.info("Replaced message store contents with %d messages", len(staged))
        return len(staged)

    def count(self) -> int:
        """Return how many messages are currently held."""
        with self._locked() as messages:
            return len(messages)

    def counts_by_lang(self) -> dict[str, int]:
        """Return the number of live messages per language."""
        with self._locked() as messages:
            tally = Counter(m.lang for m in messages.values())
        return {lang.value: tally.get(lang, 0) for lang in Lang}
