"""Token registry mapping client tokens to their language subscriptions."""

from __future__ import annotations

import logging
from threading import Lock
from typing import Protocol

import redis

from koradi_board.models import Lang

logger = logging.getLogger(__name__)

_TOKENS_KEY = "koradi:tokens"
_TOKEN_KEY_PREFIX = "koradi:token:"


class TokenRegistry(Protocol):
    """Operations every registry backend provides."""

    def register(self, token: str) -> None: ...

    def get_langs(self, token: str) -> set[Lang] | None: ...

    def add_lang(self, token: str, lang: Lang) -> bool: ...

    def remove_lang(self, token: str, lang: Lang) -> bool: ...

    def unregister(self, token: str) -> bool: ...

    def list_tokens(self) -> dict[str, set[Lang]]: ...


class InMemoryTokenRegistry:
    """Process-local registry guarded by a lock."""

    def __init__(self) -> None:
        self._tokens: dict[str, set[Lang]] = {}
        self._lock = Lock()

    def register(self, token: str) -> None:
        """Register ``token``; an existing registration keeps its languages."""
        with self._lock:
            self._tokens.setdefault(token, set())

    def get_langs(self, token: str) -> set[Lang] | None:
        """Return the languages of ``token`` or None if it is unknown."""
        with self._lock:
            langs = self._tokens.get(token)
            return set(langs) if langs is not None else None

    def add_lang(self, token: str, lang: Lang) -> bool:
        """Subscribe ``token`` to ``lang``. Returns False for unknown tokens."""
        with self._lock:
            langs = self._tokens.get(token)
            if langs is None:
                return False
            langs.add(lang)
            return True

    def remove_lang(self, token: str, lang: Lang) -> bool:
        """Unsubscribe ``token`` from ``lang``.

        Returns False if the token is unknown or was not subscribed to ``lang``.
        """
        with self._lock:
            langs = self._tokens.get(token)
            if langs is None or lang not in langs:
                return False
            langs.discard(lang)
            return True

    def unregister(self, token: str) -> bool:
        """Forget ``token``. Returns False if it was never registered."""
        with self._lock:
            return self._tokens.pop(token, None) is not None

    def list_tokens(self) -> dict[str, set[Lang]]:
        """Return a copy of every registration."""
        with self._lock:
            return {token: set(langs) for token, langs in self._tokens.items()}


class RedisTokenRegistry:
    """Registry backed by Redis sets.

    Each token's languages live in ``koradi:token:{token}``; the set
    ``koradi:tokens`` records which tokens are registered, so a token with no
    languages still exists.
    """

    def __init__(self, client: redis.Redis) -> None:
        self._redis = client

    @classmethod
    def from_url(cls, url: str) -> RedisTokenRegistry:
        """Build a registry connected to ``url``."""
        return cls(redis.from_url(url, decode_responses=True))

    @staticmethod
    def _key(token: str) -> str:
        return f"{_TOKEN_KEY_PREFIX}{token}"

    def _exists(self, token: str) -> bool:
        return bool(self._redis.sismember(_TOKENS_KEY, token))

    def register(self, token: str) -> None:
        self._redis.sadd(_TOKENS_KEY, token)

    def get_langs(self, token: str) -> set[Lang] | None:
        if not self._exists(token):
            return None
        return self._decode(self._redis.smembers(self._key(token)))

    def add_lang(self, token: str, lang: Lang) -> bool:
        if not self._exists(token):
            return False
        self._redis.sadd(self._key(token), lang.value)
        return True

    def remove_lang(self, token: str, lang: Lang) -> bool:
        if not self._exists(token):
            return False
        return bool(self._redis.srem(self._key(token), lang.value))

    def unregister(self, token: str) -> bool:
        pipe = self._redis.pipeline()
        pipe.srem(_TOKENS_KEY, token)
        pipe.delete(self._key(token))
        removed, _ = pipe.execute()
        return bool(removed)

    def list_tokens(self) -> dict[str, set[Lang]]:
        return {
            token: self._decode(self._redis.smembers(self._key(token)))
            for token in sorted(self._redis.smembers(_TOKENS_KEY))
        }

    @staticmethod
    def _decode(values: set[str]) -> set[Lang]:
        langs: set[Lang] = set()
        for value in values:
            try:
                langs.add(Lang(value))
            except ValueError:
                logger.error("Unknown language found in registry: %s", value)
        return langs


def build_token_registry(backend: str, redis_url: str) -> TokenRegistry:
    """Return the registry implementation selected by configuration.

    Raises:
        ValueError: If ``backend`` is not ``memory`` or ``redis``.
    """
    if backend == "memory":
        return InMemoryTokenRegistry()
    if backend == "redis":
        return RedisTokenRegistry.from_url(redis_url)
    raise ValueError(f"Unknown token backend: {backend}")
