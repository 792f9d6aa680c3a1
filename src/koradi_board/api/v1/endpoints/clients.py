# src/koradi_board/api/v1/endpoints/clients.py
"""Client token registration endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from koradi_board.api.v1.dependencies import TokenRegistryDep
from koradi_board.models import Lang
from koradi_board.schemas.token import RegistrationPayload, TokenInfo

router = APIRouter(prefix="/api", tags=["clients"])
admin_router = APIRouter(prefix="/api", tags=["clients", "admin"])


def _token_not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Token not found",
    )


def _sorted_langs(langs: set[Lang]) -> list[Lang]:
    order = list(Lang)
    return sorted(langs, key=order.index)


@router.post("/register/{token}", status_code=status.HTTP_201_CREATED)
async def register_token(token: str, registry: TokenRegistryDep) -> dict[str, str]:
    """Register a client token with no language subscriptions."""
    registry.register(token)
    return {"status": "registered"}


@router.get("/get_langs/{token}")
async def get_langs(token: str, registry: TokenRegistryDep) -> list[Lang]:
    """Return the languages a token is subscribed to."""
    langs = registry.get_langs(token)
    if langs is None:
        raise _token_not_found()
    return _sorted_langs(langs)


@router.patch("/add_langs/{token}")
async def add_langs(
    token: str,
    payload: RegistrationPayload,
    registry: TokenRegistryDep,
) -> dict[str, str]:
    """Subscribe a registered token to a language."""
    if not registry.add_lang(token, payload.lang):
        raise _token_not_found()
    return {"status": "updated"}


@router.patch("/remove_langs/{token}")
async def remove_langs(
    token: str,
    payload: RegistrationPayload,
    registry: TokenRegistryDep,
) -> dict[str, str]:
    """Unsubscribe a token from a language it is subscribed to."""
    if not registry.remove_lang(token, payload.lang):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Token or language subscription not found",
        )
    return {"status": "updated"}


@router.delete("/unregister/{token}")
async def unregister_token(token: str, registry: TokenRegistryDep) -> dict[str, str]:
    """Forget a token and all of its subscriptions."""
    if not registry.unregister(token):
        raise _token_not_found()
    return {"status": "unregistered"}


@admin_router.get("/tokens", response_model=list[TokenInfo])
async def get_all_tokens(registry: TokenRegistryDep) -> list[TokenInfo]:
    """List every registered token with its subscriptions."""
    return [
        TokenInfo(token=token, langs=_sorted_langs(langs))
        for token, langs in registry.list_tokens().items()
    ]
