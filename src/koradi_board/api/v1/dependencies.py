"""Shared API dependencies for admin authentication and service lookup."""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status

from koradi_board.core.security import API_KEY_HEADER, verify_api_key
from koradi_board.core.settings import Settings
from koradi_board.services.message_store import MessageStore
from koradi_board.services.reaper import MessageReaper
from koradi_board.services.token_registry import TokenRegistry


def get_settings(request: Request) -> Settings:
    """Return the settings the running application was built with."""
    return request.app.state.settings


def get_message_store(request: Request) -> MessageStore:
    """Return the process-wide message store."""
    return request.app.state.message_store


def get_token_registry(request: Request) -> TokenRegistry:
    """Return the configured token registry."""
    return request.app.state.token_registry


def get_reaper(request: Request) -> MessageReaper:
    """Return the background expiry reaper."""
    return request.app.state.reaper


SettingsDep = Annotated[Settings, Depends(get_settings)]
MessageStoreDep = Annotated[MessageStore, Depends(get_message_store)]
TokenRegistryDep = Annotated[TokenRegistry, Depends(get_token_registry)]
ReaperDep = Annotated[MessageReaper, Depends(get_reaper)]


def require_api_key(
    app_settings: SettingsDep,
    api_key: Annotated[str | None, Header(alias=API_KEY_HEADER)] = None,
) -> None:
    """Reject the request unless it carries the configured admin API key.

    Raises:
        HTTPException: 401 if the header is missing or does not match.
    """
    if not verify_api_key(api_key, app_settings.admin_api_key):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
        )
