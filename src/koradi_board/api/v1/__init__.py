# src/koradi_board/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    clients_admin_router,
    clients_router,
    messages_admin_router,
    messages_router,
    system_router,
)

__all__ = [
    "clients_router",
    "clients_admin_router",
    "messages_router",
    "messages_admin_router",
    "system_router",
]
