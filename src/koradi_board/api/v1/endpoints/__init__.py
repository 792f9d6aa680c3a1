# src/koradi_board/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .clients import admin_router as clients_admin_router
from .clients import router as clients_router
from .messages import admin_router as messages_admin_router
from .messages import router as messages_router
from .system import router as system_router

__all__ = [
    "clients_router",
    "clients_admin_router",
    "messages_router",
    "messages_admin_router",
    "system_router",
]
