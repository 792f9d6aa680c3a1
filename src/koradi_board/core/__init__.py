# src/koradi_board/core/__init__.py
"""Core configuration, expiry policy and security helpers."""
