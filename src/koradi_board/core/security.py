"""Shared-secret helpers for the admin API."""
from __future__ import annotations

import secrets

API_KEY_HEADER = "x-api-key"


def verify_api_key(provided: str | None, expected: str | None) -> bool:
    """Check a presented API key against the configured one.

    Args:
        provided: Value of the ``x-api-key`` header, if any.
        expected: Configured admin key. When unset every key is rejected.

    Returns:
        True if both keys are present and equal; False otherwise.
    """
    if not provided or not expected:
        return False
    return secrets.compare_digest(provided.encode(), expected.encode())
