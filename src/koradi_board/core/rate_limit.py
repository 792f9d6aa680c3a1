"""Per-client request rate limiting."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from koradi_board.core.settings import Settings


def build_limiter(app_settings: Settings) -> Limiter:
    """Return a limiter applying ``RATE_LIMIT`` to every route per remote address."""
    return Limiter(
        key_func=get_remote_address,
        default_limits=[app_settings.rate_limit],
        enabled=app_settings.rate_limit_enabled,
    )
