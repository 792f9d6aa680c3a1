"""System and diagnostics endpoints for the Koradi API."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from koradi_board.api.v1.dependencies import MessageStoreDep, ReaperDep, SettingsDep
from koradi_board.services.message_store import StorePoisonedError

router = APIRouter(prefix="/api/system", tags=["system"])


@router.get("/stats")
async def get_stats(
    store: MessageStoreDep,
    reaper: ReaperDep,
    app_settings: SettingsDep,
) -> dict[str, object]:
    """Return live message counts and expiry sweep counters.

    Args:
        store: Message store
        reaper: Background expiry reaper
        app_settings: Active application settings

    Returns:
        Dictionary with per-language message counts and reaper statistics
    """
    try:
        per_lang = store.counts_by_lang()
    except StorePoisonedError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Message store unavailable",
        ) from exc

    stats = reaper.stats
    return {
        "messages": {
            "total": sum(per_lang.values()),
            "per_lang": per_lang,
        },
        "reaper": {
            "running": reaper.running,
            "interval_seconds": reaper.interval_seconds,
            "sweeps": stats.sweeps,
            "failed_sweeps": stats.failed_sweeps,
            "last_removed": stats.last_removed,
            "total_removed": stats.total_removed,
            "last_sweep_at": stats.last_sweep_at.isoformat() if stats.last_sweep_at else None,
        },
        "backup": {
            "enabled": app_settings.backup_enabled,
        },
    }
