"""Notification sweep endpoint.

Hey future me - this lets a cron job (or an operator with curl) trigger one sweep.
No scheduler runs inside the app, so replicas never sweep on their own.
Concurrent sweeps are still safe: a sweep claims each collection with a conditional
UPDATE on the last_checked value it read, and only the winner sends notifications.
"""

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends

from collectionwatch.api.dependencies import get_sweep_service
from collectionwatch.application.services import NotificationSweepService

router = APIRouter(prefix="/notifications")


@router.post("/sweep")
async def run_sweep(
    now: datetime | None = None,
    service: NotificationSweepService = Depends(get_sweep_service),
) -> dict[str, Any]:
    """Notify every due collection and advance its last-checked timestamp."""
    result = await service.run(now)
    return {
        **result.to_dict(),
        "processed_collection_ids": result.processed_collection_ids,
    }
