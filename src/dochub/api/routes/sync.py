"""Endpoint de reindexación manual."""

from __future__ import annotations

from fastapi import APIRouter, Request

from dochub.api.schemas import RefreshResponse

router = APIRouter()


@router.post("/refresh", response_model=RefreshResponse)
async def refresh(request: Request) -> RefreshResponse:
    """Descarta el corpus y lo reconstruye desde las fuentes."""
    hub = request.app.state.hub
    result = await hub.force_refresh()

    return RefreshResponse(
        previous_count=result.previous_count,
        new_count=result.new_count,
        refreshed=result.refreshed,
    )
