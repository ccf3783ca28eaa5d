"""Endpoint de health check."""

from __future__ import annotations

from fastapi import APIRouter, Request

from dochub import __version__
from dochub.api.schemas import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    """Estado del corpus: ``degraded`` si la indexación no dejó ningún documento."""
    hub = request.app.state.hub
    summary = hub.indexer.last_summary
    documents = len(hub.index)
    indexed = hub.index.indexed()

    return HealthResponse(
        status="ok" if indexed and documents > 0 else "degraded",
        indexed=indexed,
        rebuilding=hub.indexer.rebuilding,
        documents=documents,
        failed=summary.failed if summary else 0,
        version=__version__,
    )
