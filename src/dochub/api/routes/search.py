"""Endpoints de búsqueda fuzzy, por tags y autocompletado."""

from __future__ import annotations

from fastapi import APIRouter, Query, Request

from dochub.api.schemas import (
    SearchRequest,
    SearchResponse,
    SearchResultItem,
    SuggestionsResponse,
    TagSearchRequest,
)

router = APIRouter()


@router.post("/search", response_model=SearchResponse)
async def search(body: SearchRequest, request: Request) -> SearchResponse:
    """Búsqueda ponderada; con ``category`` se restringe (query vacía = navegar)."""
    hub = request.app.state.hub

    if body.category:
        results = hub.search_in_category(body.query, body.category, body.limit)
    else:
        results = hub.search(body.query, body.limit)

    items = [SearchResultItem.from_result(r) for r in results]
    return SearchResponse(results=items, total=len(items))


@router.post("/search/tags", response_model=SearchResponse)
async def search_tags(body: TagSearchRequest, request: Request) -> SearchResponse:
    """Documentos rankeados por la fracción de tags pedidos que contienen."""
    hub = request.app.state.hub
    items = [SearchResultItem.from_result(r) for r in hub.search_by_tags(body.tags, body.limit)]
    return SearchResponse(results=items, total=len(items))


@router.get("/suggestions", response_model=SuggestionsResponse)
async def suggestions(
    request: Request,
    q: str = "",
    limit: int = Query(default=5, ge=1, le=20),
) -> SuggestionsResponse:
    hub = request.app.state.hub
    return SuggestionsResponse(suggestions=hub.get_suggestions(q, limit))
