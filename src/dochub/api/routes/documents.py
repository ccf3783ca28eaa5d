"""Endpoints de lectura del corpus: documentos, categorías, tags y estadísticas."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, Request

from dochub.api.schemas import (
    CategoriesResponse,
    CategoryItem,
    DocumentDetail,
    DocumentListResponse,
    DocumentSummary,
    StatsResponse,
    TagsResponse,
)

router = APIRouter()


def _listing(records) -> DocumentListResponse:
    docs = [DocumentSummary.from_record(r) for r in records]
    return DocumentListResponse(documents=docs, total=len(docs))


@router.get("/documents", response_model=DocumentListResponse)
async def list_documents(request: Request, with_diagrams: bool = False) -> DocumentListResponse:
    hub = request.app.state.hub
    if with_diagrams:
        return _listing(hub.get_documents_with_diagrams())
    return _listing(hub.get_all_documents())


@router.get("/documents/recent", response_model=DocumentListResponse)
async def recent_documents(
    request: Request, limit: int = Query(default=5, ge=1, le=50)
) -> DocumentListResponse:
    """Últimos documentos modificados."""
    return _listing(request.app.state.hub.get_recent_documents(limit))


@router.get("/documents/{doc_id}", response_model=DocumentDetail)
async def get_document(doc_id: str, request: Request) -> DocumentDetail:
    record = request.app.state.hub.get_document(doc_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Documento {doc_id} no encontrado")
    return DocumentDetail.from_record(record)


@router.get("/documents/{doc_id}/related", response_model=DocumentListResponse)
async def related_documents(
    doc_id: str, request: Request, limit: int = Query(default=5, ge=1, le=20)
) -> DocumentListResponse:
    hub = request.app.state.hub
    record = hub.get_document(doc_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Documento {doc_id} no encontrado")
    return _listing(hub.get_related_documents(record, limit))


@router.get("/categories", response_model=CategoriesResponse)
async def categories(request: Request) -> CategoriesResponse:
    counts = request.app.state.hub.get_category_counts()
    return CategoriesResponse(
        categories=[CategoryItem(category=c, count=n) for c, n in counts.items()]
    )


@router.get("/categories/{category}/documents", response_model=DocumentListResponse)
async def documents_by_category(category: str, request: Request) -> DocumentListResponse:
    return _listing(request.app.state.hub.get_documents_by_category(category))


@router.get("/tags", response_model=TagsResponse)
async def tags(request: Request) -> TagsResponse:
    return TagsResponse(tags=request.app.state.hub.get_all_tags())


@router.get("/tags/{tag}/documents", response_model=DocumentListResponse)
async def documents_by_tag(tag: str, request: Request) -> DocumentListResponse:
    return _listing(request.app.state.hub.get_documents_by_tag(tag))


@router.get("/stats", response_model=StatsResponse)
async def stats(request: Request) -> StatsResponse:
    return StatsResponse.from_stats(request.app.state.hub.get_corpus_stats())
