"""Modelos Pydantic v2 para request/response de la API."""

from __future__ import annotations

import datetime

from pydantic import BaseModel, Field

from dochub.models import CorpusStats, DocumentRecord, SearchResult


# ---------- Documentos ----------

class HeadingItem(BaseModel):
    level: int
    text: str
    anchor: str


class DiagramItem(BaseModel):
    id: str
    type: str
    title: str | None
    content: str


class DocumentSummary(BaseModel):
    id: str
    path: str
    slug: str
    title: str
    description: str | None
    category: str
    tags: list[str]
    word_count: int
    reading_time_minutes: int
    last_modified: datetime.datetime | None
    has_diagrams: bool

    @classmethod
    def from_record(cls, record: DocumentRecord) -> DocumentSummary:
        return cls(
            id=record.id,
            path=record.path,
            slug=record.slug,
            title=record.title,
            description=record.description,
            category=record.category,
            tags=list(record.tags),
            word_count=record.word_count,
            reading_time_minutes=record.reading_time_minutes,
            last_modified=record.last_modified,
            has_diagrams=record.has_diagrams,
        )


class DocumentDetail(DocumentSummary):
    author: str | None
    body: str
    headings: list[HeadingItem]
    diagrams: list[DiagramItem]

    @classmethod
    def from_record(cls, record: DocumentRecord) -> DocumentDetail:
        summary = DocumentSummary.from_record(record)
        return cls(
            **summary.model_dump(),
            author=record.author,
            body=record.body,
            headings=[HeadingItem(level=h.level, text=h.text, anchor=h.anchor) for h in record.headings],
            diagrams=[
                DiagramItem(id=d.id, type=d.type, title=d.title, content=d.content)
                for d in record.diagrams
            ],
        )


class DocumentListResponse(BaseModel):
    documents: list[DocumentSummary]
    total: int


# ---------- /categories, /tags, /stats ----------

class CategoryItem(BaseModel):
    category: str
    count: int


class CategoriesResponse(BaseModel):
    categories: list[CategoryItem]


class TagsResponse(BaseModel):
    tags: list[str]


class StatsResponse(BaseModel):
    total_documents: int
    total_categories: int
    total_words: int
    last_updated: datetime.datetime | None

    @classmethod
    def from_stats(cls, stats: CorpusStats) -> StatsResponse:
        return cls(
            total_documents=stats.total_documents,
            total_categories=stats.total_categories,
            total_words=stats.total_words,
            last_updated=stats.last_updated,
        )


# ---------- /search ----------

class SearchRequest(BaseModel):
    query: str
    category: str | None = None
    limit: int = Field(default=10, ge=1, le=50)


class TagSearchRequest(BaseModel):
    tags: list[str] = Field(min_length=1)
    limit: int = Field(default=10, ge=1, le=50)


class SearchMatchItem(BaseModel):
    field: str
    matched_text: str
    ranges: list[tuple[int, int]]


class SearchResultItem(BaseModel):
    document: DocumentSummary
    score: float
    matches: list[SearchMatchItem]

    @classmethod
    def from_result(cls, result: SearchResult) -> SearchResultItem:
        return cls(
            document=DocumentSummary.from_record(result.document),
            score=round(result.score, 4),
            matches=[
                SearchMatchItem(field=m.field, matched_text=m.matched_text, ranges=list(m.ranges))
                for m in result.matches
            ],
        )


class SearchResponse(BaseModel):
    results: list[SearchResultItem]
    total: int


class SuggestionsResponse(BaseModel):
    suggestions: list[str]


# ---------- /refresh ----------

class RefreshResponse(BaseModel):
    previous_count: int
    new_count: int
    refreshed: bool


# ---------- /health ----------

class HealthResponse(BaseModel):
    status: str
    indexed: bool
    rebuilding: bool
    documents: int
    failed: int
    version: str
