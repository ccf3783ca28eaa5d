"""Fachada del núcleo: la interfaz que consumen la API y las vistas."""

from __future__ import annotations

import asyncio

import structlog

from dochub.config import Settings
from dochub.indexer.index import DocumentIndex
from dochub.indexer.loader import ContentLoader, FileContentLoader, HttpContentLoader
from dochub.indexer.parser import ParserOptions
from dochub.indexer.sources import (
    DirectorySourceEnumerator,
    FallbackSourceEnumerator,
    HttpSourceEnumerator,
    SourceEnumerator,
    StaticSourceEnumerator,
)
from dochub.indexer.sync import CorpusIndexer
from dochub.models import CorpusStats, DocumentRecord, RefreshResult, SearchResult
from dochub.search.engine import SearchEngine

logger = structlog.get_logger(__name__)


def build_source_enumerator(settings: Settings) -> SourceEnumerator:
    """Discovery HTTP o escaneo de ``docs_root``, con la lista estática de respaldo."""
    primary: SourceEnumerator
    if settings.discover_url:
        primary = HttpSourceEnumerator(settings.discover_url, timeout=settings.http_timeout)
    else:
        primary = DirectorySourceEnumerator(
            settings.docs_root,
            extensions=settings.document_extensions,
            skip_dirs=settings.skip_dirs,
        )
    return FallbackSourceEnumerator(primary, StaticSourceEnumerator(settings.static_sources))


def build_loader(settings: Settings) -> ContentLoader:
    if settings.loader_base_url:
        return HttpContentLoader(
            settings.loader_base_url,
            timeout=settings.http_timeout,
            category_pattern=settings.category_folder_pattern,
        )
    return FileContentLoader(settings.docs_root, category_pattern=settings.category_folder_pattern)


class KnowledgeHub:
    """Servicios de indexación y búsqueda cableados explícitamente.

    Se construye una vez (``from_settings``) y se pasa por referencia.
    """

    def __init__(self, indexer: CorpusIndexer, engine: SearchEngine, *, default_limit: int = 10, suggestion_limit: int = 5) -> None:
        self.indexer = indexer
        self.engine = engine
        self.default_limit = default_limit
        self.suggestion_limit = suggestion_limit
        self._init_lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> KnowledgeHub:
        indexer = CorpusIndexer(
            build_source_enumerator(settings),
            build_loader(settings),
            DocumentIndex(),
            options=ParserOptions.from_settings(settings),
            min_check_interval=settings.refresh_min_interval_seconds,
        )
        engine = SearchEngine(
            indexer,
            threshold=settings.search_match_threshold,
            prose_threshold=settings.search_prose_threshold,
            popular_terms=settings.popular_terms,
        )
        return cls(
            indexer,
            engine,
            default_limit=settings.search_default_limit,
            suggestion_limit=settings.suggestion_limit,
        )

    @property
    def index(self) -> DocumentIndex:
        return self.indexer.index

    async def initialize_corpus(self) -> None:
        """Idempotente: varias vistas pueden llamarlo a la vez."""
        async with self._init_lock:
            if self.engine.is_initialized():
                return
            await self.engine.initialize()

    # --- Lectura ---

    def get_all_documents(self) -> list[DocumentRecord]:
        return self.index.all()

    def get_document(self, doc_id: str) -> DocumentRecord | None:
        return self.index.get(doc_id)

    def get_documents_by_category(self, category: str) -> list[DocumentRecord]:
        return self.index.by_category(category)

    def get_documents_by_tag(self, tag: str) -> list[DocumentRecord]:
        return self.index.by_tag(tag)

    def get_all_tags(self) -> list[str]:
        return self.index.all_tags()

    def get_corpus_stats(self) -> CorpusStats:
        return self.index.stats()

    def get_category_counts(self) -> dict[str, int]:
        return self.index.category_counts()

    def get_documents_with_diagrams(self) -> list[DocumentRecord]:
        return self.index.with_diagrams()

    def get_recent_documents(self, limit: int = 5) -> list[DocumentRecord]:
        return self.index.recently_updated(limit)

    # --- Búsqueda ---

    def search(self, query: str, limit: int | None = None) -> list[SearchResult]:
        return self.engine.search(query, self.default_limit if limit is None else limit)

    def search_in_category(self, query: str, category: str, limit: int | None = None) -> list[SearchResult]:
        return self.engine.search_in_category(query, category, self.default_limit if limit is None else limit)

    def search_by_tags(self, tags: list[str], limit: int | None = None) -> list[SearchResult]:
        return self.engine.search_by_tags(tags, self.default_limit if limit is None else limit)

    def get_suggestions(self, partial_query: str, limit: int | None = None) -> list[str]:
        return self.engine.suggestions(partial_query, self.suggestion_limit if limit is None else limit)

    def get_related_documents(self, document: DocumentRecord, limit: int = 5) -> list[DocumentRecord]:
        return self.engine.related_documents(document, limit)

    # --- Refresh ---

    async def force_refresh(self) -> RefreshResult:
        """Descarta el corpus, lo reconstruye desde las fuentes y rearma el buscador."""
        previous = len(self.index)
        await self.indexer.reindex()
        await self.engine.reinitialize()
        result = RefreshResult(previous_count=previous, new_count=len(self.index))
        logger.info("corpus_refreshed", previous=result.previous_count, new=result.new_count)
        return result

    async def check_for_updates(self) -> RefreshResult:
        previous = len(self.index)
        changed = await self.indexer.check_for_updates()
        if changed:
            await self.engine.reinitialize()
        return RefreshResult(previous_count=previous, new_count=len(self.index), refreshed=changed)

    async def aclose(self) -> None:
        await self.indexer.loader.aclose()
