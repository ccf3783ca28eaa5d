"""Motor de búsqueda: fuzzy ponderado, filtros por categoría/tags, sugerencias y relacionados."""

from __future__ import annotations

import structlog

from dochub.indexer.sync import CorpusIndexer
from dochub.models import DocumentRecord, SearchMatch, SearchResult
from dochub.search.fuzzy import DEFAULT_THRESHOLD, PROSE_THRESHOLD, FuzzyIndex

logger = structlog.get_logger(__name__)

MIN_SUGGESTION_CHARS = 2


class SearchEngine:
    """Responde consultas sobre un snapshot del índice ya construido.

    La estructura fuzzy se arma en ``initialize`` y no se sincroniza sola
    con el índice: tras un rebuild hay que llamar ``reinitialize``. Antes
    de inicializar, toda consulta devuelve una lista vacía.
    """

    def __init__(
        self,
        indexer: CorpusIndexer,
        *,
        threshold: float = DEFAULT_THRESHOLD,
        prose_threshold: float = PROSE_THRESHOLD,
        popular_terms: list[str] | None = None,
    ) -> None:
        self.indexer = indexer
        self.threshold = threshold
        self.prose_threshold = prose_threshold
        self.popular_terms = list(popular_terms or [])
        self._fuzzy: FuzzyIndex | None = None

    async def initialize(self) -> None:
        await self.indexer.ensure_indexed()
        records = self.indexer.index.all()
        self._fuzzy = FuzzyIndex(
            records, threshold=self.threshold, prose_threshold=self.prose_threshold
        )
        logger.info("search_engine_initialized", documents=len(records))

    async def reinitialize(self) -> None:
        self._fuzzy = None
        await self.initialize()

    def is_initialized(self) -> bool:
        return self._fuzzy is not None

    def _records(self) -> list[DocumentRecord]:
        return self._fuzzy.records if self._fuzzy is not None else []

    def search(self, query: str, limit: int = 10) -> list[SearchResult]:
        if self._fuzzy is None or not query.strip():
            return []
        results = self._fuzzy.search(query, limit)
        logger.debug("search", query=query, results=len(results))
        return results

    def search_in_category(self, query: str, category: str, limit: int = 10) -> list[SearchResult]:
        """Igual que ``search`` pero restringido; query vacía = navegar la categoría."""
        if self._fuzzy is None:
            return []
        if not query.strip():
            docs = [r for r in self._fuzzy.records if r.category == category]
            return [SearchResult(document=d, score=1.0) for d in docs[:limit]]
        return self._fuzzy.search(query, limit, predicate=lambda r: r.category == category)

    def search_by_tags(self, tags: list[str], limit: int = 10) -> list[SearchResult]:
        """Score = fracción de los tags pedidos contenidos (substring) en los del documento."""
        wanted = [t.strip().lower() for t in tags if t.strip()]
        if self._fuzzy is None or not wanted:
            return []

        results: list[SearchResult] = []
        for record in self._fuzzy.records:
            doc_tags = [t.lower() for t in record.tags]
            matches: list[SearchMatch] = []
            for tag in wanted:
                hit = next((t for t in doc_tags if tag in t), None)
                if hit is not None:
                    start = hit.index(tag)
                    matches.append(SearchMatch("tags", hit, ((start, start + len(tag)),)))
            if matches:
                results.append(
                    SearchResult(document=record, score=len(matches) / len(wanted), matches=matches)
                )

        results.sort(key=lambda r: r.score, reverse=True)
        return results[:limit]

    def suggestions(self, partial_query: str, limit: int = 5) -> list[str]:
        if self._fuzzy is None:
            return []
        needle = partial_query.strip().lower()
        if len(needle) < MIN_SUGGESTION_CHARS:
            return self.popular_terms[:limit]

        found: dict[str, None] = {}
        for record in self._fuzzy.records:
            if needle in record.title.lower():
                found.setdefault(record.title, None)
            for tag in record.tags:
                if needle in tag.lower():
                    found.setdefault(tag, None)
            if len(found) >= limit:
                break
        return list(found)[:limit]

    def related_documents(self, document: DocumentRecord, limit: int = 5) -> list[DocumentRecord]:
        """Heurística: 2 puntos por tag compartido + 1 si comparten categoría.

        Sin tags, cae a documentos de la misma categoría. Los documentos con
        puntaje cero se descartan.
        """
        others = [r for r in self._records() if r.id != document.id]
        if not document.tags:
            return [r for r in others if r.category == document.category][:limit]

        own_tags = set(document.tags)
        scored: list[tuple[int, DocumentRecord]] = []
        for record in others:
            score = 2 * len(own_tags.intersection(record.tags))
            if record.category == document.category:
                score += 1
            if score > 0:
                scored.append((score, record))

        scored.sort(key=lambda item: item[0], reverse=True)
        return [record for _, record in scored[:limit]]
