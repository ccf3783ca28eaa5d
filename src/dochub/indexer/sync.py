"""Orquestador de indexación: descubre fuentes, carga, parsea y reemplaza el índice."""

from __future__ import annotations

import asyncio
import dataclasses
import hashlib
import time
from typing import Callable

import structlog

from dochub.errors import ContentLoadError
from dochub.indexer.index import DocumentIndex
from dochub.indexer.loader import ContentLoader
from dochub.indexer.parser import ParserOptions, parse_document
from dochub.indexer.sources import SourceEnumerator
from dochub.models import DocumentRecord, IndexSummary

logger = structlog.get_logger(__name__)


def _path_digest(path: str) -> str:
    """Sufijo estable para desambiguar ids que colisionan."""
    return hashlib.sha256(path.encode("utf-8")).hexdigest()[:8]


def _unique_ids(records: list[DocumentRecord]) -> list[DocumentRecord]:
    seen: set[str] = set()
    unique: list[DocumentRecord] = []
    for record in records:
        if record.id in seen:
            new_id = f"{record.id}-{_path_digest(record.path)}"
            logger.warning("document_id_collision", id=record.id, path=record.path, new_id=new_id)
            record = dataclasses.replace(record, id=new_id)
        seen.add(record.id)
        unique.append(record)
    return unique


class CorpusIndexer:
    """Reconstruye el ``DocumentIndex`` completo desde las fuentes.

    Sólo puede haber un rebuild en vuelo: quien pida indexar mientras otro
    corre espera la misma tarea en lugar de lanzar una segunda.
    """

    def __init__(
        self,
        enumerator: SourceEnumerator,
        loader: ContentLoader,
        index: DocumentIndex,
        *,
        options: ParserOptions | None = None,
        min_check_interval: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.enumerator = enumerator
        self.loader = loader
        self.index = index
        self.options = options or ParserOptions()
        self.min_check_interval = min_check_interval
        self._clock = clock
        self._inflight: asyncio.Task[IndexSummary] | None = None
        self._last_source_count = 0
        self._last_check: float | None = None
        self.last_summary: IndexSummary | None = None

    @property
    def rebuilding(self) -> bool:
        return self._inflight is not None

    async def ensure_indexed(self) -> IndexSummary | None:
        """Indexa si nunca se hizo; idempotente y seguro ante llamadas concurrentes."""
        if self.index.indexed() and self._inflight is None:
            return self.last_summary
        return await self._run(force=False)

    async def reindex(self) -> IndexSummary:
        """Descarta el corpus actual (y la caché del loader) y lo reconstruye."""
        self._last_check = self._clock()
        return await self._run(force=True)

    async def check_for_updates(self) -> bool:
        """Reindexa si cambió la cantidad de fuentes; respeta un intervalo mínimo."""
        now = self._clock()
        if self._last_check is not None and now - self._last_check < self.min_check_interval:
            logger.debug("refresh_check_skipped", since=round(now - self._last_check, 2))
            return False
        self._last_check = now

        paths = await self.enumerator.list_sources()
        if len(paths) == self._last_source_count:
            logger.debug("refresh_check", sources=len(paths), changed=False)
            return False

        logger.info("source_count_changed", previous=self._last_source_count, current=len(paths))
        await self.reindex()
        return True

    async def _run(self, *, force: bool) -> IndexSummary:
        if self._inflight is None:
            if force:
                self.loader.clear_cache()
            self._inflight = asyncio.create_task(self._build())
        return await asyncio.shield(self._inflight)

    async def _load_one(self, path: str) -> DocumentRecord | ContentLoadError:
        try:
            loaded = await self.loader.load(path)
        except ContentLoadError as exc:
            logger.warning("document_load_failed", path=path, error=exc.reason)
            return exc
        return parse_document(
            path,
            loaded.text,
            last_modified=loaded.metadata.last_modified,
            options=self.options,
        )

    async def _build(self) -> IndexSummary:
        t0 = time.time()
        try:
            paths = await self.enumerator.list_sources()
            logger.info("index_started", sources=len(paths))

            outcomes = await asyncio.gather(*(self._load_one(p) for p in paths))

            summary = IndexSummary(sources=len(paths))
            records: list[DocumentRecord] = []
            for outcome in outcomes:
                if isinstance(outcome, ContentLoadError):
                    summary.failed += 1
                    summary.errors.append(f"load:{outcome.path}: {outcome.reason}")
                    continue
                records.append(outcome)

            self.index.rebuild(_unique_ids(records))
            self._last_source_count = len(paths)

            summary.indexed = len(records)
            summary.duration_seconds = round(time.time() - t0, 2)
            self.last_summary = summary
            logger.info(
                "index_complete",
                sources=summary.sources,
                indexed=summary.indexed,
                failed=summary.failed,
                duration=summary.duration_seconds,
            )
            return summary
        finally:
            self._inflight = None
