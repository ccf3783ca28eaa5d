"""Índice en memoria de documentos, reemplazado completo en cada rebuild."""

from __future__ import annotations

import datetime
from collections import Counter
from collections.abc import Iterable, Mapping
from types import MappingProxyType

import structlog

from dochub.models import CorpusStats, DocumentRecord

logger = structlog.get_logger(__name__)

_EMPTY: Mapping[str, DocumentRecord] = MappingProxyType({})
_EPOCH = datetime.datetime.min.replace(tzinfo=datetime.timezone.utc)


class DocumentIndex:
    """Mapa id → ``DocumentRecord`` con vistas por categoría y tag.

    El mapa nunca se muta: ``rebuild`` arma uno nuevo aparte y reemplaza
    la referencia en una sola asignación, así un lector ve el set viejo o
    el nuevo completo, nunca una mezcla.
    """

    def __init__(self) -> None:
        self._records: Mapping[str, DocumentRecord] = _EMPTY
        self._indexed = False

    def rebuild(self, records: Iterable[DocumentRecord]) -> None:
        fresh: dict[str, DocumentRecord] = {}
        for record in records:
            if record.id in fresh:
                logger.warning("duplicate_document_id", id=record.id, path=record.path)
                continue
            fresh[record.id] = record
        self._records = MappingProxyType(fresh)
        self._indexed = True
        logger.debug("index_swapped", documents=len(fresh))

    def indexed(self) -> bool:
        return self._indexed

    def __len__(self) -> int:
        return len(self._records)

    def all(self) -> list[DocumentRecord]:
        return list(self._records.values())

    def get(self, doc_id: str) -> DocumentRecord | None:
        return self._records.get(doc_id)

    def by_category(self, category: str) -> list[DocumentRecord]:
        return [r for r in self._records.values() if r.category == category]

    def by_tag(self, tag: str) -> list[DocumentRecord]:
        wanted = tag.strip().lower()
        return [r for r in self._records.values() if wanted in (t.lower() for t in r.tags)]

    def all_tags(self) -> list[str]:
        return sorted({t for r in self._records.values() for t in r.tags})

    def category_counts(self) -> dict[str, int]:
        counts = Counter(r.category for r in self._records.values())
        return dict(sorted(counts.items()))

    def with_diagrams(self) -> list[DocumentRecord]:
        return [r for r in self._records.values() if r.has_diagrams]

    def recently_updated(self, limit: int = 5) -> list[DocumentRecord]:
        """Documentos por ``last_modified`` descendente; los sin fecha al final."""
        records = sorted(
            self._records.values(),
            key=lambda r: r.last_modified or _EPOCH,
            reverse=True,
        )
        return records[:limit]

    def stats(self) -> CorpusStats:
        records = list(self._records.values())
        dates = [r.last_modified for r in records if r.last_modified is not None]
        return CorpusStats(
            total_documents=len(records),
            total_categories=len({r.category for r in records}),
            total_words=sum(r.word_count for r in records),
            last_updated=max(dates) if dates else None,
        )
