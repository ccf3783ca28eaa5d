"""DTOs (Data Transfer Objects) para las entidades de la base documental."""

from __future__ import annotations

import datetime
import math
import re
from dataclasses import dataclass, field
from functools import cached_property

_CODE_FENCE_RE = re.compile(r"```.*?```", re.DOTALL)

WORDS_PER_MINUTE = 200


def strip_code_fences(text: str) -> str:
    """Elimina los bloques ``` completos del texto."""
    return _CODE_FENCE_RE.sub("", text)


@dataclass(frozen=True)
class Heading:
    """Un heading markdown con su ancla para links internos."""

    level: int
    text: str
    anchor: str


@dataclass(frozen=True)
class DiagramBlock:
    """Bloque de código de diagrama (mermaid) embebido en el documento."""

    id: str
    type: str
    content: str
    title: str | None = None


@dataclass(frozen=True)
class DocumentRecord:
    """Unidad de indexación: un documento parseado y sus metadatos derivados.

    ``searchable_text`` no se almacena: se deriva de título, descripción,
    tags y body cada vez que se construye el registro.
    """

    id: str
    path: str
    slug: str
    title: str
    category: str
    body: str
    description: str | None = None
    tags: tuple[str, ...] = ()
    headings: tuple[Heading, ...] = ()
    diagrams: tuple[DiagramBlock, ...] = ()
    word_count: int = 0
    last_modified: datetime.datetime | None = None
    author: str | None = None
    words_per_minute: int = field(default=WORDS_PER_MINUTE, repr=False)

    @property
    def reading_time_minutes(self) -> int:
        return math.ceil(self.word_count / self.words_per_minute)

    @property
    def has_diagrams(self) -> bool:
        return bool(self.diagrams)

    @cached_property
    def searchable_text(self) -> str:
        parts = [
            self.title,
            self.description or "",
            " ".join(self.tags),
            strip_code_fences(self.body),
        ]
        return " ".join(parts).lower()


@dataclass(frozen=True)
class FileMetadata:
    """Metadatos básicos de un archivo fuente."""

    path: str
    name: str
    size_bytes: int
    last_modified: datetime.datetime | None
    category: str


@dataclass(frozen=True)
class LoadedContent:
    """Texto crudo de un documento más sus metadatos de archivo."""

    text: str
    metadata: FileMetadata


@dataclass(frozen=True)
class CorpusStats:
    """Vista derivada del corpus, recalculada en cada consulta."""

    total_documents: int
    total_categories: int
    total_words: int
    last_updated: datetime.datetime | None


@dataclass(frozen=True)
class SearchMatch:
    """Coincidencia dentro de un campo; ``ranges`` son offsets [start, end)."""

    field: str
    matched_text: str
    ranges: tuple[tuple[int, int], ...] = ()


@dataclass
class SearchResult:
    """Un resultado de búsqueda con su score (0..1) y coincidencias."""

    document: DocumentRecord
    score: float
    matches: list[SearchMatch] = field(default_factory=list)


@dataclass
class IndexSummary:
    """Resultado de una pasada de indexación completa."""

    sources: int = 0
    indexed: int = 0
    failed: int = 0
    duration_seconds: float = 0.0
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class RefreshResult:
    """Conteo de documentos antes y después de un refresh."""

    previous_count: int
    new_count: int
    refreshed: bool = True
