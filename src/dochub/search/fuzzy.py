"""Matcher aproximado multi-campo sobre rapidfuzz.

Cada token de la query se alinea contra cada campo con
``fuzz.partial_ratio_alignment`` (mejor ventana del campo). La similitud
de un campo es el promedio de sus tokens; el score del documento es el
promedio ponderado de los campos que alcanzan su umbral, siempre en 0..1:
un campo sin match no resta. Los campos de prosa (descripción y
contenido) usan un umbral más estricto que título y tags.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from rapidfuzz import fuzz

from dochub.models import DocumentRecord, SearchMatch, SearchResult

FIELD_WEIGHTS: dict[str, float] = {
    "title": 0.4,
    "description": 0.3,
    "content": 0.2,
    "tags": 0.1,
}

DEFAULT_THRESHOLD = 0.75
PROSE_THRESHOLD = 0.85
PROSE_FIELDS = frozenset({"description", "content"})
MIN_TOKEN_CHARS = 2
SNIPPET_RADIUS = 60

_TOKEN_RE = re.compile(r"\w[\w'-]*")


def tokenize_query(query: str) -> list[str]:
    return [t for t in _TOKEN_RE.findall(query.lower()) if len(t) >= MIN_TOKEN_CHARS]


@dataclass(frozen=True)
class _Entry:
    record: DocumentRecord
    title: str
    description: str
    content: str
    tags: tuple[str, ...]


def _display(original: str, lowered: str) -> str:
    # Los offsets se calculan sobre ``lowered``; sólo se devuelve el
    # original si lower() no cambió la longitud.
    return original if len(original) == len(lowered) else lowered


def _align(token: str, text: str) -> tuple[float, tuple[int, int]]:
    pos = text.find(token)
    if pos >= 0:
        return 1.0, (pos, pos + len(token))
    alignment = fuzz.partial_ratio_alignment(token, text)
    if alignment is None:
        return 0.0, (0, 0)
    return alignment.score / 100.0, (alignment.dest_start, alignment.dest_end)


def _snippet(text: str, ranges: list[tuple[int, int]]) -> tuple[str, tuple[tuple[int, int], ...]]:
    """Recorta ``text`` alrededor del primer rango y rebasa los offsets."""
    first_start, first_end = min(ranges)
    start = max(0, first_start - SNIPPET_RADIUS)
    end = min(len(text), first_end + SNIPPET_RADIUS)
    inside = tuple((s - start, e - start) for s, e in sorted(ranges) if s >= start and e <= end)
    return text[start:end], inside


class FuzzyIndex:
    """Estructura de búsqueda aproximada construida una vez sobre un set de registros."""

    def __init__(
        self,
        records: Iterable[DocumentRecord],
        *,
        threshold: float = DEFAULT_THRESHOLD,
        prose_threshold: float = PROSE_THRESHOLD,
        weights: dict[str, float] | None = None,
    ) -> None:
        self.threshold = threshold
        self.prose_threshold = max(threshold, prose_threshold)
        self.weights = weights or FIELD_WEIGHTS
        self._entries = [
            _Entry(
                record=r,
                title=r.title.lower(),
                description=(r.description or "").lower(),
                content=r.searchable_text,
                tags=tuple(t.lower() for t in r.tags),
            )
            for r in records
        ]

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def records(self) -> list[DocumentRecord]:
        return [e.record for e in self._entries]

    def _threshold_for(self, field_name: str) -> float:
        return self.prose_threshold if field_name in PROSE_FIELDS else self.threshold

    def _match_text(
        self, tokens: list[str], text: str, threshold: float
    ) -> tuple[float, list[tuple[int, int]]]:
        scores: list[float] = []
        ranges: list[tuple[int, int]] = []
        for token in tokens:
            score, span = _align(token, text)
            scores.append(score)
            if score >= threshold and span[1] > span[0]:
                ranges.append(span)
        return sum(scores) / len(scores), ranges

    def _match_tags(self, tokens: list[str], entry: _Entry) -> tuple[float, list[SearchMatch]]:
        best = [0.0] * len(tokens)
        matches: list[SearchMatch] = []
        for original, tag in zip(entry.record.tags, entry.tags):
            ranges: list[tuple[int, int]] = []
            for i, token in enumerate(tokens):
                score, span = _align(token, tag)
                best[i] = max(best[i], score)
                if score >= self.threshold and span[1] > span[0]:
                    ranges.append(span)
            if ranges:
                matches.append(SearchMatch("tags", _display(original, tag), tuple(sorted(ranges))))
        return sum(best) / len(best), matches

    def _score(self, tokens: list[str], entry: _Entry) -> SearchResult | None:
        matched: dict[str, float] = {}
        matches: list[SearchMatch] = []

        fields = (
            ("title", entry.record.title, entry.title),
            ("description", entry.record.description or "", entry.description),
            ("content", entry.content, entry.content),
        )
        for name, original, text in fields:
            if not text:
                continue
            threshold = self._threshold_for(name)
            similarity, ranges = self._match_text(tokens, text, threshold)
            if similarity < threshold:
                continue
            matched[name] = similarity
            if not ranges:
                continue
            if name == "content":
                snippet, rebased = _snippet(text, ranges)
                matches.append(SearchMatch(name, snippet, rebased))
            else:
                matches.append(SearchMatch(name, _display(original, text), tuple(sorted(ranges))))

        if entry.tags:
            similarity, tag_matches = self._match_tags(tokens, entry)
            if similarity >= self.threshold:
                matched["tags"] = similarity
                matches.extend(tag_matches)

        if not matched:
            return None

        total_weight = sum(self.weights[name] for name in matched)
        score = sum(self.weights[name] * s for name, s in matched.items()) / total_weight
        return SearchResult(document=entry.record, score=min(1.0, round(score, 4)), matches=matches)

    def search(
        self,
        query: str,
        limit: int = 10,
        *,
        predicate: Callable[[DocumentRecord], bool] | None = None,
    ) -> list[SearchResult]:
        """Resultados ordenados por score descendente; empates en orden de corpus."""
        tokens = tokenize_query(query)
        if not tokens or limit <= 0:
            return []

        results: list[SearchResult] = []
        for entry in self._entries:
            if predicate is not None and not predicate(entry.record):
                continue
            result = self._score(tokens, entry)
            if result is not None:
                results.append(result)

        results.sort(key=lambda r: r.score, reverse=True)
        return results[:limit]
