"""Parseo de documentos markdown/texto con frontmatter YAML opcional.

``parse_document`` es una función pura: para el mismo path y el mismo
texto devuelve siempre el mismo registro. Ningún paso lanza excepciones
ante markdown mal formado; cada extracción tiene un fallback seguro.
"""

from __future__ import annotations

import datetime
import pathlib
import re
from dataclasses import dataclass, field
from typing import Any, Callable

import frontmatter
import yaml

from dochub.models import (
    WORDS_PER_MINUTE,
    DiagramBlock,
    DocumentRecord,
    Heading,
    strip_code_fences,
)

FrontMatterSplitter = Callable[[str], tuple[dict, str]]

DEFAULT_CATEGORY_PATTERN = r"^\d{2}_"
PARSER_DEFAULT_CATEGORY = "uncategorized"
TEXT_EXTENSIONS = (".md", ".markdown", ".txt")

# Frases que delatan una línea de título en archivos de texto plano.
TITLE_MARKERS = ("Knowledge Base", "DOCUMENT")

_H1_RE = re.compile(r"^#[ \t]+(.+)$", re.MULTILINE)
_HEADING_RE = re.compile(r"^(#{1,6})[ \t]+(.+)$", re.MULTILINE)
_FENCE_BLOCK_RE = re.compile(r"^```[ \t]*([\w+-]*)[^\n]*\n(.*?)^```", re.DOTALL | re.MULTILINE)
_DIAGRAM_TITLE_RE = re.compile(r"(?:^|\s)title\s+(.+)$", re.MULTILINE | re.IGNORECASE)
_PARAGRAPH_SPLIT_RE = re.compile(r"\n\s*\n")
_LINE_MARKER_RE = re.compile(r"^(?:>+\s*|[-*+]\s+|\d+[.)]\s+)")
_CAMEL_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")

_BOLD_TAG_RE = re.compile(r"\*\*([A-Z][a-zA-Z\s]+)\*\*")
_HASHTAG_RE = re.compile(r"(?<![\w#&/])#([a-zA-Z]+)")
_BRACKET_TAG_RE = re.compile(r"\[([A-Z][a-zA-Z\s]+)\]")

_DIAGRAM_TYPES = {
    "graph": "flowchart",
    "flowchart": "flowchart",
    "sequencediagram": "sequence",
    "gantt": "gantt",
    "pie": "pie",
    "gitgraph": "gitgraph",
}

_LAST_MODIFIED_KEYS = ("lastModified", "last_modified", "date")


@dataclass(frozen=True)
class ParserOptions:
    """Parámetros configurables de la extracción heurística."""

    category_pattern: str = DEFAULT_CATEGORY_PATTERN
    max_tags: int = 10
    min_tag_chars: int = 3
    max_tag_chars: int = 19
    tag_keywords: dict[str, str] = field(default_factory=dict)
    diagram_languages: tuple[str, ...] = ("mermaid",)
    words_per_minute: int = WORDS_PER_MINUTE
    description_min_chars: int = 50
    description_max_chars: int = 200

    @classmethod
    def from_settings(cls, settings) -> ParserOptions:
        return cls(
            category_pattern=settings.category_folder_pattern,
            max_tags=settings.max_tags,
            tag_keywords=dict(settings.tag_keywords),
            diagram_languages=tuple(lang.lower() for lang in settings.diagram_languages),
            words_per_minute=settings.words_per_minute,
            description_min_chars=settings.description_min_chars,
            description_max_chars=settings.description_max_chars,
        )


def split_front_matter(text: str) -> tuple[dict, str]:
    """Separa el bloque ``---`` inicial del body usando python-frontmatter.

    Un frontmatter inválido se trata como ausente: se devuelve el texto
    completo como body.
    """
    try:
        post = frontmatter.loads(text)
    except (yaml.YAMLError, ValueError, TypeError):
        return {}, text
    meta = post.metadata if isinstance(post.metadata, dict) else {}
    return dict(meta), post.content


def slugify(text: str) -> str:
    """Ancla estilo GitHub: minúsculas, sin símbolos, espacios a guiones."""
    anchor = re.sub(r"[^a-z0-9\s-]", "", text.lower())
    anchor = re.sub(r"\s+", "-", anchor.strip())
    return re.sub(r"-+", "-", anchor)


def _strip_extension(path: str) -> pathlib.PurePosixPath:
    p = pathlib.PurePosixPath(path)
    if p.suffix.lower() in TEXT_EXTENSIONS:
        p = p.with_suffix("")
    return p


def document_id(path: str) -> str:
    """Id estable derivado del path: minúsculas, no alfanuméricos colapsados a ``-``."""
    stem = str(_strip_extension(path)).lower()
    return re.sub(r"[^a-z0-9]+", "-", stem).strip("-") or "document"


def document_slug(path: str) -> str:
    name = _strip_extension(path).name.lower()
    return re.sub(r"[^a-z0-9]+", "-", name).strip("-") or "document"


def category_from_path(path: str, pattern: str = DEFAULT_CATEGORY_PATTERN, default: str = PARSER_DEFAULT_CATEGORY) -> str:
    """Categoría desde la primera carpeta con prefijo numerado (``02_Campaign_Core``)."""
    prefix_re = re.compile(pattern)
    for part in pathlib.PurePosixPath(path).parts[:-1]:
        if not prefix_re.match(part):
            continue
        name = prefix_re.sub("", part, count=1)
        slug = re.sub(r"[_\s]+", "-", name).strip("-").lower()
        if slug:
            return slug
    return default


def title_from_path(path: str) -> str:
    """Título de último recurso: nombre de archivo sin extensión en palabras."""
    name = _strip_extension(path).name
    words = _CAMEL_RE.sub(" ", name.replace("_", " ").replace("-", " "))
    return " ".join(words.split()) or "Untitled"


def _looks_like_title(line: str) -> bool:
    if len(line) >= 100:
        return False
    return line.isupper() or any(marker in line for marker in TITLE_MARKERS)


def _infer_title(fm: dict, body: str, path: str) -> str:
    """Frontmatter → primer H1 → cualquier heading → línea-título → nombre de archivo."""
    fm_title = fm.get("title")
    if fm_title is not None and str(fm_title).strip():
        return str(fm_title).strip()

    text = strip_code_fences(body)
    match = _H1_RE.search(text)
    if match and match.group(1).strip():
        return match.group(1).strip()

    match = _HEADING_RE.search(text)
    if match and match.group(2).strip():
        return match.group(2).strip()

    for line in text.splitlines():
        stripped = line.strip()
        if not stripped:
            continue
        if _looks_like_title(stripped):
            candidate = re.sub(r"\s*-+\s*$", "", stripped.lstrip("#")).strip()
            if candidate:
                return candidate
        break

    return title_from_path(path)


def _infer_description(fm: dict, body: str, title: str, options: ParserOptions) -> str | None:
    fm_description = fm.get("description")
    if fm_description is not None and str(fm_description).strip():
        return str(fm_description).strip()

    for paragraph in _PARAGRAPH_SPLIT_RE.split(strip_code_fences(body)):
        lines = [ln.strip() for ln in paragraph.splitlines() if ln.strip()]
        lines = [ln for ln in lines if not _HEADING_RE.match(ln)]
        if not lines or lines[0].startswith("```"):
            continue
        cleaned = " ".join(_LINE_MARKER_RE.sub("", ln) for ln in lines).strip()
        if cleaned == title or len(cleaned) <= options.description_min_chars:
            continue
        limit = options.description_max_chars
        return cleaned[:limit] + ("..." if len(cleaned) > limit else "")

    return None


def _normalize_tag(tag: Any) -> str:
    return " ".join(str(tag).split()).lower()


def _front_matter_tags(fm: dict) -> list[str]:
    raw = fm.get("tags")
    if isinstance(raw, str):
        items: list[Any] = raw.split(",")
    elif isinstance(raw, (list, tuple, set)):
        items = list(raw)
    else:
        return []
    return [t for t in (_normalize_tag(i) for i in items if i is not None) if t]


def _scan_tags(text: str, options: ParserOptions) -> list[str]:
    """Candidatos heurísticos: negritas, #hashtags, [Frases] y keywords."""
    candidates: list[str] = []
    for pattern in (_BOLD_TAG_RE, _HASHTAG_RE, _BRACKET_TAG_RE):
        for match in pattern.finditer(text):
            tag = _normalize_tag(match.group(1))
            if options.min_tag_chars <= len(tag) <= options.max_tag_chars:
                candidates.append(tag)

    lower = text.lower()
    for phrase, tag in options.tag_keywords.items():
        if re.search(rf"\b{re.escape(phrase.lower())}\b", lower):
            candidates.append(_normalize_tag(tag))
    return candidates


def _infer_tags(fm: dict, body: str, options: ParserOptions) -> tuple[str, ...]:
    tags: dict[str, None] = dict.fromkeys(_front_matter_tags(fm))
    for tag in _scan_tags(strip_code_fences(body), options):
        if len(tags) >= options.max_tags:
            break
        tags.setdefault(tag, None)
    return tuple(tags)


def extract_headings(body: str) -> tuple[Heading, ...]:
    return tuple(
        Heading(level=len(m.group(1)), text=m.group(2).strip(), anchor=slugify(m.group(2).strip()))
        for m in _HEADING_RE.finditer(strip_code_fences(body))
    )


def _diagram_type(content: str) -> str:
    for line in content.splitlines():
        if line.strip():
            keyword = line.split()[0].lower()
            return _DIAGRAM_TYPES.get(keyword, "other")
    return "other"


def extract_diagrams(body: str, languages: tuple[str, ...] = ("mermaid",)) -> tuple[DiagramBlock, ...]:
    diagrams: list[DiagramBlock] = []
    for match in _FENCE_BLOCK_RE.finditer(body):
        if match.group(1).lower() not in languages:
            continue
        content = match.group(2).strip()
        title_match = _DIAGRAM_TITLE_RE.search(content)
        diagrams.append(
            DiagramBlock(
                id=f"diagram-{len(diagrams)}",
                type=_diagram_type(content),
                content=content,
                title=title_match.group(1).strip() if title_match else None,
            )
        )
    return tuple(diagrams)


def count_words(body: str) -> int:
    text = re.sub(r"[^\w\s]", " ", strip_code_fences(body))
    return len(text.split())


def _infer_category(fm: dict, path: str, options: ParserOptions) -> str:
    fm_category = fm.get("category")
    if fm_category is not None and str(fm_category).strip():
        return str(fm_category).strip().lower()
    return category_from_path(path, options.category_pattern)


def _coerce_datetime(value: Any) -> datetime.datetime | None:
    if isinstance(value, datetime.datetime):
        parsed = value
    elif isinstance(value, datetime.date):
        parsed = datetime.datetime.combine(value, datetime.time())
    elif isinstance(value, str):
        try:
            parsed = datetime.datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.timezone.utc)
    return parsed


def _infer_last_modified(fm: dict, fallback: datetime.datetime | None) -> datetime.datetime | None:
    for key in _LAST_MODIFIED_KEYS:
        parsed = _coerce_datetime(fm.get(key))
        if parsed is not None:
            return parsed
    return fallback


def parse_document(
    path: str,
    raw_text: str,
    *,
    last_modified: datetime.datetime | None = None,
    options: ParserOptions | None = None,
    splitter: FrontMatterSplitter = split_front_matter,
) -> DocumentRecord:
    """Convierte el texto crudo de un documento en un ``DocumentRecord``.

    Args:
        path: Path relativo del documento (clave del loader).
        raw_text: Contenido completo, con frontmatter opcional.
        last_modified: Fecha del loader, usada si el frontmatter no trae una.
        options: Parámetros heurísticos; por defecto ``ParserOptions()``.
        splitter: Separador de frontmatter intercambiable.
    """
    options = options or ParserOptions()
    fm, body = splitter(raw_text)

    title = _infer_title(fm, body, path)
    author = fm.get("author")

    return DocumentRecord(
        id=document_id(path),
        path=path,
        slug=document_slug(path),
        title=title,
        category=_infer_category(fm, path, options),
        body=body,
        description=_infer_description(fm, body, title, options),
        tags=_infer_tags(fm, body, options),
        headings=extract_headings(body),
        diagrams=extract_diagrams(body, options.diagram_languages),
        word_count=count_words(body),
        last_modified=_infer_last_modified(fm, last_modified),
        author=str(author) if author is not None else None,
        words_per_minute=options.words_per_minute,
    )
