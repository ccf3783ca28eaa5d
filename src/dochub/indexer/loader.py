"""Carga de contenido crudo con memoización por path."""

from __future__ import annotations

import asyncio
import datetime
import pathlib
from email.utils import parsedate_to_datetime
from typing import Protocol
from urllib.parse import quote

import httpx
import structlog

from dochub.errors import ContentLoadError
from dochub.indexer.parser import DEFAULT_CATEGORY_PATTERN, category_from_path
from dochub.models import FileMetadata, LoadedContent

logger = structlog.get_logger(__name__)

LOADER_DEFAULT_CATEGORY = "general"


class ContentLoader(Protocol):
    """Contrato del loader: texto + metadatos para un path."""

    async def load(self, path: str) -> LoadedContent: ...

    async def exists(self, path: str) -> bool: ...

    def clear_cache(self) -> None: ...

    async def aclose(self) -> None: ...


class _CachingLoader:
    """Memoización simple clave→valor, sin eviction (corpus chico)."""

    def __init__(self, category_pattern: str = DEFAULT_CATEGORY_PATTERN) -> None:
        self.category_pattern = category_pattern
        self._cache: dict[str, LoadedContent] = {}

    async def _fetch(self, path: str) -> LoadedContent:
        raise NotImplementedError

    async def load(self, path: str) -> LoadedContent:
        cached = self._cache.get(path)
        if cached is not None:
            return cached
        loaded = await self._fetch(path)
        self._cache[path] = loaded
        logger.debug("document_loaded", path=path, size=loaded.metadata.size_bytes)
        return loaded

    def clear_cache(self) -> None:
        self._cache.clear()

    async def aclose(self) -> None:
        return None

    def _category(self, path: str) -> str:
        return category_from_path(path, self.category_pattern, default=LOADER_DEFAULT_CATEGORY)


class FileContentLoader(_CachingLoader):
    """Lee documentos desde el filesystem local bajo ``root``."""

    def __init__(self, root: pathlib.Path, category_pattern: str = DEFAULT_CATEGORY_PATTERN) -> None:
        super().__init__(category_pattern)
        self.root = root

    def _resolve(self, path: str) -> pathlib.Path:
        root = self.root.resolve()
        target = (root / path).resolve()
        if not target.is_relative_to(root):
            raise ContentLoadError(path, "fuera del directorio raíz")
        return target

    def _read(self, path: str) -> LoadedContent:
        target = self._resolve(path)
        try:
            text = target.read_text(encoding="utf-8", errors="replace")
            stat = target.stat()
        except OSError as exc:
            raise ContentLoadError(path, str(exc)) from exc

        metadata = FileMetadata(
            path=path,
            name=target.name,
            size_bytes=stat.st_size,
            last_modified=datetime.datetime.fromtimestamp(stat.st_mtime, tz=datetime.timezone.utc),
            category=self._category(path),
        )
        return LoadedContent(text=text, metadata=metadata)

    async def _fetch(self, path: str) -> LoadedContent:
        return await asyncio.to_thread(self._read, path)

    async def exists(self, path: str) -> bool:
        try:
            target = self._resolve(path)
        except ContentLoadError:
            return False
        return await asyncio.to_thread(target.is_file)


def _parse_http_date(value: str | None) -> datetime.datetime | None:
    if not value:
        return None
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.timezone.utc)
    return parsed


class HttpContentLoader(_CachingLoader):
    """Lee documentos vía HTTP desde ``base_url/<path>``."""

    def __init__(
        self,
        base_url: str,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
        category_pattern: str = DEFAULT_CATEGORY_PATTERN,
    ) -> None:
        super().__init__(category_pattern)
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{quote(path.lstrip('/'))}"

    async def _fetch(self, path: str) -> LoadedContent:
        try:
            resp = await self._client.get(self._url(path))
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise ContentLoadError(path, str(exc)) from exc

        size = resp.headers.get("content-length")
        metadata = FileMetadata(
            path=path,
            name=path.rsplit("/", 1)[-1],
            size_bytes=int(size) if size and size.isdigit() else len(resp.content),
            last_modified=_parse_http_date(resp.headers.get("last-modified")),
            category=self._category(path),
        )
        return LoadedContent(text=resp.text, metadata=metadata)

    async def exists(self, path: str) -> bool:
        try:
            resp = await self._client.head(self._url(path))
        except httpx.HTTPError:
            return False
        return resp.is_success

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
