"""Descubrimiento de documentos: lista estática, escaneo de directorio o endpoint HTTP."""

from __future__ import annotations

import asyncio
import pathlib
from typing import Protocol

import httpx
import structlog

from dochub.errors import SourceEnumerationError

logger = structlog.get_logger(__name__)


class SourceEnumerator(Protocol):
    """Contrato común: devuelve paths ordenados de documentos a cargar."""

    async def list_sources(self) -> list[str]: ...


class StaticSourceEnumerator:
    """Allow-list fija de paths conocidos."""

    def __init__(self, paths: list[str]) -> None:
        self._paths = sorted(set(paths))

    async def list_sources(self) -> list[str]:
        return list(self._paths)


class DirectorySourceEnumerator:
    """Recorre recursivamente ``root`` buscando documentos de texto.

    Omite entradas ocultas y carpetas de dependencias. Los paths se
    devuelven en formato POSIX relativos a ``root``.
    """

    def __init__(
        self,
        root: pathlib.Path,
        extensions: list[str] | None = None,
        skip_dirs: list[str] | None = None,
    ) -> None:
        self.root = root
        self.extensions = {e.lower() for e in (extensions or [".md", ".txt"])}
        self.skip_dirs = set(skip_dirs or ["node_modules"])

    def _walk(self) -> list[str]:
        if not self.root.is_dir():
            raise SourceEnumerationError(f"El directorio {self.root} no existe")

        results: list[str] = []
        try:
            for p in self.root.rglob("*"):
                parts = p.relative_to(self.root).parts
                if any(part.startswith(".") or part in self.skip_dirs for part in parts):
                    continue
                if p.suffix.lower() not in self.extensions or not p.is_file():
                    continue
                results.append(pathlib.PurePath(*parts).as_posix())
        except OSError as exc:
            raise SourceEnumerationError(f"Fallo al recorrer {self.root}: {exc}") from exc
        return sorted(results)

    async def list_sources(self) -> list[str]:
        return await asyncio.to_thread(self._walk)


class HttpSourceEnumerator:
    """Consulta un endpoint de descubrimiento que responde ``{"success", "files"}``."""

    def __init__(
        self,
        discover_url: str,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.discover_url = discover_url
        self._client = client
        self._timeout = timeout

    async def _fetch(self) -> dict:
        if self._client is not None:
            resp = await self._client.get(self.discover_url)
            resp.raise_for_status()
            return resp.json()
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            resp = await client.get(self.discover_url)
            resp.raise_for_status()
            return resp.json()

    async def list_sources(self) -> list[str]:
        try:
            data = await self._fetch()
        except (httpx.HTTPError, ValueError) as exc:
            raise SourceEnumerationError(f"Discovery falló en {self.discover_url}: {exc}") from exc

        if not isinstance(data, dict) or not data.get("success"):
            raise SourceEnumerationError(f"Respuesta inválida de {self.discover_url}")
        files = data.get("files")
        if not isinstance(files, list):
            raise SourceEnumerationError(f"Respuesta inválida de {self.discover_url}")

        logger.debug("sources_discovered", url=self.discover_url, files=len(files))
        return sorted(str(f) for f in files)


class FallbackSourceEnumerator:
    """Usa ``primary`` y, si falla, la lista de respaldo sin propagar el error."""

    def __init__(self, primary: SourceEnumerator, fallback: SourceEnumerator) -> None:
        self.primary = primary
        self.fallback = fallback

    async def list_sources(self) -> list[str]:
        try:
            return await self.primary.list_sources()
        except SourceEnumerationError as exc:
            logger.warning("source_enumeration_fallback", error=str(exc))
            return await self.fallback.list_sources()
