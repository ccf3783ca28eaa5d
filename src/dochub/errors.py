"""Excepciones tipadas del núcleo de indexación."""

from __future__ import annotations


class DochubError(Exception):
    """Base de todos los errores propios de dochub."""


class SourceEnumerationError(DochubError):
    """El backend de descubrimiento de fuentes no está disponible."""


class ContentLoadError(DochubError):
    """No se pudo leer un documento puntual."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"No se pudo cargar {path}: {reason}")
        self.path = path
        self.reason = reason
