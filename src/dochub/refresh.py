"""Chequeo periódico de cambios en las fuentes, como tarea cancelable."""

from __future__ import annotations

import asyncio
import contextlib

import structlog

from dochub.service import KnowledgeHub

logger = structlog.get_logger(__name__)


class AutoRefresher:
    """Llama ``hub.check_for_updates()`` cada ``interval`` segundos.

    Lo posee quien lo arranca (p.ej. el lifespan de la API). El intervalo
    mínimo entre chequeos lo impone el indexer, así que varios refreshers
    no disparan rebuilds en cadena.
    """

    def __init__(self, hub: KnowledgeHub, interval: float = 30.0) -> None:
        self.hub = hub
        self.interval = interval
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop())
        logger.info("auto_refresh_started", interval=self.interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("auto_refresh_stopped")

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                result = await self.hub.check_for_updates()
            except Exception as exc:
                logger.warning("auto_refresh_failed", error=str(exc))
                continue
            if result.refreshed:
                logger.info("auto_refresh", previous=result.previous_count, new=result.new_count)
