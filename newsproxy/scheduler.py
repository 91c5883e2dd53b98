from __future__ import annotations

import asyncio
import logging

from .services.ingest import Ingestor

logger = logging.getLogger(__name__)


class IngestScheduler:
    """Runs the ingestion job every ``interval`` seconds until stopped."""

    def __init__(self, ingestor: Ingestor, interval: float):
        self.ingestor = ingestor
        self.interval = interval
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="newsproxy-ingest")
        logger.info("ingestion scheduled every %.0fs", self.interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def run_once(self) -> None:
        try:
            log = await self.ingestor.ingest()
        except Exception:
            logger.exception("ingestion run failed")
            return
        logger.info(
            "ingested %s in %.3fs",
            ", ".join(entry.key for entry in log.queried) or "nothing",
            log.elapsed_time.total_seconds(),
        )

    async def _loop(self) -> None:
        while True:
            await self.run_once()
            await asyncio.sleep(self.interval)
