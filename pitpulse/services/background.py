"""
Best-effort background jobs that run after a request has been answered.

Rating recomputes triggered by check-ins and badge evaluation after a new
review go through ``RatingUpdateQueue``. A failing job is retried with a
linear back-off and then logged; it never reaches the request that queued it.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from .. import database
from ..config import settings
from .badge_service import BadgeService
from .rating_service import update_band_rating, update_venue_rating

logger = logging.getLogger(__name__)

Job = Tuple[str, int]


async def _award_badges(db: AsyncSession, user_id: int) -> None:
    await BadgeService(db).check_and_award(user_id)


JOB_HANDLERS: Dict[str, Callable[[AsyncSession, int], Awaitable[None]]] = {
    "venue": update_venue_rating,
    "band": update_band_rating,
    "badges": _award_badges,
}


class RatingUpdateQueue:
    def __init__(
        self,
        session_factory=None,
        max_attempts: Optional[int] = None,
        retry_delay: Optional[float] = None,
    ):
        self._session_factory = session_factory
        self.max_attempts = max_attempts or settings.rating_update_max_attempts
        self.retry_delay = (
            settings.rating_update_retry_delay_seconds if retry_delay is None else retry_delay
        )
        self._queue: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def _new_session(self) -> AsyncSession:
        factory = self._session_factory or database.AsyncSessionLocal
        return factory()

    def _ensure_worker(self) -> None:
        loop = asyncio.get_running_loop()
        if self._loop is not loop:
            # Queues and tasks are bound to the loop that created them
            self._loop = loop
            self._queue = asyncio.Queue()
            self._worker = None
        if self._worker is None or self._worker.done():
            self._worker = loop.create_task(self._run())

    def enqueue(self, kind: str, entity_id: Optional[int]) -> None:
        """Schedule a job. Never raises; problems are logged and the job dropped."""
        if entity_id is None:
            return
        if kind not in JOB_HANDLERS:
            logger.error(f"Unknown background job kind '{kind}'")
            return
        try:
            self._ensure_worker()
        except RuntimeError:
            logger.error(f"No running event loop, dropping {kind} job for {entity_id}")
            return
        self._queue.put_nowait((kind, entity_id))

    async def _run(self) -> None:
        while True:
            kind, entity_id = await self._queue.get()
            try:
                await self._process(kind, entity_id)
            finally:
                self._queue.task_done()

    async def _process(self, kind: str, entity_id: int) -> None:
        handler = JOB_HANDLERS[kind]
        for attempt in range(1, self.max_attempts + 1):
            try:
                async with self._new_session() as session:
                    await handler(session, entity_id)
                return
            except Exception as e:
                logger.warning(
                    f"{kind} job for {entity_id} failed (attempt {attempt}/{self.max_attempts}): {e}")
                if attempt < self.max_attempts:
                    await asyncio.sleep(self.retry_delay * attempt)
        logger.error(f"Giving up on {kind} job for {entity_id} after {self.max_attempts} attempts")

    async def drain(self) -> None:
        """Wait until every queued job has been processed."""
        if self._queue is None:
            return
        if self._loop is asyncio.get_running_loop():
            await self._queue.join()

    async def shutdown(self) -> None:
        await self.drain()
        if self._worker is not None and not self._worker.done():
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
        self._worker = None


rating_updates = RatingUpdateQueue()
