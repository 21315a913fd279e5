from __future__ import annotations

import asyncio
import contextlib
import logging
from collections import OrderedDict
from typing import Callable

from resume_scoring.schemas.analysis import AnalysisResult, AnalysisState
from resume_scoring.scoring.heuristics import analyze

logger = logging.getLogger(__name__)

Analyzer = Callable[[str], AnalysisResult]


class AnalysisScheduler:
    """Runs the scorer after a cosmetic delay, keeping only the latest input.

    Every submission bumps a generation counter and cancels the pending task.
    A task publishes its result only while its generation is still current, so
    a superseded computation can never overwrite the state of newer input.
    """

    def __init__(self, delay_seconds: float = 1.5, analyzer: Analyzer = analyze) -> None:
        self._delay_seconds = max(0.0, float(delay_seconds))
        self._analyzer = analyzer
        self._generation = 0
        self._task: asyncio.Task[None] | None = None
        self._state = AnalysisState()

    @property
    def generation(self) -> int:
        return self._generation

    def snapshot(self) -> AnalysisState:
        return self._state

    def submit(self, text: str, filename: str | None = None) -> AnalysisState:
        self._generation += 1
        generation = self._generation
        self._cancel_pending()

        if not text.strip():
            self._state = AnalysisState(status="empty", generation=generation)
            return self._state

        self._state = AnalysisState(status="analyzing", filename=filename, generation=generation)
        self._task = asyncio.get_running_loop().create_task(self._run(generation, text, filename))
        return self._state

    def clear(self) -> AnalysisState:
        return self.submit("")

    async def wait(self) -> AnalysisState:
        while True:
            task = self._task
            if task is None or task.done():
                return self._state
            await asyncio.wait({task})

    async def aclose(self) -> None:
        task = self._task
        self._cancel_pending()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _run(self, generation: int, text: str, filename: str | None) -> None:
        if self._delay_seconds:
            await asyncio.sleep(self._delay_seconds)
        if generation != self._generation:
            return
        try:
            result = self._analyzer(text)
        except Exception:
            logger.exception("analysis_failed generation=%s", generation)
            if generation == self._generation:
                self._state = AnalysisState(status="failed", filename=filename, generation=generation)
            return
        if generation != self._generation:
            logger.debug("analysis_superseded generation=%s", generation)
            return
        self._state = AnalysisState(
            status="ready",
            filename=filename,
            result=result,
            generation=generation,
        )
        logger.info("analysis_ready generation=%s overall=%s", generation, result.overall)

    def _cancel_pending(self) -> None:
        task = self._task
        self._task = None
        if task is not None and not task.done():
            task.cancel()


class SessionRegistry:
    """Keeps one scheduler per client session, evicting the least recently used."""

    def __init__(self, *, delay_seconds: float, max_sessions: int, analyzer: Analyzer = analyze) -> None:
        self._delay_seconds = delay_seconds
        self._max_sessions = max(1, max_sessions)
        self._analyzer = analyzer
        self._sessions: OrderedDict[str, AnalysisScheduler] = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def get(self, session_id: str) -> AnalysisScheduler | None:
        scheduler = self._sessions.get(session_id)
        if scheduler is not None:
            self._sessions.move_to_end(session_id)
        return scheduler

    def get_or_create(self, session_id: str) -> AnalysisScheduler:
        scheduler = self.get(session_id)
        if scheduler is not None:
            return scheduler

        scheduler = AnalysisScheduler(delay_seconds=self._delay_seconds, analyzer=self._analyzer)
        self._sessions[session_id] = scheduler
        while len(self._sessions) > self._max_sessions:
            evicted_id, evicted = self._sessions.popitem(last=False)
            evicted.clear()
            logger.info("analysis_session_evicted session_id=%s", evicted_id)
        return scheduler

    async def drop(self, session_id: str) -> bool:
        scheduler = self._sessions.pop(session_id, None)
        if scheduler is None:
            return False
        await scheduler.aclose()
        return True

    async def aclose(self) -> None:
        sessions = list(self._sessions.values())
        self._sessions.clear()
        for scheduler in sessions:
            await scheduler.aclose()
