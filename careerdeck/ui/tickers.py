from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Callable

logger = logging.getLogger(__name__)


def ease_out_cubic(progress: float) -> float:
    progress = max(0.0, min(1.0, progress))
    return 1 - (1 - progress) ** 3


def score_reveal_frames(target: int, steps: int = 60) -> list[int]:
    """Values shown while the ATS score counts up; the last frame is the target."""
    if steps <= 0:
        return [target]
    frames = [round(target * ease_out_cubic(step / steps)) for step in range(1, steps + 1)]
    frames[-1] = target
    return frames


class PeriodicTicker:
    """Calls ``on_tick(n)`` every ``interval_s`` until stopped or ``max_ticks`` reached."""

    def __init__(self, name: str, interval_s: float, on_tick: Callable[[int], None], max_ticks: int | None = None):
        self.name = name
        self._interval_s = interval_s
        self._on_tick = on_tick
        self._max_ticks = max_ticks
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        self.stop()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("ticker_skipped name=%s reason=no_running_loop", self.name)
            return
        self._task = loop.create_task(self._run())

    def stop(self) -> None:
        if self._task is not None and not self._task.done() and not self._task.get_loop().is_closed():
            self._task.cancel()
        self._task = None

    async def wait(self) -> None:
        if self._task is None:
            return
        with contextlib.suppress(asyncio.CancelledError):
            await self._task

    async def _run(self) -> None:
        tick = 0
        while self._max_ticks is None or tick < self._max_ticks:
            await asyncio.sleep(self._interval_s)
            tick += 1
            self._on_tick(tick)


class LoadingMessageRotator:
    def __init__(self, messages: tuple[str, ...], interval_s: float):
        self._messages = messages
        self.index = 0
        self._ticker = PeriodicTicker("loading_messages", interval_s, self._advance)

    @property
    def message(self) -> str:
        return self._messages[self.index]

    @property
    def running(self) -> bool:
        return self._ticker.running

    def _advance(self, _tick: int) -> None:
        self.index = (self.index + 1) % len(self._messages)

    def start(self) -> None:
        self.index = 0
        self._ticker.start()

    def stop(self) -> None:
        self._ticker.stop()


class ScoreReveal:
    def __init__(self, duration_s: float = 1.5, steps: int = 60):
        self._duration_s = duration_s
        self._steps = max(1, steps)
        self.value = 0
        self.target = 0
        self._frames: list[int] = []
        self._ticker: PeriodicTicker | None = None

    @property
    def running(self) -> bool:
        return self._ticker is not None and self._ticker.running

    def _apply_frame(self, tick: int) -> None:
        self.value = self._frames[min(tick, len(self._frames)) - 1]

    def start(self, target: int) -> None:
        self.stop()
        self.target = target
        self.value = 0
        self._frames = score_reveal_frames(target, self._steps)
        self._ticker = PeriodicTicker(
            "score_reveal",
            self._duration_s / self._steps,
            self._apply_frame,
            max_ticks=self._steps,
        )
        self._ticker.start()
        if not self._ticker.running:
            self.value = target

    def stop(self) -> None:
        if self._ticker is not None:
            self._ticker.stop()
            self._ticker = None

    async def wait(self) -> None:
        if self._ticker is not None:
            await self._ticker.wait()
