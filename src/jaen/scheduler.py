from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable
from functools import partial
from typing import Any

from .errors import TranslationError
from .models import Direction, Lang

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_S = 0.6

# Hiragana, katakana and CJK ideographs.
_JA_CHARS_RE = re.compile(r"[\u3040-\u30ff\u3400-\u9fff]")


def detect_lang(text: str) -> Lang:
    return Lang.JA if _JA_CHARS_RE.search(text or "") else Lang.EN


class DebounceTimer:
    """Trailing-edge timer: `reset()` restarts the countdown, only the last one fires."""

    def __init__(self, delay_s: float, callback: Callable[[], Any]) -> None:
        self.delay_s = delay_s
        self._callback = callback
        self._task: asyncio.Task[None] | None = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def task(self) -> asyncio.Task[None] | None:
        return self._task if self.pending else None

    def reset(self) -> None:
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._wait())

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _wait(self) -> None:
        await asyncio.sleep(self.delay_s)
        self._task = None
        self._callback()


class AutoTranslateScheduler:
    """Debounced live translation, one timer per direction.

    A JA pane edit schedules JA>EN only while the pane looks Japanese, an EN pane
    edit schedules EN>JA only while it does not. This keeps a pane that was just
    overwritten with a translation from bouncing straight back.

    Fired translations run as their own tasks and are never cancelled by later
    edits, so two of them can be in flight at once; whichever finishes last wins
    its pane write.
    """

    def __init__(
        self,
        translate: Callable[[Direction], Awaitable[Any]],
        *,
        delay_s: float = DEFAULT_DEBOUNCE_S,
        live: bool = False,
    ) -> None:
        self._translate = translate
        self.delay_s = delay_s
        self._live = live
        self._timers = {direction: DebounceTimer(delay_s, partial(self._fire, direction)) for direction in Direction}
        self._inflight: set[asyncio.Task[None]] = set()

    @property
    def live(self) -> bool:
        return self._live

    @live.setter
    def live(self, value: bool) -> None:
        self._live = bool(value)
        if not self._live:
            self.close()

    def pending(self, direction: Direction) -> bool:
        return self._timers[direction].pending

    def on_change(self, pane: Lang, text: str) -> bool:
        """Register an edit of `pane`. Returns True when a translation was (re)scheduled."""
        if not self._live:
            return False
        if detect_lang(text) is not pane:
            return False
        direction = Direction.from_source(pane)
        self._timers[direction].reset()
        logger.debug(f"Auto-translate {direction.value} scheduled in {self.delay_s:.3f}s")
        return True

    def _fire(self, direction: Direction) -> None:
        task = asyncio.get_running_loop().create_task(self._run(direction))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _run(self, direction: Direction) -> None:
        try:
            await self._translate(direction)
        except TranslationError as e:
            # The orchestrator already recorded the message for display.
            logger.warning(f"Auto-translate {direction.value} failed: {e}")

    async def drain(self) -> None:
        """Wait for pending timers and the translations they start."""
        while True:
            waiting = [t.task for t in self._timers.values() if t.task is not None]
            waiting.extend(self._inflight)
            if not waiting:
                return
            await asyncio.gather(*waiting, return_exceptions=True)

    def close(self) -> None:
        for timer in self._timers.values():
            timer.cancel()
