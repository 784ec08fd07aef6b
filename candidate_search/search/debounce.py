"""Debounce timers for the inputs that feed the search.

Cancel-and-restart discipline: every push restarts the delay and only the
latest pending timer may fire. Intermediate values are never coalesced.
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, Generic, NamedTuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DecisionKind(str, Enum):
    RUN = "run"
    CLEAR = "clear"


class DebounceDecision(NamedTuple):
    kind: DecisionKind
    value: str


def evaluate(value: str, min_length: int) -> DebounceDecision | None:
    """Decide what a settled input value should trigger.

    Empty after trimming → CLEAR. At least ``min_length`` characters after
    trimming → RUN with the untrimmed value. Anything in between → None.
    """
    trimmed = value.strip()
    if not trimmed:
        return DebounceDecision(DecisionKind.CLEAR, "")
    if len(trimmed) >= min_length:
        return DebounceDecision(DecisionKind.RUN, value)
    return None


class DebounceTimer(Generic[T]):
    """Deliver the last pushed value once ``delay_s`` passes without a newer one.

    Must be used from inside a running event loop. ``on_fire`` may be a plain
    callable or a coroutine function.
    """

    def __init__(
        self,
        delay_s: float,
        on_fire: Callable[[T], Awaitable[Any] | None],
        *,
        name: str = "debounce",
    ) -> None:
        self._delay_s = delay_s
        self._on_fire = on_fire
        self._name = name
        self._timer: asyncio.Task[None] | None = None
        # Strong references: the loop only keeps weak ones.
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> bool:
        """True while a timer is armed and has not fired yet."""
        return self._timer is not None and not self._timer.done()

    def push(self, value: T) -> None:
        self.cancel()
        task = asyncio.get_running_loop().create_task(self._run(value))
        self._timer = task
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def cancel(self) -> None:
        """Drop the pending value, if any. An emission already running is kept."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def wait_idle(self) -> None:
        """Wait until no timer is pending and every emission has finished."""
        while self._tasks:
            await asyncio.wait(list(self._tasks))

    async def _run(self, value: T) -> None:
        await asyncio.sleep(self._delay_s)
        # From here on a newer push starts a fresh timer instead of cancelling us.
        self._timer = None
        logger.debug("%s timer fired", self._name)
        result = self._on_fire(value)
        if inspect.isawaitable(result):
            await result

    def _on_task_done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("%s handler failed", self._name, exc_info=exc)


class DebounceGate(DebounceTimer[str]):
    """Debounced text input that emits RUN/CLEAR decisions.

    Usage::

        gate = DebounceGate(0.5, 3, on_decision=handle)
        gate.push("kot")      # restarts the 500 ms timer
        gate.push("kotlin")   # only this value is evaluated
    """

    def __init__(
        self,
        delay_s: float,
        min_length: int,
        on_decision: Callable[[DebounceDecision], Awaitable[Any] | None],
        *,
        name: str = "query",
    ) -> None:
        super().__init__(delay_s, self._decide, name=name)
        self._min_length = min_length
        self._on_decision = on_decision

    def _decide(self, value: str) -> Awaitable[Any] | None:
        decision = evaluate(value, self._min_length)
        if decision is None:
            logger.debug("%s input '%s' below minimum length, no emission", self._name, value)
            return None
        return self._on_decision(decision)
