"""In-process daily trigger for the ingestion run."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Optional, Union

from ingestion.utils.logging import get_logger

DAY = timedelta(days=1)

logger = get_logger(__name__)


@dataclass(frozen=True)
class Idle:
    """No timer armed."""


@dataclass(frozen=True)
class Scheduled:
    next_fire_time: datetime


SchedulerState = Union[Idle, Scheduled]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def next_midnight(now: datetime) -> datetime:
    """First 00:00 UTC strictly after ``now``."""
    current = now.astimezone(timezone.utc) if now.tzinfo else now.replace(tzinfo=timezone.utc)
    midnight = current.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight + DAY


def seconds_until_next_midnight(now: datetime) -> float:
    """Delay until the next 00:00 UTC; exactly at midnight this is a full day."""
    current = now.astimezone(timezone.utc) if now.tzinfo else now.replace(tzinfo=timezone.utc)
    return (next_midnight(current) - current).total_seconds()


class DailyScheduler:
    """Two-state timer: ``Idle`` until started, then ``Scheduled(next_fire_time)``.

    The first run fires at the next UTC midnight, later runs every ``interval``.
    A failing callback is logged; the schedule keeps going. ``start`` must be
    called from a running event loop.
    """

    def __init__(
        self,
        callback: Callable[[], Awaitable[object]],
        *,
        interval: timedelta = DAY,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._callback = callback
        self._interval = interval
        self._clock = clock
        self._state: SchedulerState = Idle()
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def running(self) -> bool:
        return isinstance(self._state, Scheduled)

    def start(self) -> None:
        if self.running:
            return
        loop = asyncio.get_running_loop()
        now = self._clock()
        delay = seconds_until_next_midnight(now)
        self._state = Scheduled(next_fire_time=next_midnight(now))
        self._task = loop.create_task(self._run(delay))
        logger.info(
            "scheduler.started",
            extra={"next_fire_time": self._state.next_fire_time.isoformat(), "delay_seconds": delay},
        )

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
        if self.running:
            logger.info("scheduler.stopped")
        self._state = Idle()

    async def _run(self, delay: float) -> None:
        loop = asyncio.get_running_loop()
        # Fixed rate: each deadline is the previous one plus the interval.
        deadline = loop.time() + delay
        while True:
            await asyncio.sleep(max(0.0, deadline - loop.time()))
            deadline += self._interval.total_seconds()
            if isinstance(self._state, Scheduled):
                self._state = Scheduled(next_fire_time=self._state.next_fire_time + self._interval)
            await self._fire()

    async def _fire(self) -> None:
        logger.info("scheduler.fire")
        try:
            await self._callback()
        except Exception:
            logger.exception("scheduler.callback_failed")
