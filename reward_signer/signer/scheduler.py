"""
Reward Signer: Scheduler

Fires the retry-wrapped reconciliation immediately, then at a fixed rate until
the stop event is set. Ticks are anchored to the previous scheduled time,
not to when the previous run finished.
"""
import asyncio
from typing import Awaitable, Callable, Optional, Set
from ..core.clock import Clock
from ..core.logger import get_logger

logger = get_logger("SigningScheduler")

DEFAULT_CHECK_INTERVAL_S = 5 * 60.0

class SigningScheduler:
    def __init__(self, job: Callable[[], Awaitable[object]],
                 interval: float = DEFAULT_CHECK_INTERVAL_S,
                 stop_event: Optional[asyncio.Event] = None,
                 allow_overlap: bool = False):
        self.job = job
        self.interval = interval
        self.stop_event = stop_event or asyncio.Event()
        self.allow_overlap = allow_overlap
        self.runs_started = 0
        self.ticks_skipped = 0
        self._running = 0
        self._in_flight: Set[asyncio.Task] = set()

    @property
    def busy(self) -> bool:
        return self._running > 0

    def stop(self):
        self.stop_event.set()

    async def run_forever(self):
        """
        Runs until stop() is called, then waits for in-flight runs.
        """
        logger.info("scheduler_started", interval_s=self.interval, allow_overlap=self.allow_overlap)

        # Immediate run so operators see feedback without waiting an interval
        await self._run_job()

        next_fire = Clock.now_s() + self.interval
        while not self.stop_event.is_set():
            timeout = max(0.0, next_fire - Clock.now_s())
            try:
                await asyncio.wait_for(self.stop_event.wait(), timeout=timeout)
                break
            except asyncio.TimeoutError:
                pass
            next_fire += self.interval
            self._fire()

        if self._in_flight:
            logger.info("scheduler_draining", in_flight=len(self._in_flight))
            await asyncio.gather(*self._in_flight, return_exceptions=True)
        logger.info("scheduler_stopped", runs_started=self.runs_started, ticks_skipped=self.ticks_skipped)

    def _fire(self):
        if self.busy and not self.allow_overlap:
            self.ticks_skipped += 1
            logger.warning("tick_skipped_run_in_progress")
            return
        task = asyncio.create_task(self._run_job())
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _run_job(self):
        self.runs_started += 1
        self._running += 1
        try:
            await self.job()
        except Exception as e:
            logger.error("scheduled_run_failed", error=str(e))
        finally:
            self._running -= 1
