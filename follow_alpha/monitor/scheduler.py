"""Adaptive polling scheduler.

One asyncio task sweeps every tracked account in order, then waits
``current_interval`` before the next sweep. The interval shrinks when follows
are pouring in and grows when nothing happens. A second task sweeps expired
entries out of the profile cache.

States: IDLE -> RUNNING (start) -> STOPPING (stop) -> IDLE.
"""

from __future__ import annotations

import asyncio
import logging

from follow_alpha.errors import LoginError
from follow_alpha.monitor.pipeline import AlphaPipeline
from follow_alpha.monitor.reconcile import check_and_mark_tweeted
from follow_alpha.monitor.state import MonitorContext, SchedulerState

logger = logging.getLogger(__name__)

SHRINK_FACTOR = 0.8
GROW_FACTOR = 1.2


def adjust_interval(
    current: float,
    new_follow_count: int,
    min_interval: float,
    max_interval: float,
    shrink_threshold: int = 5,
) -> float:
    """Next polling interval after a sweep that found ``new_follow_count`` follows."""
    if new_follow_count > shrink_threshold:
        return max(min_interval, current * SHRINK_FACTOR)
    if new_follow_count == 0:
        return min(max_interval, current * GROW_FACTOR)
    return current


class AdaptiveScheduler:
    def __init__(self, ctx: MonitorContext) -> None:
        self.ctx = ctx
        self.pipeline = AlphaPipeline(ctx)
        self._task: asyncio.Task | None = None
        self._sweep_task: asyncio.Task | None = None
        self._start_lock = asyncio.Lock()

    @property
    def state(self) -> SchedulerState:
        return self.ctx.state.state

    @property
    def current_interval(self) -> float:
        return self.ctx.state.current_interval

    def should_stop(self) -> bool:
        return self.ctx.state.should_stop()

    async def start(self) -> None:
        """Log in and begin cycling. A second call while running is a no-op.

        Concurrent callers are serialized, so only one of them logs in and
        spawns the loop. Raises LoginError without leaving IDLE if the
        platform login fails.
        """
        async with self._start_lock:
            if self.state is not SchedulerState.IDLE:
                logger.debug("Scheduler already %s, ignoring start()", self.state.value)
                return

            await self.ctx.client.login()

            self.ctx.state.stop_event.clear()
            self.ctx.state.state = SchedulerState.RUNNING
            logger.info(
                "Starting follow monitoring for %d accounts (interval=%.0fs)",
                len(self.ctx.state.accounts), self.current_interval,
            )
            self._task = asyncio.create_task(self._run(), name="follow-monitor")
            self._sweep_task = asyncio.create_task(
                self._sweep_loop(), name="profile-cache-sweep"
            )

    def request_stop(self) -> None:
        """Raise the stop flag without waiting. Safe to call from a signal handler."""
        self.ctx.state.stop_event.set()

    async def stop(self) -> None:
        """Signal the loop and wait for the current account to finish.

        Also reaps the tasks of a loop that already ended on its own, e.g.
        after ``request_stop()`` or a lost login.
        """
        if self.state is SchedulerState.RUNNING:
            logger.info("Stopping follow monitoring...")
            self.ctx.state.state = SchedulerState.STOPPING
        elif self._task is None:
            return
        self.request_stop()
        await self._drain()
        self._task = self._sweep_task = None
        self.ctx.cache.sweep()
        logger.info("Follow monitoring stopped")

    async def wait(self) -> None:
        """Block until the monitor loop ends. Re-raises a fatal loop error."""
        if self._task is not None:
            await self._task

    async def _drain(self) -> None:
        for task in (self._task, self._sweep_task):
            if task is None:
                continue
            try:
                await task
            except LoginError:
                # Already logged by _run; stop() itself should not raise
                pass

    async def _sleep(self, seconds: float) -> bool:
        """Wait ``seconds`` or until stopped. Returns True if stop was requested."""
        try:
            await asyncio.wait_for(self.ctx.state.stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True

    async def run_cycle(self) -> int:
        """One sweep over every tracked account. Returns the number of new follows."""
        new_follow_count = 0
        for account in self.ctx.state.accounts:
            if self.should_stop():
                break
            try:
                new_follows = await self.ctx.tracker.check_for_new_following(account)
            except LoginError:
                raise
            except Exception:
                logger.exception("Unexpected error checking %s", account)
                continue

            new_follow_count += len(new_follows)
            # Edges are already persisted, so finish the account even if stopping
            for follow in new_follows:
                try:
                    await self.pipeline.evaluate(follow)
                except LoginError:
                    raise
                except Exception:
                    logger.exception("Error evaluating @%s", follow.username)
        return new_follow_count

    def _adjust(self, new_follow_count: int) -> None:
        st = self.ctx.state
        previous = st.current_interval
        st.current_interval = adjust_interval(
            previous, new_follow_count, st.min_interval, st.max_interval,
            self.ctx.shrink_threshold,
        )
        if st.current_interval != previous:
            logger.info(
                "Polling interval %.0fs -> %.0fs (%d new follows)",
                previous, st.current_interval, new_follow_count,
            )

    async def _run(self) -> None:
        try:
            while not self.should_stop():
                new_follow_count = await self.run_cycle()
                if self.should_stop():
                    break

                self._adjust(new_follow_count)

                if self.ctx.post_account:
                    await check_and_mark_tweeted(
                        self.ctx.client, self.ctx.gateway,
                        self.ctx.post_account, self.ctx.post_check_count,
                    )

                logger.info("Next scan in %.0fs...", self.current_interval)
                if await self._sleep(self.current_interval):
                    break
        except LoginError as exc:
            logger.error("Login lost, halting monitor: %s", exc)
            self.ctx.state.stop_event.set()
            raise
        finally:
            self.ctx.state.state = SchedulerState.IDLE

    async def _sweep_loop(self) -> None:
        while not await self._sleep(self.ctx.cache_sweep_interval):
            self.ctx.cache.sweep()
