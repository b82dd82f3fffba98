from typing import Awaitable, Callable
import asyncio
import logging


class IntervalLoop:
    """
    Runs an async tick on a fixed interval as one asyncio task.

    Ticks never overlap: the interval sleep starts after the previous tick returns,
    so a slow response delays the next tick instead of stacking requests.
    A tick that raises is logged and the loop keeps its schedule; there is no retry.
    """
    def __init__(
            self,
            name: str,
            interval: float,
            tick: Callable[[], Awaitable[object]],
            logger: logging.Logger | None = None
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")

        self.name = name
        self.interval = interval
        self._tick = tick
        self._task: asyncio.Task | None = None
        self._logger = logger or logging.getLogger(__name__)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, immediate: bool = False) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(immediate), name=self.name)

    def cancel(self) -> None:
        """
        Cancel synchronously; the pending tick never resumes past its current await.
        """
        task, self._task = self._task, None
        if task is not None:
            task.cancel()

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)

    async def _run(self, immediate: bool) -> None:
        if not immediate:
            await asyncio.sleep(self.interval)
        while True:
            try:
                await self._tick()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self._logger.error("Unexpected error in %s tick: %s", self.name, e, exc_info=True)
            await asyncio.sleep(self.interval)
