from abc import ABC, abstractmethod
from typing import Callable
import logging

from chat_sync.core.scheduling import IntervalLoop


Listener = Callable[[], None]


class Observable:
    """
    Minimal change notification for view code: listeners are called with no
    arguments after a component swapped its state.
    """
    def __init__(self):
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()


class SyncLoop(Observable, ABC):
    """
    Base for a component that owns one slice of local state and refreshes it from a
    full-state poll on its own interval.

    Subclasses implement `refresh()`: issue one request, drop the response if the
    scope it was issued for is gone, otherwise swap the state and notify.
    """
    def __init__(self, name: str, interval: float, logger: logging.Logger | None = None):
        super().__init__()
        self.name = name
        self.logger = logger or logging.getLogger(__name__)
        self._closed = False
        self._loop = IntervalLoop(name, interval, self.refresh, self.logger)

    @property
    def interval(self) -> float:
        return self._loop.interval

    @property
    def running(self) -> bool:
        return self._loop.running

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self, immediate: bool = False) -> None:
        if not self._closed:
            self._loop.start(immediate=immediate)

    def cancel(self) -> None:
        self._loop.cancel()

    async def stop(self) -> None:
        await self._loop.stop()

    def shutdown(self) -> None:
        """
        Stop for good: responses still in flight are ignored on arrival.
        """
        self._closed = True
        self._loop.cancel()

    @abstractmethod
    async def refresh(self) -> bool:
        """
        Run one tick.
        :return: True if a fresh result was applied
        """
        raise NotImplementedError()
