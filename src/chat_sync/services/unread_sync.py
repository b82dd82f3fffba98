from types import MappingProxyType
from typing import Mapping
import logging

from chat_sync.core.exceptions import ChatServiceError
from .base import SyncLoop
from .session import SessionContext


class UnreadSync(SyncLoop):
    """
    Unread message counts per peer, as shown in the sidebar.

    Polled counts replace the previous ones wholesale; a peer missing from the
    response has zero unread. Selecting a peer zeroes its count locally and that
    zero overrides polled values until either

    * a poll issued after the override reports zero for the peer, which confirms it
      and hands the peer back to polled values, or
    * the peer is released (deselected), after which the last polled value shows
      immediately.

    Polls are numbered so a response issued before the override was set can never
    confirm it.
    """
    def __init__(
            self,
            session: SessionContext,
            interval: float = 2.0,
            logger: logging.Logger | None = None
    ):
        super().__init__("unread", interval, logger)
        self._session = session

        self._sequence = 0
        self._polled: dict[int, int] = {}
        self._overrides: dict[int, int] = {}
        self._counts: Mapping[int, int] = MappingProxyType({})

    @property
    def counts(self) -> Mapping[int, int]:
        return self._counts

    @property
    def overrides(self) -> frozenset[int]:
        return frozenset(self._overrides)

    def count(self, peer_id: int) -> int:
        return self._counts.get(peer_id, 0)

    def mark_viewing(self, peer_id: int) -> None:
        self._overrides[peer_id] = self._sequence
        self._publish()

    def release(self, peer_id: int) -> None:
        if self._overrides.pop(peer_id, None) is not None:
            self._publish()

    async def refresh(self) -> bool:
        if self._closed:
            return False

        self._sequence += 1
        issued = self._sequence
        try:
            counts = await self._session.service.get_unread_counts()
        except ChatServiceError as e:
            self.logger.warning("Unread poll failed: %s", e)
            return False

        if self._closed:
            return False

        polled = {c.user_id: c.count for c in counts}
        for peer_id, set_at in list(self._overrides.items()):
            if issued > set_at and polled.get(peer_id, 0) == 0:
                self.logger.debug("Unread zero for peer %s confirmed by server", peer_id)
                del self._overrides[peer_id]

        self._polled = polled
        self._publish()
        return True

    def _publish(self) -> None:
        counts = {peer_id: n for peer_id, n in self._polled.items() if n > 0}
        for peer_id in self._overrides:
            counts.pop(peer_id, None)
        self._counts = MappingProxyType(counts)
        self._notify()
