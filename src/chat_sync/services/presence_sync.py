from types import MappingProxyType
from typing import Mapping
import logging

from chat_sync.core.dto import PresenceDTO
from chat_sync.core.exceptions import ChatServiceError
from chat_sync.core.selection import SelectionRef
from .base import SyncLoop
from .session import SessionContext


class PresenceSync(SyncLoop):
    """
    Snapshot of every user's online / last seen status.

    The snapshot is replaced wholesale on each successful poll. A user missing from
    the latest snapshot is unknown (`get` returns None), never reported offline.
    A failed poll keeps the previous snapshot.

    An instance bound to a `SelectionRef` serves the active conversation: it only
    polls while a peer is selected and drops responses issued for an older selection.
    An unbound instance serves the sidebar for the whole session.
    """
    def __init__(
            self,
            name: str,
            session: SessionContext,
            interval: float,
            selection: SelectionRef | None = None,
            logger: logging.Logger | None = None
    ):
        super().__init__(name, interval, logger)
        self._session = session
        self._selection = selection
        self._snapshot: Mapping[int, PresenceDTO] = MappingProxyType({})

    @property
    def snapshot(self) -> Mapping[int, PresenceDTO]:
        return self._snapshot

    def get(self, user_id: int | None) -> PresenceDTO | None:
        if user_id is None:
            return None
        return self._snapshot.get(user_id)

    def reset(self) -> None:
        self._snapshot = MappingProxyType({})
        self._notify()

    async def refresh(self) -> bool:
        selection = self._selection.current if self._selection else None
        if self._closed or (selection is not None and selection.peer is None):
            return False

        try:
            records = await self._session.service.get_presence()
        except ChatServiceError as e:
            self.logger.warning("%s poll failed: %s", self.name, e)
            return False

        if self._closed:
            return False
        if selection is not None and not self._selection.is_current(selection):
            self.logger.debug("Discarding %s poll for stale selection %s", self.name, selection.generation)
            return False

        self._snapshot = MappingProxyType({r.user_id: r for r in records})
        self._notify()
        return True
