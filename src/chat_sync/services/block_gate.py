import logging

from chat_sync.core.dto import BlockStatusDTO
from chat_sync.core.exceptions import ChatServiceError
from chat_sync.core.selection import SelectionRef
from .base import Observable
from .session import SessionContext


class BlockGate(Observable):
    """
    Block relation with the active peer. Loaded once per selection, not polled.

    `toggle` flips `blocked_by_me` before the command is sent and keeps the new value
    if the command fails. It is refused until the status of the current selection is
    loaded, and while the peer blocks us. A status load issued before a toggle never
    overwrites the toggled value.

    `blocked_me` reflects the other side and is only ever set from a server response.
    """
    def __init__(
            self,
            session: SessionContext,
            selection: SelectionRef,
            logger: logging.Logger | None = None
    ):
        super().__init__()
        self._session = session
        self._selection = selection
        self.logger = logger or logging.getLogger(__name__)

        self._status = BlockStatusDTO()
        self._loaded_for: int | None = None
        self._revision = 0

    @property
    def status(self) -> BlockStatusDTO:
        return self._status

    @property
    def blocked_by_me(self) -> bool:
        return self._status.blocked_by_me

    @property
    def blocked_me(self) -> bool:
        return self._status.blocked_me

    @property
    def allows_send(self) -> bool:
        return self._status.allows_send

    @property
    def loaded(self) -> bool:
        return self._loaded_for == self._selection.current.generation

    def reset(self) -> None:
        self._status = BlockStatusDTO()
        self._loaded_for = None
        self._notify()

    async def refresh(self) -> bool:
        selection = self._selection.current
        if selection.peer is None:
            return False
        revision = self._revision

        try:
            status = await self._session.service.get_block_status(selection.peer.id)
        except ChatServiceError as e:
            self.logger.warning("Block status load failed for peer %s: %s", selection.peer_id, e)
            return False

        if not self._selection.is_current(selection):
            self.logger.debug("Discarding block status for stale selection %s", selection.generation)
            return False
        if self._revision != revision:
            self.logger.debug("Discarding block status issued before a toggle")
            return False

        self._status = status
        self._loaded_for = selection.generation
        self._notify()
        return True

    async def toggle(self) -> bool:
        """
        Block the peer if not blocked by me, unblock otherwise.
        :return: True if the command was accepted by the server
        """
        peer = self._selection.current.peer
        if peer is None or not self.loaded or self._status.blocked_me:
            return False

        unblock = self._status.blocked_by_me
        self._status = self._status.model_copy(update={"blocked_by_me": not unblock})
        self._revision += 1
        self._notify()

        try:
            if unblock:
                await self._session.service.clear_block(peer.id)
            else:
                await self._session.service.set_block(peer.id)
        except ChatServiceError as e:
            self.logger.error("Error %s peer %s: %s", "unblocking" if unblock else "blocking", peer.id, e)
            return False

        return True
