import logging

from chat_sync.core.dto import UserDTO
from chat_sync.core.selection import Selection, SelectionRef
from .base import Observable
from .block_gate import BlockGate
from .message_sync import MessageSync
from .presence_sync import PresenceSync
from .unread_sync import UnreadSync


class ConversationSelector(Observable):
    """
    Owns the active peer and the lifecycle of everything scoped to it.

    `select` retargets synchronously (new selection, loops cancelled, unread override
    moved, conversation state reset) before the first await, then runs the initial
    load in order: messages, block status, presence. The message and presence loops
    start only after that load finishes and only if no newer selection happened
    meanwhile.
    """
    def __init__(
            self,
            selection: SelectionRef,
            messages: MessageSync,
            block_gate: BlockGate,
            presence: PresenceSync,
            unread: UnreadSync,
            logger: logging.Logger | None = None
    ):
        super().__init__()
        self._selection = selection
        self._messages = messages
        self._block_gate = block_gate
        self._presence = presence
        self._unread = unread
        self.logger = logger or logging.getLogger(__name__)

        self._loaded_generation: int | None = None

    @property
    def selection(self) -> Selection:
        return self._selection.current

    @property
    def peer(self) -> UserDTO | None:
        return self._selection.current.peer

    @property
    def loaded(self) -> bool:
        """
        True once the initial load of the current selection has completed.
        """
        return self._loaded_generation == self._selection.current.generation

    def _retarget(self, peer: UserDTO | None) -> Selection:
        previous = self._selection.current
        selection = previous.next(peer)
        self._selection.current = selection

        self._messages.cancel()
        self._presence.cancel()

        if previous.peer is not None:
            self._unread.release(previous.peer.id)
        if peer is not None:
            self._unread.mark_viewing(peer.id)

        self._messages.reset()
        self._block_gate.reset()
        self._presence.reset()
        self._notify()
        return selection

    async def select(self, peer: UserDTO | None) -> Selection:
        selection = self._retarget(peer)
        if peer is None:
            self.logger.debug("Selection cleared")
            return selection

        self.logger.debug("Loading conversation with %s (generation %s)", peer.username, selection.generation)

        for step in (self._messages.refresh, self._block_gate.refresh, self._presence.refresh):
            await step()
            if not self._selection.is_current(selection):
                self.logger.debug("Selection %s superseded during initial load", selection.generation)
                return selection

        self._messages.start()
        self._presence.start()
        self._loaded_generation = selection.generation
        self._notify()
        return selection

    def clear(self) -> Selection:
        """
        Synchronous deselect used on logout.
        """
        return self._retarget(None)
