import logging

from chat_sync.core.dto import MessageDTO
from chat_sync.core.exceptions import ChatServiceError
from chat_sync.core.selection import SelectionRef
from .base import Observable
from .block_gate import BlockGate
from .message_sync import MessageSync
from .session import SessionContext


class SendPipeline(Observable):
    """
    Outbound messages for the active conversation.

    Holds the input buffer (`draft`). A send appends a pending entry right away,
    issues one request, and on success swaps the entry for the server message and
    clears the buffer. On failure the entry is marked failed and the buffer is kept
    so the user can resend; nothing is retried automatically.
    Sending is refused until the block status of the current peer is loaded.
    """
    def __init__(
            self,
            session: SessionContext,
            selection: SelectionRef,
            block_gate: BlockGate,
            messages: MessageSync,
            logger: logging.Logger | None = None
    ):
        super().__init__()
        self._session = session
        self._selection = selection
        self._block_gate = block_gate
        self._messages = messages
        self.logger = logger or logging.getLogger(__name__)

        self._draft = ""

    @property
    def draft(self) -> str:
        return self._draft

    def set_draft(self, text: str) -> None:
        self._draft = text
        self._notify()

    @property
    def can_send(self) -> bool:
        return (
            self._selection.current.peer is not None
            and self._block_gate.loaded
            and self._block_gate.allows_send
        )

    async def send(self, text: str | None = None) -> MessageDTO | None:
        """
        Send `text`, or the current draft when omitted.
        :return: the server message, or None if nothing was sent
        """
        content = self._draft if text is None else text
        if not content.strip() or not self.can_send:
            return None

        peer = self._selection.current.peer
        pending = self._messages.add_pending(peer.id, content)

        try:
            message = await self._session.service.send_message(peer.id, content)
        except ChatServiceError as e:
            self.logger.error("Error sending message to peer %s: %s", peer.id, e)
            self._messages.mark_failed(pending)
            return None

        self._messages.confirm(pending, message)
        if self._draft == content:
            self._draft = ""
            self._notify()
        return message
