from dataclasses import dataclass
from typing import Callable
import logging

import httpx

from chat_sync.config import PollingConfig
from chat_sync.core.dto import MessageDTO, UserDTO
from chat_sync.core.exceptions import SessionClosedError
from chat_sync.core.gateways import HttpChatGateway
from chat_sync.core.interfaces import ChatServiceInterface
from chat_sync.core.selection import Selection, SelectionRef
from .base import Listener
from .block_gate import BlockGate
from .conversation import ConversationView, SidebarEntry, build_sidebar, describe_conversation
from .directory import Directory
from .message_sync import MessageSync
from .presence_sync import PresenceSync
from .selector import ConversationSelector
from .send_pipeline import SendPipeline
from .session import SessionContext, SessionManager
from .unread_sync import UnreadSync


@dataclass(frozen=True, slots=True)
class SessionComponents:
    """
    Everything built for one session; discarded as a whole on logout.
    """
    context: SessionContext
    selection: SelectionRef
    directory: Directory
    sidebar_presence: PresenceSync
    unread: UnreadSync
    messages: MessageSync
    presence: PresenceSync
    block_gate: BlockGate
    sender: SendPipeline
    selector: ConversationSelector

    @property
    def loops(self) -> tuple:
        return self.sidebar_presence, self.unread, self.messages, self.presence

    @property
    def observables(self) -> tuple:
        return (self.directory, *self.loops, self.block_gate, self.sender, self.selector)


class ChatSyncEngine:
    """
    Client side synchronization for one-to-one chat over periodic polling.

    Login resolves the credential, loads the user directory and starts the sidebar
    presence and unread loops. Selecting a peer drives the conversation loops through
    the selector. Logout cancels every loop and drops the whole component set, so
    responses still in flight land on objects nothing reads any more.

    Attributes:
        polling: intervals and optimistic entry limits
        logger: Logger instance shared by all components
    """
    def __init__(
            self,
            client: httpx.AsyncClient | None = None,
            polling: PollingConfig | None = None,
            logger: logging.Logger | None = None,
            service_factory: Callable[[str], ChatServiceInterface] | None = None
    ):
        if client is None and service_factory is None:
            raise ValueError("Either an http client or a service factory is required")

        self.polling = polling or PollingConfig()
        self.logger = logger or logging.getLogger(__name__)
        self._service_factory = service_factory or (
            lambda token: HttpChatGateway(client, token, self.logger)
        )

        self.session = SessionManager(self._service_factory, self.logger)
        self._components: SessionComponents | None = None
        self._listeners: list[Listener] = []

    @property
    def components(self) -> SessionComponents:
        if self._components is None:
            raise SessionClosedError("Not logged in")
        return self._components

    @property
    def authenticated(self) -> bool:
        return self._components is not None

    @property
    def current_user(self) -> UserDTO | None:
        return self._components.context.user if self._components else None

    def subscribe(self, listener: Listener) -> None:
        """
        Listen to every component of the current and future sessions.
        """
        self._listeners.append(listener)
        if self._components is not None:
            for observable in self._components.observables:
                observable.subscribe(listener)

    def _build(self, context: SessionContext) -> SessionComponents:
        polling = self.polling
        selection = SelectionRef()

        messages = MessageSync(
            context, selection,
            interval=polling.messages_interval,
            pending_ttl=polling.pending_ttl,
            match_window=polling.pending_match_window,
            logger=self.logger
        )
        presence = PresenceSync(
            "conversation-presence", context, polling.conversation_presence_interval,
            selection=selection, logger=self.logger
        )
        unread = UnreadSync(context, interval=polling.unread_interval, logger=self.logger)
        block_gate = BlockGate(context, selection, logger=self.logger)

        return SessionComponents(
            context=context,
            selection=selection,
            directory=Directory(context, logger=self.logger),
            sidebar_presence=PresenceSync(
                "sidebar-presence", context, polling.sidebar_presence_interval, logger=self.logger
            ),
            unread=unread,
            messages=messages,
            presence=presence,
            block_gate=block_gate,
            sender=SendPipeline(context, selection, block_gate, messages, logger=self.logger),
            selector=ConversationSelector(selection, messages, block_gate, presence, unread, logger=self.logger)
        )

    async def login(self, token: str) -> SessionContext:
        """
        Open a session for `token`.
        :raises AuthenticationError: the credential could not be resolved; the engine
            is left logged out
        """
        await self.logout()
        context = await self.session.open(token)

        components = self._build(context)
        for observable in components.observables:
            for listener in self._listeners:
                observable.subscribe(listener)
        self._components = components

        await components.directory.refresh()
        if self._components is components:
            components.sidebar_presence.start(immediate=True)
            components.unread.start(immediate=True)
        return context

    async def logout(self) -> None:
        components, self._components = self._components, None
        if components is not None:
            components.selector.clear()
            for loop in components.loops:
                loop.shutdown()
        self.session.close()

    async def select(self, peer: UserDTO | int | None) -> Selection:
        components = self.components
        if isinstance(peer, int):
            user = components.directory.get(peer)
            if user is None:
                raise LookupError(f"Unknown user {peer}")
            peer = user
        return await components.selector.select(peer)

    async def send(self, text: str | None = None) -> MessageDTO | None:
        return await self.components.sender.send(text)

    async def toggle_block(self) -> bool:
        return await self.components.block_gate.toggle()

    def conversation(self) -> ConversationView:
        c = self.components
        return describe_conversation(c.selector, c.block_gate, c.presence)

    def sidebar(self, search: str = "") -> list[SidebarEntry]:
        c = self.components
        return build_sidebar(c.directory.search(search), c.sidebar_presence, c.unread, c.selector)
