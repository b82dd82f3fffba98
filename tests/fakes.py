from dataclasses import dataclass, field
from datetime import datetime, timezone
import asyncio

from chat_sync.core.dto import (
    UserDTO, UserSummaryDTO, MessageDTO, PresenceDTO, BlockStatusDTO, UnreadCountDTO
)
from chat_sync.core.exceptions import ChatServiceError, AuthenticationError
from chat_sync.core.interfaces import ChatServiceInterface
from chat_sync.core.selection import Selection, SelectionRef
from chat_sync.services.session import SessionContext


ME = UserDTO(id=1, username="me")
ALICE = UserDTO(id=2, username="alice")
BOB = UserDTO(id=3, username="bob")


@dataclass
class Hold:
    """
    Parks the next call of one operation until released.
    """
    entered: asyncio.Event = field(default_factory=asyncio.Event)
    released: asyncio.Event = field(default_factory=asyncio.Event)

    def release(self) -> None:
        self.released.set()


class FakeChatService(ChatServiceInterface):
    """
    Scriptable in-memory remote service.

    State is read when the call returns, so a held call sees changes made while it
    was parked. `fail(name, times)` makes the next `times` calls raise.
    """
    def __init__(self, me: UserDTO = ME, peers: tuple[UserDTO, ...] = (ALICE, BOB)):
        self.me = me
        self.peers = list(peers)
        self.conversations: dict[int, list[MessageDTO]] = {p.id: [] for p in peers}
        self.blocks: dict[int, BlockStatusDTO] = {}
        self.presence: list[PresenceDTO] = []
        self.unread: dict[int, int] = {}
        self.persist_sends = True
        self.reject_identity = False

        self.calls: list[tuple] = []
        self._holds: dict[str, list[Hold]] = {}
        self._failures: dict[str, int] = {}
        self._next_id = 100

    def hold(self, name: str) -> Hold:
        hold = Hold()
        self._holds.setdefault(name, []).append(hold)
        return hold

    def fail(self, name: str, times: int = 1) -> None:
        self._failures[name] = self._failures.get(name, 0) + times

    def count(self, name: str) -> int:
        return sum(1 for c in self.calls if c[0] == name)

    def names(self) -> list[str]:
        return [c[0] for c in self.calls]

    async def _enter(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        holds = self._holds.get(name)
        if holds:
            hold = holds.pop(0)
            hold.entered.set()
            await hold.released.wait()
        if self._failures.get(name):
            self._failures[name] -= 1
            raise ChatServiceError(f"{name} failed", status_code=500)

    def message(self, sender: int, receiver: int, content: str, id: int | None = None) -> MessageDTO:
        if id is None:
            self._next_id += 1
            id = self._next_id
        message = MessageDTO(
            id=id,
            sender_id=sender,
            receiver_id=receiver,
            content=content,
            timestamp=datetime.now(timezone.utc)
        )
        peer = receiver if sender == self.me.id else sender
        self.conversations.setdefault(peer, []).append(message)
        return message

    async def get_current_user(self) -> UserDTO:
        await self._enter("get_current_user")
        if self.reject_identity:
            raise AuthenticationError("rejected", status_code=401)
        return self.me

    async def list_users(self) -> list[UserSummaryDTO]:
        await self._enter("list_users")
        return [UserSummaryDTO(id=p.id, username=p.username) for p in self.peers]

    async def list_messages(self, peer_id: int) -> list[MessageDTO]:
        await self._enter("list_messages", peer_id)
        return list(self.conversations.get(peer_id, []))

    async def send_message(self, peer_id: int, content: str) -> MessageDTO:
        await self._enter("send_message", peer_id, content)
        self._next_id += 1
        message = MessageDTO(
            id=self._next_id,
            sender_id=self.me.id,
            receiver_id=peer_id,
            content=content,
            timestamp=datetime.now(timezone.utc)
        )
        if self.persist_sends:
            self.conversations.setdefault(peer_id, []).append(message)
        return message

    async def get_block_status(self, peer_id: int) -> BlockStatusDTO:
        await self._enter("get_block_status", peer_id)
        return self.blocks.get(peer_id, BlockStatusDTO())

    async def set_block(self, peer_id: int) -> None:
        await self._enter("set_block", peer_id)
        current = self.blocks.get(peer_id, BlockStatusDTO())
        self.blocks[peer_id] = current.model_copy(update={"blocked_by_me": True})

    async def clear_block(self, peer_id: int) -> None:
        await self._enter("clear_block", peer_id)
        current = self.blocks.get(peer_id, BlockStatusDTO())
        self.blocks[peer_id] = current.model_copy(update={"blocked_by_me": False})

    async def get_presence(self) -> list[PresenceDTO]:
        await self._enter("get_presence")
        return list(self.presence)

    async def get_unread_counts(self) -> list[UnreadCountDTO]:
        await self._enter("get_unread_counts")
        return [UnreadCountDTO(user_id=k, count=v) for k, v in self.unread.items()]


def make_context(service: FakeChatService) -> SessionContext:
    return SessionContext(user=service.me, token="token", service=service)


def select(ref: SelectionRef, peer: UserDTO | None) -> Selection:
    ref.current = ref.current.next(peer)
    return ref.current


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds
