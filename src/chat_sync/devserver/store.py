from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable
import itertools
import logging

from chat_sync.core.dto import (
    UserDTO, UserSummaryDTO, MessageDTO, PresenceDTO, BlockStatusDTO, UnreadCountDTO
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class StoredMessage:
    id: int
    sender_id: int
    receiver_id: int
    content: str
    timestamp: datetime
    is_read: bool = False

    def to_dto(self) -> MessageDTO:
        return MessageDTO(
            id=self.id,
            sender_id=self.sender_id,
            receiver_id=self.receiver_id,
            content=self.content,
            timestamp=self.timestamp,
            is_read=self.is_read
        )


class BlockedError(Exception):
    pass


class ChatStore:
    """
    In-memory state of the reference chat service.

    Message ids come from one counter, so they grow with send order across all
    conversations. Reading a conversation marks the peer's messages to the reader as
    read. A user is online while their last authenticated call is newer than
    `presence_timeout`.
    """
    def __init__(
            self,
            presence_timeout: float = 30.0,
            logger: logging.Logger | None = None,
            clock: Callable[[], datetime] = _utcnow
    ):
        self.presence_timeout = timedelta(seconds=presence_timeout)
        self._logger = logger or logging.getLogger(__name__)
        self._clock = clock

        self._user_ids = itertools.count(1)
        self._message_ids = itertools.count(1)
        self._users: dict[int, UserDTO] = {}
        self._messages: list[StoredMessage] = []
        self._blocks: set[tuple[int, int]] = set()
        self._last_seen: dict[int, datetime] = {}

    def create_user(self, username: str) -> UserDTO:
        if self.get_user_by_name(username) is not None:
            raise ValueError(f"User {username} already exists")
        user = UserDTO(id=next(self._user_ids), username=username)
        self._users[user.id] = user
        self._logger.info("Created user %s (id=%s)", user.username, user.id)
        return user

    def get_user(self, user_id: int) -> UserDTO | None:
        return self._users.get(user_id)

    def get_user_by_name(self, username: str) -> UserDTO | None:
        return next((u for u in self._users.values() if u.username == username), None)

    def touch(self, user_id: int) -> None:
        self._last_seen[user_id] = self._clock()

    def list_users(self, user_id: int) -> list[UserSummaryDTO]:
        result = []
        for user in self._users.values():
            if user.id == user_id:
                continue
            conversation = self._conversation(user_id, user.id)
            last = conversation[-1] if conversation else None
            result.append(UserSummaryDTO(
                id=user.id,
                username=user.username,
                last_message=last.content if last else None,
                last_message_time=last.timestamp if last else None
            ))
        return result

    def _conversation(self, user_id: int, peer_id: int) -> list[StoredMessage]:
        pair = {user_id, peer_id}
        return [m for m in self._messages if {m.sender_id, m.receiver_id} == pair]

    def list_messages(self, user_id: int, peer_id: int) -> list[MessageDTO]:
        conversation = self._conversation(user_id, peer_id)
        for message in conversation:
            if message.receiver_id == user_id and not message.is_read:
                message.is_read = True
        return [m.to_dto() for m in conversation]

    def send_message(self, sender_id: int, receiver_id: int, content: str) -> MessageDTO:
        if receiver_id not in self._users:
            raise LookupError(f"Unknown user {receiver_id}")
        status = self.block_status(sender_id, receiver_id)
        if not status.allows_send:
            raise BlockedError(f"Messages between {sender_id} and {receiver_id} are blocked")

        message = StoredMessage(
            id=next(self._message_ids),
            sender_id=sender_id,
            receiver_id=receiver_id,
            content=content,
            timestamp=self._clock()
        )
        self._messages.append(message)
        return message.to_dto()

    def block_status(self, user_id: int, peer_id: int) -> BlockStatusDTO:
        return BlockStatusDTO(
            blocked_by_me=(user_id, peer_id) in self._blocks,
            blocked_me=(peer_id, user_id) in self._blocks
        )

    def set_block(self, user_id: int, peer_id: int) -> None:
        if peer_id not in self._users:
            raise LookupError(f"Unknown user {peer_id}")
        self._blocks.add((user_id, peer_id))

    def clear_block(self, user_id: int, peer_id: int) -> None:
        self._blocks.discard((user_id, peer_id))

    def presence(self) -> list[PresenceDTO]:
        now = self._clock()
        result = []
        for user in self._users.values():
            last_seen = self._last_seen.get(user.id)
            result.append(PresenceDTO(
                user_id=user.id,
                username=user.username,
                online=last_seen is not None and now - last_seen <= self.presence_timeout,
                last_seen_at=last_seen
            ))
        return result

    def unread_counts(self, user_id: int) -> list[UnreadCountDTO]:
        counts: dict[int, int] = {}
        for message in self._messages:
            if message.receiver_id == user_id and not message.is_read:
                counts[message.sender_id] = counts.get(message.sender_id, 0) + 1
        return [UnreadCountDTO(user_id=sender, count=n) for sender, n in counts.items()]
