from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Callable, Union
import logging
import time
import uuid

from chat_sync.core.dto import MessageDTO
from chat_sync.core.exceptions import ChatServiceError
from chat_sync.core.selection import SelectionRef
from .base import SyncLoop
from .session import SessionContext


@dataclass(frozen=True, slots=True)
class ConfirmedEntry:
    """
    A message with a server id. `local_since` is set while the message is known only
    from a send response and has not been seen in a poll yet.
    """
    message: MessageDTO
    local_since: float | None = None

    @property
    def id(self) -> int:
        return self.message.id


@dataclass(frozen=True, slots=True)
class PendingEntry:
    """
    A message submitted locally and not yet confirmed by the server.
    """
    local_id: str
    sender_id: int
    receiver_id: int
    content: str
    created_at: datetime
    submitted: float
    failed: bool = False


TimelineEntry = Union[ConfirmedEntry, PendingEntry]


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class MessageSync(SyncLoop):
    """
    Keeps the ordered message sequence of the active conversation.

    Each tick fetches the full history and replaces the sequence. Pending entries are
    dropped when a newly observed message from the current user matches their receiver
    and content within the match window, kept after the polled set otherwise, and
    expire after `pending_ttl` seconds. A failed fetch leaves the sequence untouched.

    Attributes:
        pending_ttl: seconds an unmatched pending entry survives
        match_window: max distance between pending submission and server timestamp
    """
    def __init__(
            self,
            session: SessionContext,
            selection: SelectionRef,
            interval: float = 1.0,
            pending_ttl: float = 30.0,
            match_window: float = 120.0,
            logger: logging.Logger | None = None,
            clock: Callable[[], float] = time.monotonic
    ):
        super().__init__("messages", interval, logger)
        self._session = session
        self._selection = selection
        self._clock = clock

        self.pending_ttl = pending_ttl
        self.match_window = match_window

        self._entries: tuple[TimelineEntry, ...] = ()

    @property
    def entries(self) -> tuple[TimelineEntry, ...]:
        return self._entries

    @property
    def messages(self) -> tuple[MessageDTO, ...]:
        return tuple(e.message for e in self._entries if isinstance(e, ConfirmedEntry))

    @property
    def pending(self) -> tuple[PendingEntry, ...]:
        return tuple(e for e in self._entries if isinstance(e, PendingEntry))

    @property
    def last_message_id(self) -> int | None:
        ids = [e.id for e in self._entries if isinstance(e, ConfirmedEntry)]
        return ids[-1] if ids else None

    def reset(self) -> None:
        self._entries = ()
        self._notify()

    async def refresh(self) -> bool:
        selection = self._selection.current
        if self._closed or selection.peer is None:
            return False

        issued = self._clock()
        try:
            messages = await self._session.service.list_messages(selection.peer.id)
        except ChatServiceError as e:
            self.logger.warning("Message poll failed for peer %s: %s", selection.peer_id, e)
            return False

        if self._closed or not self._selection.is_current(selection):
            self.logger.debug("Discarding message poll for stale selection %s", selection.generation)
            return False

        self._entries = self._merge(messages, selection.peer.id, issued)
        self._notify()
        return True

    def _merge(self, messages: list[MessageDTO], peer_id: int, issued: float) -> tuple[TimelineEntry, ...]:
        user_id = self._session.user_id
        polled = {m.id: m for m in messages if m.is_between(user_id, peer_id)}
        known = {e.id for e in self._entries if isinstance(e, ConfirmedEntry)}
        fresh = [m for m in sorted(polled.values(), key=lambda m: m.id) if m.id not in known]

        now = self._clock()
        claimed: set[int] = set()
        confirmed = [ConfirmedEntry(m) for m in polled.values()]
        pending: list[PendingEntry] = []

        for entry in self._entries:
            if isinstance(entry, ConfirmedEntry):
                if entry.local_since is None or entry.id in polled:
                    continue
                # sent after this poll was issued, the next one will include it
                if entry.local_since >= issued:
                    confirmed.append(entry)
                continue

            match = self._match(entry, fresh, claimed)
            if match is not None:
                claimed.add(match.id)
            elif now - entry.submitted <= self.pending_ttl:
                pending.append(entry)
            else:
                self.logger.debug("Pending message %s expired", entry.local_id)

        confirmed.sort(key=lambda e: e.id)
        return (*confirmed, *pending)

    def _match(self, entry: PendingEntry, fresh: list[MessageDTO], claimed: set[int]) -> MessageDTO | None:
        for message in fresh:
            if message.id in claimed:
                continue
            if (message.sender_id, message.receiver_id, message.content) != (
                    entry.sender_id, entry.receiver_id, entry.content):
                continue
            delta = abs((_as_utc(message.timestamp) - entry.created_at).total_seconds())
            if delta <= self.match_window:
                return message
        return None

    def add_pending(self, receiver_id: int, content: str) -> PendingEntry:
        entry = PendingEntry(
            local_id=uuid.uuid4().hex,
            sender_id=self._session.user_id,
            receiver_id=receiver_id,
            content=content,
            created_at=datetime.now(timezone.utc),
            submitted=self._clock()
        )
        self._entries = (*self._entries, entry)
        self._notify()
        return entry

    def confirm(self, pending: PendingEntry, message: MessageDTO) -> bool:
        """
        Replace a pending entry with the message the server returned for it.
        :return: False if the entry is gone (conversation switched or already matched by a poll)
        """
        if not self._holds(pending):
            return False

        rest = [e for e in self._entries if not self._same(e, pending)]
        confirmed = [e for e in rest if isinstance(e, ConfirmedEntry)]
        others = [e for e in rest if isinstance(e, PendingEntry)]
        if all(e.id != message.id for e in confirmed):
            confirmed.append(ConfirmedEntry(message, local_since=self._clock()))
            confirmed.sort(key=lambda e: e.id)

        self._entries = (*confirmed, *others)
        self._notify()
        return True

    def mark_failed(self, pending: PendingEntry) -> None:
        if not self._holds(pending):
            return
        self._entries = tuple(
            replace(e, failed=True) if self._same(e, pending) else e
            for e in self._entries
        )
        self._notify()

    @staticmethod
    def _same(entry: TimelineEntry, pending: PendingEntry) -> bool:
        return isinstance(entry, PendingEntry) and entry.local_id == pending.local_id

    def _holds(self, pending: PendingEntry) -> bool:
        return any(self._same(e, pending) for e in self._entries)
