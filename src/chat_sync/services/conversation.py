from dataclasses import dataclass
from datetime import datetime, timezone
import enum

from chat_sync.core.dto import PresenceDTO, UserDTO, UserSummaryDTO
from .block_gate import BlockGate
from .presence_sync import PresenceSync
from .selector import ConversationSelector
from .unread_sync import UnreadSync


class ConversationStatus(str, enum.Enum):
    EMPTY = "empty"
    LOADING = "loading"
    BLOCKED_BY_ME = "blocked_by_me"
    BLOCKED_ME = "blocked_me"
    ONLINE = "online"
    LAST_SEEN = "last_seen"
    OFFLINE = "offline"


@dataclass(frozen=True, slots=True)
class ConversationView:
    peer: UserDTO | None
    status: ConversationStatus
    last_seen_at: datetime | None = None
    input_disabled: bool = True
    can_toggle_block: bool = False


@dataclass(frozen=True, slots=True)
class SidebarEntry:
    user: UserSummaryDTO
    presence: PresenceDTO | None
    unread: int
    active: bool

    @property
    def online(self) -> bool:
        return bool(self.presence and self.presence.online)


def describe_conversation(
        selector: ConversationSelector,
        block_gate: BlockGate,
        presence: PresenceSync
) -> ConversationView:
    """
    Header state of the active conversation. Block state wins over presence, and
    nothing but LOADING is reported before the initial load finished, so the input
    is never enabled ahead of the block status.
    """
    peer = selector.peer
    if peer is None:
        return ConversationView(peer=None, status=ConversationStatus.EMPTY)
    if not selector.loaded:
        return ConversationView(peer=peer, status=ConversationStatus.LOADING)

    status = block_gate.status
    record = presence.get(peer.id)

    if status.blocked_by_me:
        kind = ConversationStatus.BLOCKED_BY_ME
    elif status.blocked_me:
        kind = ConversationStatus.BLOCKED_ME
    elif record is not None and record.online:
        kind = ConversationStatus.ONLINE
    elif record is not None and record.last_seen_at is not None:
        kind = ConversationStatus.LAST_SEEN
    else:
        kind = ConversationStatus.OFFLINE

    return ConversationView(
        peer=peer,
        status=kind,
        last_seen_at=record.last_seen_at if record else None,
        input_disabled=not (block_gate.loaded and status.allows_send),
        can_toggle_block=block_gate.loaded and not status.blocked_me
    )


def build_sidebar(
        users: list[UserSummaryDTO] | tuple[UserSummaryDTO, ...],
        presence: PresenceSync,
        unread: UnreadSync,
        selector: ConversationSelector
) -> list[SidebarEntry]:
    active_id = selector.selection.peer_id
    return [
        SidebarEntry(
            user=user,
            presence=presence.get(user.id),
            unread=unread.count(user.id),
            active=user.id == active_id
        ) for user in users
    ]


def describe_last_seen(last_seen: datetime | None, now: datetime | None = None) -> str:
    if last_seen is None:
        return ""
    if last_seen.tzinfo is None:
        last_seen = last_seen.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)

    seconds = int((now - last_seen).total_seconds())
    if seconds < 60:
        return "a few seconds ago"

    minutes = seconds // 60
    if minutes < 60:
        return f"{minutes} min ago"

    hours = minutes // 60
    if hours < 24:
        return f"{hours} hr{'s' if hours > 1 else ''} ago"

    days = hours // 24
    return f"{days} day{'s' if days > 1 else ''} ago"
