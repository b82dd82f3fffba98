from .block_gate import BlockGate
from .conversation import ConversationStatus, ConversationView, SidebarEntry, describe_last_seen
from .directory import Directory
from .engine import ChatSyncEngine, SessionComponents
from .message_sync import MessageSync, ConfirmedEntry, PendingEntry
from .presence_sync import PresenceSync
from .selector import ConversationSelector
from .send_pipeline import SendPipeline
from .session import SessionContext, SessionManager
from .unread_sync import UnreadSync
