from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt
from datetime import datetime


class WireModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

class UserDTO(WireModel):
    id: int
    username: str

class UserSummaryDTO(UserDTO):
    last_message: str | None = None
    last_message_time: datetime | None = None

class MessageDTO(WireModel):
    id: int
    sender_id: int = Field(alias="sender")
    receiver_id: int = Field(alias="receiver")
    content: str
    timestamp: datetime
    is_read: bool = False

    def is_between(self, user_id: int, peer_id: int) -> bool:
        return {self.sender_id, self.receiver_id} == {user_id, peer_id}

class PresenceDTO(WireModel):
    user_id: int = Field(alias="id")
    username: str | None = None
    online: bool = False
    last_seen_at: datetime | None = Field(default=None, alias="last_seen")

class BlockStatusDTO(WireModel):
    blocked_by_me: bool = False
    blocked_me: bool = False

    @property
    def allows_send(self) -> bool:
        return not (self.blocked_by_me or self.blocked_me)

class UnreadCountDTO(WireModel):
    user_id: int
    count: NonNegativeInt
