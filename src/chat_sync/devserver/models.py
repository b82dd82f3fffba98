from pydantic import BaseModel, constr

from chat_sync.core.dto import UserDTO

class TokenRequest(BaseModel):
    username: constr(min_length=1, max_length=50)
    create: bool = False

class TokenResponse(BaseModel):
    access: str
    user: UserDTO

class MessageSendRequest(BaseModel):
    receiver: int
    content: str

class BlockRequest(BaseModel):
    user_id: int
