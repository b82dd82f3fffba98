from fastapi import APIRouter, HTTPException, status, Depends
from dishka.integrations.fastapi import inject
from dishka import FromDishka
import logging

from chat_sync.core.dto import (
    UserSummaryDTO, MessageDTO, PresenceDTO, BlockStatusDTO, UnreadCountDTO
)
from .auth_api import AuthAPI
from .models import MessageSendRequest, BlockRequest
from .store import ChatStore, BlockedError


class ChatAPI:
    """
    Conversation, block, presence and unread endpoints of the reference service.

    Every endpoint is a full-state read or a single write; there is no cursor or
    delta protocol, clients poll.

    Attributes:
        logger: Logger instance for tracking operations
        auth_api: Authentication API instance for user validation
        chat_router: FastAPI router containing the endpoints
    """

    def __init__(
            self,
            logger: logging.Logger,
            auth_api: AuthAPI,
    ):
        self.logger = logger
        self.auth_api = auth_api

        self._chat_router = APIRouter(prefix="/api", tags=["Chat"])
        self._register_endpoints()

    @property
    def chat_router(self) -> APIRouter:
        return self._chat_router

    def get_router(self) -> APIRouter:
        return self._chat_router

    @staticmethod
    def _require_peer(store: ChatStore, user_id: int, peer_id: int) -> None:
        if store.get_user(peer_id) is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found"
            )
        if peer_id == user_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot chat with yourself"
            )

    def _register_endpoints(self):
        @self.chat_router.get("/users/", response_model=list[UserSummaryDTO])
        @inject
        async def list_users(
                store: FromDishka[ChatStore],
                token: str = Depends(self.auth_api.oauth2_scheme)
        ):
            user = self.auth_api.authenticate(token, store)
            return store.list_users(user.id)

        @self.chat_router.get("/presence/", response_model=list[PresenceDTO])
        @inject
        async def get_presence(
                store: FromDishka[ChatStore],
                token: str = Depends(self.auth_api.oauth2_scheme)
        ):
            self.auth_api.authenticate(token, store)
            return store.presence()

        @self.chat_router.get("/chat/messages/", response_model=list[MessageDTO])
        @inject
        async def list_messages(
                user_id: int,
                store: FromDishka[ChatStore],
                token: str = Depends(self.auth_api.oauth2_scheme)
        ):
            """
            Full conversation with `user_id`, ascending by id. Marks the peer's
            messages to the caller as read.
            """
            user = self.auth_api.authenticate(token, store)
            self._require_peer(store, user.id, user_id)
            return store.list_messages(user.id, user_id)

        @self.chat_router.post("/chat/messages/", response_model=MessageDTO, status_code=status.HTTP_201_CREATED)
        @inject
        async def send_message(
                message_data: MessageSendRequest,
                store: FromDishka[ChatStore],
                token: str = Depends(self.auth_api.oauth2_scheme)
        ):
            user = self.auth_api.authenticate(token, store)
            self._require_peer(store, user.id, message_data.receiver)

            if not message_data.content.strip():
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Message is empty"
                )

            try:
                return store.send_message(user.id, message_data.receiver, message_data.content)
            except BlockedError as e:
                self.logger.info("Rejected message from %s: %s", user.id, e)
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="Messaging is blocked"
                ) from e

        @self.chat_router.get("/chat/block/status/", response_model=BlockStatusDTO)
        @inject
        async def block_status(
                user_id: int,
                store: FromDishka[ChatStore],
                token: str = Depends(self.auth_api.oauth2_scheme)
        ):
            user = self.auth_api.authenticate(token, store)
            self._require_peer(store, user.id, user_id)
            return store.block_status(user.id, user_id)

        @self.chat_router.post("/chat/block/", status_code=status.HTTP_201_CREATED)
        @inject
        async def block_user(
                request_data: BlockRequest,
                store: FromDishka[ChatStore],
                token: str = Depends(self.auth_api.oauth2_scheme)
        ):
            user = self.auth_api.authenticate(token, store)
            self._require_peer(store, user.id, request_data.user_id)
            store.set_block(user.id, request_data.user_id)
            return {"status": "blocked"}

        @self.chat_router.delete("/chat/block/")
        @inject
        async def unblock_user(
                user_id: int,
                store: FromDishka[ChatStore],
                token: str = Depends(self.auth_api.oauth2_scheme)
        ):
            user = self.auth_api.authenticate(token, store)
            self._require_peer(store, user.id, user_id)
            store.clear_block(user.id, user_id)
            return {"status": "unblocked"}

        @self.chat_router.get("/chat/unread_counts/", response_model=list[UnreadCountDTO])
        @inject
        async def unread_counts(
                store: FromDishka[ChatStore],
                token: str = Depends(self.auth_api.oauth2_scheme)
        ):
            user = self.auth_api.authenticate(token, store)
            return store.unread_counts(user.id)
