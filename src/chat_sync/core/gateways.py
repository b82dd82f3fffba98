from typing import Any, TypeVar
import logging

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from .dto import UserDTO, UserSummaryDTO, MessageDTO, BlockStatusDTO, PresenceDTO, UnreadCountDTO
from .exceptions import ChatServiceError, AuthenticationError
from .interfaces import ChatServiceInterface

T = TypeVar("T")

_users = TypeAdapter(list[UserSummaryDTO])
_messages = TypeAdapter(list[MessageDTO])
_presence = TypeAdapter(list[PresenceDTO])
_unread = TypeAdapter(list[UnreadCountDTO])


class HttpChatGateway(ChatServiceInterface):
    """
    Remote service over HTTP + JSON.

    The httpx client is shared for the whole process and owns the base url;
    the gateway only adds the bearer credential of one session.
    """
    __slots__ = ("_client", "_token", "_logger")

    def __init__(self, client: httpx.AsyncClient, token: str, logger: logging.Logger | None = None):
        self._client = client
        self._token = token
        self._logger = logger or logging.getLogger(__name__)

    @property
    def token(self) -> str:
        return self._token

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        headers = {"Authorization": f"Bearer {self._token}"}
        try:
            response = await self._client.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            self._logger.error("Error calling %s %s: %s", method, path, e)
            raise ChatServiceError(f"{method} {path} failed: {e}") from e

        if response.status_code in (401, 403) and path == "/api/me/":
            raise AuthenticationError("Credential rejected", status_code=response.status_code)
        if not response.is_success:
            self._logger.error("%s %s returned %s: %s", method, path, response.status_code, response.text[:200])
            raise ChatServiceError(
                f"{method} {path} returned {response.status_code}",
                status_code=response.status_code
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ChatServiceError(f"{method} {path} returned invalid JSON") from e

    def _parse(self, parser: TypeAdapter[T] | type[BaseModel], payload: Any, path: str) -> T:
        try:
            if isinstance(parser, TypeAdapter):
                return parser.validate_python(payload)
            return parser.model_validate(payload)
        except ValidationError as e:
            self._logger.error("Unexpected payload from %s: %s", path, e)
            raise ChatServiceError(f"Unexpected payload from {path}") from e

    async def get_current_user(self) -> UserDTO:
        payload = await self._request("GET", "/api/me/")
        return self._parse(UserDTO, payload, "/api/me/")

    async def list_users(self) -> list[UserSummaryDTO]:
        payload = await self._request("GET", "/api/users/")
        return self._parse(_users, payload, "/api/users/")

    async def list_messages(self, peer_id: int) -> list[MessageDTO]:
        payload = await self._request("GET", "/api/chat/messages/", params={"user_id": peer_id})
        return self._parse(_messages, payload, "/api/chat/messages/")

    async def send_message(self, peer_id: int, content: str) -> MessageDTO:
        payload = await self._request(
            "POST", "/api/chat/messages/",
            json={"receiver": peer_id, "content": content}
        )
        return self._parse(MessageDTO, payload, "/api/chat/messages/")

    async def get_block_status(self, peer_id: int) -> BlockStatusDTO:
        payload = await self._request("GET", "/api/chat/block/status/", params={"user_id": peer_id})
        return self._parse(BlockStatusDTO, payload, "/api/chat/block/status/")

    async def set_block(self, peer_id: int) -> None:
        await self._request("POST", "/api/chat/block/", json={"user_id": peer_id})

    async def clear_block(self, peer_id: int) -> None:
        await self._request("DELETE", "/api/chat/block/", params={"user_id": peer_id})

    async def get_presence(self) -> list[PresenceDTO]:
        payload = await self._request("GET", "/api/presence/")
        return self._parse(_presence, payload, "/api/presence/")

    async def get_unread_counts(self) -> list[UnreadCountDTO]:
        payload = await self._request("GET", "/api/chat/unread_counts/")
        return self._parse(_unread, payload, "/api/chat/unread_counts/")
