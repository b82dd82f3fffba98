from dataclasses import dataclass
from typing import Callable
import logging

from chat_sync.core.dto import UserDTO
from chat_sync.core.exceptions import AuthenticationError, ChatServiceError, SessionClosedError
from chat_sync.core.interfaces import ChatServiceInterface


@dataclass(frozen=True, slots=True)
class SessionContext:
    """
    Identity and credential of the logged in user, fixed for the life of the session.
    `service` is the remote interface bound to `token`.
    """
    user: UserDTO
    token: str
    service: ChatServiceInterface

    @property
    def user_id(self) -> int:
        return self.user.id


class SessionManager:
    """
    Holds the credential and the current session context.

    Opening a session resolves the credential to a user; any failure there is an
    authentication failure and leaves the manager unauthenticated.
    """
    def __init__(
            self,
            service_factory: Callable[[str], ChatServiceInterface],
            logger: logging.Logger | None = None
    ):
        self._service_factory = service_factory
        self._logger = logger or logging.getLogger(__name__)

        self._token: str | None = None
        self._context: SessionContext | None = None

    @property
    def token(self) -> str | None:
        return self._token

    @property
    def context(self) -> SessionContext | None:
        return self._context

    @property
    def authenticated(self) -> bool:
        return self._context is not None

    def require(self) -> SessionContext:
        if self._context is None:
            raise SessionClosedError("No open session")
        return self._context

    async def open(self, token: str) -> SessionContext:
        self.close()
        self._token = token
        service = self._service_factory(token)

        try:
            user = await service.get_current_user()
        except ChatServiceError as e:
            self._logger.error("Error loading current user: %s", e)
            if self._token == token:
                self.close()
            raise AuthenticationError("Could not resolve current user", status_code=e.status_code) from e

        if self._token != token:
            # closed or replaced while the identity call was in flight
            raise SessionClosedError("Session closed during login")

        self._context = SessionContext(user=user, token=token, service=service)
        self._logger.info("Session opened for %s (id=%s)", user.username, user.id)
        return self._context

    def close(self) -> None:
        if self._context is not None:
            self._logger.info("Session closed for %s", self._context.user.username)
        self._token = None
        self._context = None
