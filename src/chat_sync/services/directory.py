import logging

from chat_sync.core.dto import UserSummaryDTO
from chat_sync.core.exceptions import ChatServiceError
from .base import Observable
from .session import SessionContext


class Directory(Observable):
    """
    Users the current user can talk to, loaded when the session opens.
    """
    def __init__(self, session: SessionContext, logger: logging.Logger | None = None):
        super().__init__()
        self._session = session
        self.logger = logger or logging.getLogger(__name__)
        self._users: tuple[UserSummaryDTO, ...] = ()

    @property
    def users(self) -> tuple[UserSummaryDTO, ...]:
        return self._users

    async def refresh(self) -> bool:
        try:
            users = await self._session.service.list_users()
        except ChatServiceError as e:
            self.logger.warning("Error loading users: %s", e)
            return False

        self._users = tuple(u for u in users if u.id != self._session.user_id)
        self._notify()
        return True

    def get(self, user_id: int) -> UserSummaryDTO | None:
        return next((u for u in self._users if u.id == user_id), None)

    def find(self, username: str) -> UserSummaryDTO | None:
        return next((u for u in self._users if u.username == username), None)

    def search(self, term: str) -> list[UserSummaryDTO]:
        term = term.strip().lower()
        if not term:
            return list(self._users)
        return [u for u in self._users if term in u.username.lower()]
