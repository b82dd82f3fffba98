from abc import ABC, abstractmethod

from .dto import *

class ChatServiceInterface(ABC):
    """
    Remote operations consumed by the sync engine. Every call carries the session
    credential the implementation was created with.
    """
    @abstractmethod
    async def get_current_user(self) -> UserDTO:
        """
        Get the user the credential belongs to.
        :return:
        :raises AuthenticationError: credential rejected
        """
        raise NotImplementedError()

    @abstractmethod
    async def list_users(self) -> list[UserSummaryDTO]:
        """
        Get every other user with the last message exchanged with them.
        :return:
        """
        raise NotImplementedError()

    @abstractmethod
    async def list_messages(
            self,
            peer_id: int
    ) -> list[MessageDTO]:
        """
        Get the full conversation with a peer, ascending by id.
        :param peer_id:
        :return:
        """
        raise NotImplementedError()

    @abstractmethod
    async def send_message(
            self,
            peer_id: int,
            content: str
    ) -> MessageDTO:
        """
        Send a message to a peer.
        :param peer_id:
        :param content:
        :return: the stored message with its server id
        """
        raise NotImplementedError()

    @abstractmethod
    async def get_block_status(
            self,
            peer_id: int
    ) -> BlockStatusDTO:
        """
        Get both directions of the block relation with a peer.
        :param peer_id:
        :return:
        """
        raise NotImplementedError()

    @abstractmethod
    async def set_block(
            self,
            peer_id: int
    ) -> None:
        """
        Block a peer.
        :param peer_id:
        :return:
        """
        raise NotImplementedError()

    @abstractmethod
    async def clear_block(
            self,
            peer_id: int
    ) -> None:
        """
        Unblock a peer.
        :param peer_id:
        :return:
        """
        raise NotImplementedError()

    @abstractmethod
    async def get_presence(self) -> list[PresenceDTO]:
        """
        Get online / last seen status of every known user.
        :return:
        """
        raise NotImplementedError()

    @abstractmethod
    async def get_unread_counts(self) -> list[UnreadCountDTO]:
        """
        Get unread message counts keyed by sender.
        :return:
        """
        raise NotImplementedError()
