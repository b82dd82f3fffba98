from .dto import UserDTO, UserSummaryDTO, MessageDTO, PresenceDTO, BlockStatusDTO, UnreadCountDTO
from .exceptions import ChatServiceError, AuthenticationError, SessionClosedError
from .gateways import HttpChatGateway
from .interfaces import ChatServiceInterface
from .selection import Selection, SelectionRef
