class ChatServiceError(Exception):
    """
    Any failure of a remote call: transport error, non-success status or a payload
    that does not match the expected shape.
    """
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code

class AuthenticationError(ChatServiceError):
    """
    The credential was rejected by the service (401/403 on an identity call).
    """

class SessionClosedError(Exception):
    """
    Raised when an operation needs an open session and there is none.
    """
