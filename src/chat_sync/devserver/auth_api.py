from fastapi import status, HTTPException, Depends, APIRouter
from fastapi.security import OAuth2PasswordBearer
from dishka import FromDishka
from dishka.integrations.fastapi import inject
from jose import jwt, JWTError
from datetime import datetime, timedelta, timezone
import logging

from chat_sync.core.dto import UserDTO
from .models import TokenRequest, TokenResponse
from .store import ChatStore


class AuthAPI:
    """
    Bearer token handling for the reference service.

    Tokens are HS256 JWTs carrying the user id in `sub`. The token endpoint trusts
    the username it is given and exists for local development only.
    """
    def __init__(
            self,
            secret_key: str,
            logger: logging.Logger | None = None
    ):
        """
        Args:
            secret_key: Secret key for JWT token signing
            logger: Custom logger instance (optional)
        """
        self.SECRET_KEY = secret_key
        self.ALGORITHM = "HS256"
        self.ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

        self.logger = logger or logging.getLogger(__name__)
        self.oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/token/")

        self._auth_router = APIRouter(prefix="/api", tags=["Authentication"])
        self._register_endpoints()

    @property
    def auth_router(self) -> APIRouter:
        return self._auth_router

    def get_router(self) -> APIRouter:
        return self._auth_router

    def create_access_token(self, user_id: int) -> str:
        """
        Create JWT access token for a user
        Args: user_id: User identifier to include in token
        Returns: str: Encoded JWT token
        """
        expire = datetime.now(timezone.utc) + timedelta(minutes=self.ACCESS_TOKEN_EXPIRE_MINUTES)
        payload = {"sub": str(user_id), "exp": expire}
        return jwt.encode(payload, self.SECRET_KEY, algorithm=self.ALGORITHM)

    def get_current_user_id(self, token: str) -> int:
        """
        Validate JWT token and extract user ID
        Args: token: JWT token from authorization header
        Returns: int: User ID extracted from token
        """
        try:
            payload = jwt.decode(token, self.SECRET_KEY, algorithms=[self.ALGORITHM])
            user_id = payload.get("sub")
            if user_id is None:
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail="Invalid authentication credentials",
                )
            return int(user_id)
        except (JWTError, ValueError) as e:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid token",
            ) from e

    def authenticate(self, token: str, store: ChatStore) -> UserDTO:
        """
        Resolve a token to a known user and record the call for presence.
        """
        user = store.get_user(self.get_current_user_id(token))
        if user is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Unknown user",
            )
        store.touch(user.id)
        return user

    def _register_endpoints(self):
        @self.auth_router.post("/token/", response_model=TokenResponse)
        @inject
        async def issue_token(request_data: TokenRequest, store: FromDishka[ChatStore]):
            """
            Issue a token for an existing user, creating the user if `create` is set.
            """
            user = store.get_user_by_name(request_data.username)
            if user is None:
                if not request_data.create:
                    raise HTTPException(
                        status_code=status.HTTP_404_NOT_FOUND,
                        detail="User not found"
                    )
                user = store.create_user(request_data.username)

            return TokenResponse(access=self.create_access_token(user.id), user=user)

        @self.auth_router.get("/me/", response_model=UserDTO)
        @inject
        async def get_me(
                store: FromDishka[ChatStore],
                token: str = Depends(self.oauth2_scheme)
        ):
            return self.authenticate(token, store)
