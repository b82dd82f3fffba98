from typing import AsyncIterator
from dishka import Provider, Scope, provide
import logging
import httpx

from chat_sync.config import Config, load_config
from chat_sync.services import ChatSyncEngine

class AdaptersProvider(Provider):
    def __init__(self, env_path: str | None = ".env"):
        super().__init__()
        self._env_path = env_path

    @provide(scope=Scope.APP)
    def get_config(self) -> Config:
        return load_config(self._env_path)

    @provide(scope=Scope.APP)
    def get_logger(self) -> logging.Logger:
        return logging.getLogger("chat_sync")

    @provide(scope=Scope.APP)
    async def get_http_client(self, config: Config) -> AsyncIterator[httpx.AsyncClient]:
        async with httpx.AsyncClient(
            base_url=config.api.base_url,
            timeout=config.api.timeout
        ) as client:
            yield client

class ServicesProvider(Provider):
    @provide(scope=Scope.APP)
    def get_engine(
            self,
            config: Config,
            client: httpx.AsyncClient,
            logger: logging.Logger
    ) -> ChatSyncEngine:
        return ChatSyncEngine(
            client=client,
            polling=config.polling,
            logger=logger
        )
