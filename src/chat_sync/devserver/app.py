from contextlib import asynccontextmanager
import asyncio
import logging

from dishka import Provider, Scope, make_async_container, provide
from dishka.integrations.fastapi import setup_dishka
from fastapi import FastAPI
import uvicorn

from chat_sync.config import Config, load_config
from .auth_api import AuthAPI
from .chat_api import ChatAPI
from .store import ChatStore


class DevServerProvider(Provider):
    def __init__(self, config: Config, store: ChatStore | None = None):
        super().__init__()
        self._config = config
        self._store = store

    @provide(scope=Scope.APP)
    def get_config(self) -> Config:
        return self._config

    @provide(scope=Scope.APP)
    def get_logger(self) -> logging.Logger:
        return logging.getLogger("chat_sync.devserver")

    @provide(scope=Scope.APP)
    def get_store(self, config: Config, logger: logging.Logger) -> ChatStore:
        if self._store is not None:
            return self._store
        store = ChatStore(presence_timeout=config.devserver.presence_timeout, logger=logger)
        for username in config.devserver.users:
            store.create_user(username)
        return store

    @provide(scope=Scope.APP)
    def get_auth_api(self, config: Config, logger: logging.Logger) -> AuthAPI:
        return AuthAPI(secret_key=config.devserver.secret_key, logger=logger)

    @provide(scope=Scope.APP)
    def get_chat_api(self, auth_api: AuthAPI, logger: logging.Logger) -> ChatAPI:
        return ChatAPI(logger=logger, auth_api=auth_api)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await app.state.dishka_container.close()

async def create_app(config: Config, store: ChatStore | None = None) -> FastAPI:
    container = make_async_container(DevServerProvider(config, store))

    app = FastAPI(lifespan=lifespan)
    setup_dishka(container, app)

    auth_api = await container.get(AuthAPI)
    chat_api = await container.get(ChatAPI)

    app.include_router(auth_api.get_router())
    app.include_router(chat_api.get_router())

    return app


async def prepare_app(config: Config) -> FastAPI:
    app = await create_app(config)

    logger = logging.getLogger("chat_sync.devserver")
    store = await app.state.dishka_container.get(ChatStore)
    auth_api = await app.state.dishka_container.get(AuthAPI)
    for username in config.devserver.users:
        user = store.get_user_by_name(username)
        logger.info("Token for %s: %s", username, auth_api.create_access_token(user.id))
    return app

def main() -> None:
    config = load_config(".env")
    logging.basicConfig(level=config.log_level.upper())
    app = asyncio.run(prepare_app(config))

    uvicorn.run(app, host=config.devserver.host, port=config.devserver.port, log_level="info")


if __name__ == "__main__":
    main()
