import asyncio
import logging
import sys

from dishka import make_async_container

from chat_sync.config import Config
from chat_sync.core.exceptions import AuthenticationError
from chat_sync.providers.dishka_app import AdaptersProvider, ServicesProvider
from chat_sync.services import ChatSyncEngine, ConversationStatus, describe_last_seen


def _log_state(engine: ChatSyncEngine, logger: logging.Logger, seen: set[int]) -> None:
    if not engine.authenticated:
        return
    components = engine.components
    for message in components.messages.messages:
        if message.id not in seen:
            seen.add(message.id)
            logger.info("[%s] %s -> %s: %s", message.id, message.sender_id, message.receiver_id, message.content)


async def run(container) -> None:
    config = await container.get(Config)
    logger = await container.get(logging.Logger)
    engine = await container.get(ChatSyncEngine)

    if not config.session.token:
        logger.error("CHAT_TOKEN is not set")
        return

    try:
        user = (await engine.login(config.session.token)).user
    except AuthenticationError as e:
        logger.error("Login failed: %s", e)
        return
    logger.info("Logged in as %s", user.username)

    seen: set[int] = set()
    engine.subscribe(lambda: _log_state(engine, logger, seen))

    if config.session.peer:
        peer = engine.components.directory.find(config.session.peer)
        if peer is None:
            logger.error("Unknown peer %s", config.session.peer)
        else:
            await engine.select(peer)
            view = engine.conversation()
            if view.status is ConversationStatus.LAST_SEEN:
                logger.info("%s: last seen %s", peer.username, describe_last_seen(view.last_seen_at))
            else:
                logger.info("%s: %s", peer.username, view.status.value)

    loop = asyncio.get_running_loop()
    try:
        while True:
            line = await loop.run_in_executor(None, sys.stdin.readline)
            if not line:
                break
            text = line.rstrip("\n")
            if text == "/block":
                await engine.toggle_block()
            elif await engine.send(text) is None and text.strip():
                logger.warning("Message not sent: %s", engine.conversation().status.value)
    finally:
        await engine.logout()


async def amain() -> None:
    container = make_async_container(AdaptersProvider(), ServicesProvider())
    try:
        config = await container.get(Config)
        logging.basicConfig(
            level=config.log_level.upper(),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s"
        )
        await run(container)
    finally:
        await container.close()


def main() -> None:
    try:
        asyncio.run(amain())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
