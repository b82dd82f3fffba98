from dataclasses import dataclass, field
from environs import Env


@dataclass
class ApiConfig:
    base_url: str = 'http://127.0.0.1:8000'
    timeout: float = 10.0

@dataclass
class PollingConfig:
    """ Intervals in seconds """
    messages_interval: float = 1.0
    conversation_presence_interval: float = 5.0
    sidebar_presence_interval: float = 3.0
    unread_interval: float = 2.0

    """ Optimistic entries """
    pending_ttl: float = 30.0
    pending_match_window: float = 120.0

@dataclass
class SessionConfig:
    token: str | None = None
    peer: str | None = None

@dataclass
class DevServerConfig:
    secret_key: str = 'dev-secret'
    host: str = '127.0.0.1'
    port: int = 8000
    users: list[str] = field(default_factory=list)
    presence_timeout: float = 30.0

@dataclass
class Config:
    """ Config """
    api: ApiConfig
    polling: PollingConfig
    session: SessionConfig
    devserver: DevServerConfig
    log_level: str = 'INFO'

def load_config(path: str | None) -> Config:
    env = Env()
    env.read_env(path)

    return Config(
        api=ApiConfig(
            base_url=env('CHAT_API_URL', 'http://127.0.0.1:8000'),
            timeout=env.float('CHAT_API_TIMEOUT', 10.0),
        ),
        polling=PollingConfig(
            messages_interval=env.float('MESSAGES_INTERVAL', 1.0),
            conversation_presence_interval=env.float('CONVERSATION_PRESENCE_INTERVAL', 5.0),
            sidebar_presence_interval=env.float('SIDEBAR_PRESENCE_INTERVAL', 3.0),
            unread_interval=env.float('UNREAD_INTERVAL', 2.0),
            pending_ttl=env.float('PENDING_TTL', 30.0),
            pending_match_window=env.float('PENDING_MATCH_WINDOW', 120.0),
        ),
        session=SessionConfig(
            token=env('CHAT_TOKEN', None),
            peer=env('CHAT_PEER', None),
        ),
        devserver=DevServerConfig(
            secret_key=env('SECRET_KEY', 'dev-secret'),
            host=env('DEV_HOST', '127.0.0.1'),
            port=env.int('DEV_PORT', 8000),
            users=env.list('DEV_USERS', []),
            presence_timeout=env.float('PRESENCE_TIMEOUT', 30.0),
        ),
        log_level=env('LOG_LEVEL', 'INFO'),
    )
